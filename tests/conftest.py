from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import pytest
from starlette.requests import Request

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 32
BOUNDARY = "payload-toolkit-boundary"

# (field name, file name or None, content, declared content type or None)
Part = tuple[str, str | None, bytes, str | None]


def build_request(
    body: bytes,
    headers: dict[str, str] | None = None,
    *,
    chunk_size: int | None = None,
    content_length: bool = True,
) -> Request:
    """Build a Starlette request whose body arrives in ``chunk_size`` pieces."""
    size = chunk_size or max(len(body), 1)
    chunks = [body[start : start + size] for start in range(0, len(body), size)] or [b""]
    messages: list[dict[str, Any]] = [
        {"type": "http.request", "body": chunk, "more_body": index < len(chunks) - 1}
        for index, chunk in enumerate(chunks)
    ]

    async def receive() -> dict[str, Any]:
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    raw_headers = {key.lower(): value for key, value in (headers or {}).items()}
    if content_length:
        raw_headers.setdefault("content-length", str(len(body)))
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "query_string": b"",
        "headers": [
            (key.encode("latin-1"), value.encode("latin-1")) for key, value in raw_headers.items()
        ],
    }
    return Request(scope, receive)


def multipart_body(parts: Sequence[Part], boundary: str = BOUNDARY) -> tuple[bytes, str]:
    """Encode ``parts`` as multipart/form-data; returns body and content type."""
    body = bytearray()
    for name, filename, content, content_type in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        body += f"--{boundary}\r\n".encode()
        body += f"Content-Disposition: {disposition}\r\n".encode()
        if content_type:
            body += f"Content-Type: {content_type}\r\n".encode()
        body += b"\r\n" + content + b"\r\n"
    body += f"--{boundary}--\r\n".encode()
    return bytes(body), f"multipart/form-data; boundary={boundary}"


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def make_request() -> Callable[..., Request]:
    return build_request


@pytest.fixture
def make_multipart() -> Callable[..., tuple[bytes, str]]:
    return multipart_body
