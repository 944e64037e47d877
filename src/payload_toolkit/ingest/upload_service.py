"""Multipart upload ingestion."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from python_multipart.multipart import parse_options_header
from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser
from starlette.requests import ClientDisconnect, Request

from ..core.config import IngestionConfig
from ..media.storage import ensure_directory, write_upload
from ..security.random_ids import RandomIdentifier
from .ingest_errors import (
    MalformedUploadError,
    NoFileProvidedError,
    PayloadError,
    PayloadTooLargeError,
    StorageError,
    UnsupportedFileTypeError,
)
from .ingest_models import UploadedFile
from .sniffing import SNIFF_LENGTH, detect_content_type, media_type_essence

logger = logging.getLogger(__name__)

STORED_NAME_LENGTH = 25
_TOO_BIG_MESSAGE = "the uploaded file is too big"


class _BodyTooLarge(MultiPartException):
    """Raised from the body stream so the parser releases spooled parts."""


@dataclass(slots=True)
class UploadIngestor:
    """Stream file parts of a multipart request into a destination directory."""

    config: IngestionConfig = field(default_factory=IngestionConfig.build_default)
    identifiers: RandomIdentifier = field(default_factory=RandomIdentifier)
    log: logging.Logger = field(default_factory=lambda: logger)

    async def ingest(
        self,
        request: Request,
        destination: str | Path,
        rename: bool = True,
    ) -> list[UploadedFile]:
        """Store every file part of ``request`` under ``destination``.

        Raises the first :class:`PayloadError` encountered; its ``uploaded``
        attribute lists the files already written by this call.
        """
        return await self._ingest(request, destination, rename=rename, first_only=False)

    async def ingest_one(
        self,
        request: Request,
        destination: str | Path,
        rename: bool = True,
    ) -> UploadedFile:
        """Store only the first file part of ``request``."""
        uploaded = await self._ingest(request, destination, rename=rename, first_only=True)
        if not uploaded:
            self.log.warning("ingest.upload.no_file", extra={"destination": str(destination)})
            raise NoFileProvidedError()
        return uploaded[0]

    async def _ingest(
        self,
        request: Request,
        destination: str | Path,
        *,
        rename: bool,
        first_only: bool,
    ) -> list[UploadedFile]:
        limit = self.config.max_total_bytes
        declared = _declared_length(request)
        if declared is not None and declared > limit:
            self.log.warning(
                "ingest.upload.payload_too_large",
                extra={"size_bytes": declared, "limit_bytes": limit},
            )
            raise PayloadTooLargeError(limit, _TOO_BIG_MESSAGE)

        directory = ensure_directory(destination)
        form = await self._parse_form(request, limit)

        uploaded: list[UploadedFile] = []
        try:
            for upload in _file_parts(form):
                try:
                    record = await self._store_part(upload, directory, rename=rename)
                except PayloadError as exc:
                    exc.uploaded = list(uploaded)
                    raise
                uploaded.append(record)
                if first_only:
                    break
        finally:
            await form.close()
        return uploaded

    async def _parse_form(self, request: Request, limit: int) -> FormData:
        content_type = request.headers.get("content-type", "")
        if media_type_essence(content_type) != "multipart/form-data":
            self.log.warning(
                "ingest.upload.not_multipart", extra={"content_type": content_type}
            )
            raise MalformedUploadError("request body is not multipart/form-data")

        body = _BoundedBody(request, limit, _closing_delimiter(content_type))
        parser = MultiPartParser(
            request.headers,
            body.stream(),
            max_files=self.config.max_files,
            max_fields=self.config.max_fields,
        )
        try:
            form = await parser.parse()
        except _BodyTooLarge as exc:
            self.log.warning("ingest.upload.payload_too_large", extra={"limit_bytes": limit})
            raise PayloadTooLargeError(limit, _TOO_BIG_MESSAGE) from exc
        except MultiPartException as exc:
            self.log.warning("ingest.upload.malformed", extra={"error": str(exc)})
            raise MalformedUploadError(f"the upload could not be parsed: {exc}") from exc
        except ClientDisconnect as exc:
            self.log.warning("ingest.upload.disconnected")
            raise MalformedUploadError("the upload was interrupted") from exc
        except ValueError as exc:
            # python-multipart reports framing errors as ValueError subclasses.
            self.log.warning("ingest.upload.malformed", extra={"error": str(exc)})
            raise MalformedUploadError(f"the upload could not be parsed: {exc}") from exc

        if not body.terminated:
            await form.close()
            self.log.warning("ingest.upload.truncated", extra={"bytes_received": body.received})
            raise MalformedUploadError("the upload ended before its closing boundary")
        return form

    async def _store_part(
        self,
        upload: UploadFile,
        directory: Path,
        *,
        rename: bool,
    ) -> UploadedFile:
        original_name = _client_file_name(upload.filename or "")
        try:
            head = await upload.read(SNIFF_LENGTH)
            await upload.seek(0)
        except OSError as exc:
            self.log.error("ingest.upload.read_failed", exc_info=exc)
            raise StorageError(f"unable to read {original_name}: {exc}") from exc

        content_type = detect_content_type(head)
        if not self._is_allowed(content_type):
            self.log.warning(
                "ingest.upload.unsupported_type",
                extra={
                    "upload_name": original_name,
                    "content_type": content_type,
                    "declared_content_type": upload.content_type,
                },
            )
            raise UnsupportedFileTypeError(content_type)

        stored_name = self._stored_name(original_name, rename=rename)
        size = await write_upload(
            upload,
            directory / stored_name,
            chunk_size=self.config.chunk_size_bytes,
        )
        record = UploadedFile(
            original_name=original_name,
            stored_name=stored_name,
            size_bytes=size,
        )
        self.log.info(
            "ingest.upload.stored",
            extra={
                "upload_name": original_name,
                "stored_name": stored_name,
                "size_bytes": size,
                "content_type": content_type,
            },
        )
        return record

    def _is_allowed(self, content_type: str) -> bool:
        allowed = self.config.allowed_types
        if not allowed:
            return True
        candidates = {content_type.lower(), media_type_essence(content_type)}
        return any(entry.strip().lower() in candidates for entry in allowed)

    def _stored_name(self, original_name: str, *, rename: bool) -> str:
        if not rename:
            return original_name
        suffix = PurePosixPath(original_name).suffix
        return f"{self.identifiers.generate(STORED_NAME_LENGTH)}{suffix}"


@dataclass(slots=True)
class _BoundedBody:
    """Request body stream that enforces the size ceiling and watches for the end marker."""

    request: Request
    limit: int
    delimiter: bytes
    received: int = 0
    terminated: bool = False
    _tail: bytes = b""

    async def stream(self) -> AsyncGenerator[bytes, None]:
        async for chunk in self.request.stream():
            self.received += len(chunk)
            if self.received > self.limit:
                raise _BodyTooLarge(_TOO_BIG_MESSAGE)
            if not self.terminated and self.delimiter:
                window = self._tail + chunk
                self.terminated = self.delimiter in window
                # Keep enough bytes to catch a delimiter split across chunks.
                self._tail = window[-(len(self.delimiter) - 1) :]
            yield chunk


def _closing_delimiter(content_type: str) -> bytes:
    _, params = parse_options_header(content_type)
    boundary = params.get(b"boundary")
    if not boundary:
        return b""
    return b"--" + boundary + b"--"


def _declared_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _file_parts(form: FormData) -> list[UploadFile]:
    return [
        value
        for _, value in form.multi_items()
        if isinstance(value, UploadFile) and value.filename
    ]


def _client_file_name(filename: str) -> str:
    # Multipart readers report only the final path component of a declared name.
    return PurePosixPath(filename.replace("\\", "/")).name


__all__ = ["STORED_NAME_LENGTH", "UploadIngestor"]
