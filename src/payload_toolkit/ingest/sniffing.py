"""Content-type detection from leading bytes.

Implements the WHATWG MIME sniffing table: the declared ``Content-Type`` of
an upload is never consulted. :func:`detect_content_type` is a pure function
over at most :data:`SNIFF_LENGTH` bytes and always returns a valid MIME type,
falling back to ``application/octet-stream``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

SNIFF_LENGTH = 512
OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN = "text/plain; charset=utf-8"

_WHITESPACE = b"\t\n\x0c\r "
_TAG_TERMINATORS = b" >"
# Bytes that never appear in text content.
_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20))
)


class _Signature(Protocol):
    def match(self, data: bytes, first_non_ws: int) -> str | None: ...


@dataclass(slots=True, frozen=True)
class _ExactSig:
    prefix: bytes
    content_type: str

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        if data.startswith(self.prefix):
            return self.content_type
        return None


@dataclass(slots=True, frozen=True)
class _MaskedSig:
    mask: bytes
    pattern: bytes
    content_type: str
    skip_ws: bool = False

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        if self.skip_ws:
            data = data[first_non_ws:]
        if len(data) < len(self.pattern):
            return None
        for index, expected in enumerate(self.pattern):
            if data[index] & self.mask[index] != expected:
                return None
        return self.content_type


@dataclass(slots=True, frozen=True)
class _HtmlSig:
    tag: bytes

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        data = data[first_non_ws:]
        if len(data) < len(self.tag) + 1:
            return None
        for index, expected in enumerate(self.tag):
            actual = data[index]
            if 0x41 <= expected <= 0x5A:
                actual &= 0xDF
            if actual != expected:
                return None
        if data[len(self.tag)] not in _TAG_TERMINATORS:
            return None
        return "text/html; charset=utf-8"


class _Mp4Sig:
    __slots__ = ()

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        if len(data) < 12:
            return None
        box_size = int.from_bytes(data[:4], "big")
        if len(data) < box_size or box_size % 4 != 0:
            return None
        if data[4:8] != b"ftyp":
            return None
        for start in range(8, box_size, 4):
            if start == 12:
                # Bytes 12..15 hold the minor version.
                continue
            if data[start : start + 3] == b"mp4":
                return "video/mp4"
        return None


class _TextSig:
    __slots__ = ()

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        for byte in data[first_non_ws:]:
            if byte in _BINARY_BYTES:
                return None
        return TEXT_PLAIN


def _html(tag: str) -> _HtmlSig:
    return _HtmlSig(tag.encode("ascii"))


def _riff(kind: bytes, content_type: str) -> _MaskedSig:
    return _MaskedSig(
        mask=b"\xff\xff\xff\xff\x00\x00\x00\x00" + b"\xff" * len(kind),
        pattern=b"RIFF\x00\x00\x00\x00" + kind,
        content_type=content_type,
    )


_SIGNATURES: tuple[_Signature, ...] = (
    _html("<!DOCTYPE HTML"),
    _html("<HTML"),
    _html("<HEAD"),
    _html("<SCRIPT"),
    _html("<IFRAME"),
    _html("<H1"),
    _html("<DIV"),
    _html("<FONT"),
    _html("<TABLE"),
    _html("<A"),
    _html("<STYLE"),
    _html("<TITLE"),
    _html("<B"),
    _html("<BODY"),
    _html("<BR"),
    _html("<P"),
    _html("<!--"),
    _MaskedSig(b"\xff\xff\xff\xff\xff", b"<?xml", "text/xml; charset=utf-8", skip_ws=True),
    _ExactSig(b"%PDF-", "application/pdf"),
    _ExactSig(b"%!PS-Adobe-", "application/postscript"),
    _MaskedSig(b"\xff\xff", b"\xfe\xff", "text/plain; charset=utf-16be"),
    _MaskedSig(b"\xff\xff", b"\xff\xfe", "text/plain; charset=utf-16le"),
    _MaskedSig(b"\xff\xff\xff", b"\xef\xbb\xbf", TEXT_PLAIN),
    _ExactSig(b"\x00\x00\x01\x00", "image/x-icon"),
    _ExactSig(b"\x00\x00\x02\x00", "image/x-icon"),
    _ExactSig(b"BM", "image/bmp"),
    _ExactSig(b"GIF87a", "image/gif"),
    _ExactSig(b"GIF89a", "image/gif"),
    _riff(b"WEBPVP", "image/webp"),
    _ExactSig(b"\x89PNG\r\n\x1a\n", "image/png"),
    _ExactSig(b"\xff\xd8\xff", "image/jpeg"),
    _MaskedSig(
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
        b"FORM\x00\x00\x00\x00AIFF",
        "audio/aiff",
    ),
    _MaskedSig(b"\xff\xff\xff", b"ID3", "audio/mpeg"),
    _MaskedSig(b"\xff\xff\xff\xff\xff", b"OggS\x00", "application/ogg"),
    _MaskedSig(b"\xff" * 8, b"MThd\x00\x00\x00\x06", "audio/midi"),
    _riff(b"AVI ", "video/avi"),
    _riff(b"WAVE", "audio/wave"),
    _Mp4Sig(),
    _ExactSig(b"\x1aE\xdf\xa3", "video/webm"),
    _ExactSig(b"\x00\x01\x00\x00", "font/ttf"),
    _ExactSig(b"OTTO", "font/otf"),
    _ExactSig(b"ttcf", "font/collection"),
    _ExactSig(b"wOFF", "font/woff"),
    _ExactSig(b"wOF2", "font/woff2"),
    _ExactSig(b"\x1f\x8b\x08", "application/x-gzip"),
    _ExactSig(b"PK\x03\x04", "application/zip"),
    _ExactSig(b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    _ExactSig(b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    _ExactSig(b"\x00asm", "application/wasm"),
    _TextSig(),
)


def detect_content_type(data: bytes) -> str:
    """Return the MIME type of ``data`` judged by its leading bytes only."""
    data = data[:SNIFF_LENGTH]
    first_non_ws = 0
    while first_non_ws < len(data) and data[first_non_ws] in _WHITESPACE:
        first_non_ws += 1

    for signature in _SIGNATURES:
        content_type = signature.match(data, first_non_ws)
        if content_type is not None:
            return content_type
    return OCTET_STREAM


def media_type_essence(content_type: str) -> str:
    """Strip parameters: ``text/plain; charset=utf-8`` -> ``text/plain``."""
    return content_type.split(";", 1)[0].strip().lower()


__all__ = ["OCTET_STREAM", "SNIFF_LENGTH", "detect_content_type", "media_type_essence"]
