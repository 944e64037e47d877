import pytest

from payload_toolkit.ingest.sniffing import (
    OCTET_STREAM,
    SNIFF_LENGTH,
    detect_content_type,
    media_type_essence,
)


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (b"", "text/plain; charset=utf-8"),
        (b"hello world", "text/plain; charset=utf-8"),
        (b"\x01\x02\x03", OCTET_STREAM),
        (b"  <!DOCTYPE html><html></html>", "text/html; charset=utf-8"),
        (b"<HtMl><body>hi</body></html>", "text/html; charset=utf-8"),
        (b"\n<?xml version='1.0'?>", "text/xml; charset=utf-8"),
        (b"%PDF-1.7\n", "application/pdf"),
        (b"GIF89a\x01\x00", "image/gif"),
        (b"\x89PNG\r\n\x1a\n\x00\x00", "image/png"),
        (b"\xff\xd8\xff\xe0\x00\x10JFIF", "image/jpeg"),
        (b"RIFF\x10\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"RIFF\x10\x00\x00\x00WAVEfmt ", "audio/wave"),
        (b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom", "video/mp4"),
        (b"PK\x03\x04\x14\x00", "application/zip"),
        (b"\x1f\x8b\x08\x00", "application/x-gzip"),
        (b"\xef\xbb\xbfhello", "text/plain; charset=utf-8"),
        (b"\xfe\xffhi", "text/plain; charset=utf-16be"),
    ],
)
def test_detect_content_type_table(data: bytes, expected: str) -> None:
    assert detect_content_type(data) == expected


def test_detect_content_type_only_reads_leading_window() -> None:
    data = b"a" * SNIFF_LENGTH + b"\x00binary tail"

    assert detect_content_type(data) == "text/plain; charset=utf-8"


def test_html_tag_requires_terminator() -> None:
    assert detect_content_type(b"<bogus") == "text/plain; charset=utf-8"


def test_media_type_essence_strips_parameters() -> None:
    assert media_type_essence("Text/Plain; charset=utf-8") == "text/plain"
    assert media_type_essence("image/png") == "image/png"
