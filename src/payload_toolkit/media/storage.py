"""Filesystem helpers for uploaded payloads."""

from __future__ import annotations

import logging
from pathlib import Path

from starlette.datastructures import UploadFile

from ..core.config import DEFAULT_CHUNK_SIZE_BYTES
from ..ingest.ingest_errors import StorageError

logger = logging.getLogger(__name__)


def ensure_directory(path: str | Path) -> Path:
    """Create ``path`` and any missing parents; a no-op when it already exists."""
    directory = Path(path)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error(
            "media.directory.create_failed",
            extra={"path": str(directory), "error": str(exc)},
        )
        raise StorageError(f"unable to create directory {directory}: {exc.strerror or exc}") from exc
    return directory


async def write_upload(
    upload: UploadFile,
    target: Path,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES,
) -> int:
    """Stream ``upload`` into a newly created ``target`` and return bytes written."""
    written = 0
    try:
        with target.open("wb") as sink:
            while True:
                chunk = await upload.read(chunk_size)
                if not chunk:
                    break
                sink.write(chunk)
                written += len(chunk)
    except OSError as exc:
        logger.error(
            "media.upload.write_failed",
            extra={"path": str(target), "bytes_written": written, "error": str(exc)},
        )
        raise StorageError(f"unable to store {target.name}: {exc.strerror or exc}") from exc
    return written


__all__ = ["ensure_directory", "write_upload"]
