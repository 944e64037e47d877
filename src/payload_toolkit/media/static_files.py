"""Attachment downloads for stored files."""

from __future__ import annotations

import mimetypes
from pathlib import Path

from fastapi import HTTPException, status
from fastapi.responses import FileResponse


def download_static_file(directory: str | Path, file_name: str, display_name: str) -> FileResponse:
    """Serve ``directory/file_name`` as an attachment named ``display_name``.

    Byte transfer and ``Content-Length`` are left to :class:`FileResponse`.
    """
    path = Path(directory) / file_name
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    media_type, _ = mimetypes.guess_type(display_name)
    return FileResponse(
        path=path,
        media_type=media_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{display_name}"'},
    )


__all__ = ["download_static_file"]
