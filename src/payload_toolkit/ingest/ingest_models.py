"""Data structures for the upload pipeline."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class UploadedFile:
    """Metadata recorded for every file part written to disk.

    ``original_name`` is the client-declared name and is never used to build
    a path when renaming is enabled.
    """

    original_name: str
    stored_name: str
    size_bytes: int
