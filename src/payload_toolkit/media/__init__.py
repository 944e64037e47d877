"""Storage and download helpers for ingested media."""

from .static_files import download_static_file
from .storage import ensure_directory, write_upload

__all__ = ["download_static_file", "ensure_directory", "write_upload"]
