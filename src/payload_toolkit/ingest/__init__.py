"""Multipart upload ingestion.

Import :class:`~payload_toolkit.ingest.upload_service.UploadIngestor` from its
module; this package re-exports only the leaf types.
"""

from .ingest_errors import FailureReason, PayloadError
from .ingest_models import UploadedFile

__all__ = ["FailureReason", "PayloadError", "UploadedFile"]
