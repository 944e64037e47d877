"""Request-payload ingestion toolkit.

Bounded multipart upload handling with content sniffing, strict JSON body
decoding with classified errors, and a uniform JSON response envelope.
"""

from .core.config import IngestionConfig
from .ingest.ingest_errors import FailureReason, PayloadError
from .ingest.ingest_models import UploadedFile

__all__ = ["FailureReason", "IngestionConfig", "PayloadError", "UploadedFile"]
