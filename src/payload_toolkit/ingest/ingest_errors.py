"""Domain-specific exceptions for payload ingestion."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .ingest_models import UploadedFile


class FailureReason(StrEnum):
    """Failure classifications reported to callers."""

    PAYLOAD_TOO_LARGE = "payload_too_large"
    MALFORMED_UPLOAD = "malformed_upload"
    UNSUPPORTED_FILE_TYPE = "unsupported_file_type"
    NO_FILE_PROVIDED = "no_file_provided"
    IO_FAILURE = "io_failure"
    SYNTAX_ERROR = "syntax_error"
    TRUNCATED_JSON = "truncated_json"
    TYPE_MISMATCH = "type_mismatch"
    MISSING_FIELD = "missing_field"
    EMPTY_BODY = "empty_body"
    UNKNOWN_FIELD = "unknown_field"
    MULTIPLE_JSON_VALUES = "multiple_json_values"
    UNCLASSIFIED = "unclassified_decode_error"
    REMOTE_PUSH_FAILED = "remote_push_failed"


class PayloadError(Exception):
    """Base class for ingestion failures.

    ``str(error)`` is the human-readable message rendered to clients.
    ``uploaded`` holds the files already written when an upload call fails
    part-way through; callers own their cleanup.
    """

    reason: FailureReason = FailureReason.UNCLASSIFIED
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.uploaded: list["UploadedFile"] = []


class PayloadTooLargeError(PayloadError):
    """Raised when a request body exceeds the configured ceiling."""

    reason = FailureReason.PAYLOAD_TOO_LARGE
    status_code = 413

    def __init__(self, limit_bytes: int, message: str | None = None) -> None:
        super().__init__(message or f"body must not be larger than {limit_bytes} bytes")
        self.limit_bytes = limit_bytes


class MalformedUploadError(PayloadError):
    """Raised when the multipart body cannot be parsed."""

    reason = FailureReason.MALFORMED_UPLOAD


class UnsupportedFileTypeError(PayloadError):
    """Raised when sniffed content is not on the allow-list."""

    reason = FailureReason.UNSUPPORTED_FILE_TYPE
    status_code = 415

    def __init__(self, content_type: str) -> None:
        super().__init__("the uploaded file type is not permitted")
        self.content_type = content_type


class NoFileProvidedError(PayloadError):
    """Raised when a single-file upload carries no file part."""

    reason = FailureReason.NO_FILE_PROVIDED

    def __init__(self) -> None:
        super().__init__("no file was uploaded")


class StorageError(PayloadError):
    """Raised when the filesystem or the response sink fails."""

    reason = FailureReason.IO_FAILURE
    status_code = 500


class ResponseEncodingError(StorageError):
    """Raised when a value cannot be represented as JSON."""


class JSONSyntaxError(PayloadError):
    reason = FailureReason.SYNTAX_ERROR

    def __init__(self, offset: int) -> None:
        super().__init__(f"body contains badly-formed JSON (at character {offset})")
        self.offset = offset


class TruncatedJSONError(PayloadError):
    reason = FailureReason.TRUNCATED_JSON

    def __init__(self) -> None:
        super().__init__("body contains badly-formed JSON")


class JSONTypeMismatchError(PayloadError):
    """Raised when a JSON value does not fit the target shape."""

    reason = FailureReason.TYPE_MISMATCH

    def __init__(self, *, field: str | None, offset: int) -> None:
        if field:
            message = f'body contains incorrect JSON type for field "{field}"'
        else:
            message = f"body contains incorrect JSON type (at character {offset})"
        super().__init__(message)
        self.field = field
        self.offset = offset


class MissingFieldError(PayloadError):
    reason = FailureReason.MISSING_FIELD

    def __init__(self, field: str) -> None:
        super().__init__(f'body is missing required key "{field}"')
        self.field = field


class EmptyBodyError(PayloadError):
    reason = FailureReason.EMPTY_BODY

    def __init__(self) -> None:
        super().__init__("body must not be empty")


class UnknownFieldError(PayloadError):
    reason = FailureReason.UNKNOWN_FIELD

    def __init__(self, field: str) -> None:
        super().__init__(f'body contains unknown key "{field}"')
        self.field = field


class MultipleJSONValuesError(PayloadError):
    reason = FailureReason.MULTIPLE_JSON_VALUES

    def __init__(self) -> None:
        super().__init__("body must have only a single JSON value")


class UnclassifiedDecodeError(PayloadError):
    reason = FailureReason.UNCLASSIFIED

    def __init__(self, detail: str) -> None:
        super().__init__(f"error unmarshalling JSON: {detail}")
        self.detail = detail


class RemotePushError(PayloadError):
    """Raised when posting JSON to a remote endpoint fails in transport."""

    reason = FailureReason.REMOTE_PUSH_FAILED
    status_code = 502


__all__ = [
    "EmptyBodyError",
    "FailureReason",
    "JSONSyntaxError",
    "JSONTypeMismatchError",
    "MalformedUploadError",
    "MissingFieldError",
    "MultipleJSONValuesError",
    "NoFileProvidedError",
    "PayloadError",
    "PayloadTooLargeError",
    "RemotePushError",
    "ResponseEncodingError",
    "StorageError",
    "TruncatedJSONError",
    "UnclassifiedDecodeError",
    "UnknownFieldError",
    "UnsupportedFileTypeError",
]
