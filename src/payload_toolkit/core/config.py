"""Ingestion configuration for payload-toolkit.

Size ceilings and part-count guards are named constants injected into
:class:`IngestionConfig` at construction time. Values can be overridden via
environment variables prefixed with ``PAYLOAD_`` (for example
``PAYLOAD_MAX_JSON_BYTES``); list values such as ``allowed_types`` are read
as JSON arrays.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_TOTAL_BYTES = 1024 * 1024 * 1024  # 1 GiB
DEFAULT_MAX_JSON_BYTES = 1024 * 1024  # 1 MiB
DEFAULT_CHUNK_SIZE_BYTES = 1024 * 1024  # 1 MiB
DEFAULT_MAX_PARTS = 1000


def _default_upload_dir() -> Path:
    return Path("./var/uploads")


def _default_static_dir() -> Path:
    return Path("./var/static")


class IngestionConfig(BaseSettings):
    """Limits and policies shared by the upload and JSON decoders."""

    model_config = SettingsConfigDict(env_prefix="PAYLOAD_")

    max_total_bytes: int = Field(
        default=DEFAULT_MAX_TOTAL_BYTES,
        description="Hard ceiling on a whole multipart request body. Zero or less means default.",
    )
    allowed_types: frozenset[str] = Field(
        default_factory=frozenset,
        description="Sniffed MIME types accepted for uploads; empty accepts everything.",
    )
    max_json_bytes: int = Field(
        default=DEFAULT_MAX_JSON_BYTES,
        description="Hard ceiling on a JSON request body. Zero or less means default.",
    )
    allow_unknown_json_fields: bool = Field(
        default=False,
        description="Silently drop JSON keys the target shape does not declare.",
    )
    chunk_size_bytes: int = Field(
        default=DEFAULT_CHUNK_SIZE_BYTES,
        ge=1,
        description="Copy buffer used when streaming parts to disk.",
    )
    max_files: int = Field(
        default=DEFAULT_MAX_PARTS,
        ge=1,
        description="Maximum number of file parts accepted in one multipart body.",
    )
    max_fields: int = Field(
        default=DEFAULT_MAX_PARTS,
        ge=1,
        description="Maximum number of non-file parts accepted in one multipart body.",
    )
    upload_dir: Path = Field(
        default_factory=_default_upload_dir,
        description="Destination directory used by the bundled upload routes.",
    )
    static_dir: Path = Field(
        default_factory=_default_static_dir,
        description="Base directory served by the bundled download route.",
    )

    @field_validator("max_total_bytes")
    @classmethod
    def _default_total(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_MAX_TOTAL_BYTES

    @field_validator("max_json_bytes")
    @classmethod
    def _default_json(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_MAX_JSON_BYTES

    @field_validator("allowed_types", mode="before")
    @classmethod
    def _normalise_types(cls, value: object) -> object:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            return frozenset({value})
        return value

    @classmethod
    def build_default(cls) -> "IngestionConfig":
        """Construct configuration with the library defaults."""

        return cls()


__all__ = [
    "DEFAULT_CHUNK_SIZE_BYTES",
    "DEFAULT_MAX_JSON_BYTES",
    "DEFAULT_MAX_PARTS",
    "DEFAULT_MAX_TOTAL_BYTES",
    "IngestionConfig",
]
