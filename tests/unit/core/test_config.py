from pathlib import Path

import pytest

from payload_toolkit.core.config import (
    DEFAULT_MAX_JSON_BYTES,
    DEFAULT_MAX_TOTAL_BYTES,
    IngestionConfig,
)


def test_defaults() -> None:
    config = IngestionConfig.build_default()

    assert config.max_total_bytes == 1024 * 1024 * 1024
    assert config.max_json_bytes == 1024 * 1024
    assert config.allowed_types == frozenset()
    assert config.allow_unknown_json_fields is False
    assert config.upload_dir == Path("./var/uploads")


@pytest.mark.parametrize("value", [0, -5])
def test_non_positive_limits_fall_back_to_defaults(value: int) -> None:
    config = IngestionConfig(max_total_bytes=value, max_json_bytes=value)

    assert config.max_total_bytes == DEFAULT_MAX_TOTAL_BYTES
    assert config.max_json_bytes == DEFAULT_MAX_JSON_BYTES


def test_allowed_types_accepts_single_string() -> None:
    assert IngestionConfig(allowed_types="image/png").allowed_types == frozenset({"image/png"})
    assert IngestionConfig(allowed_types=None).allowed_types == frozenset()


def test_reads_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAYLOAD_MAX_JSON_BYTES", "2048")
    monkeypatch.setenv("PAYLOAD_ALLOWED_TYPES", '["image/png", "image/jpeg"]')
    monkeypatch.setenv("PAYLOAD_ALLOW_UNKNOWN_JSON_FIELDS", "true")

    config = IngestionConfig()

    assert config.max_json_bytes == 2048
    assert config.allowed_types == frozenset({"image/png", "image/jpeg"})
    assert config.allow_unknown_json_fields is True
