"""JSON response encoding and the uniform response envelope."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, model_validator
from starlette.responses import Response

from ..ingest.ingest_errors import ResponseEncodingError

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


class JSONEnvelope(BaseModel):
    """Shape of every JSON body written by this package."""

    error: bool = False
    message: str = ""
    data: Any | None = None

    @model_validator(mode="after")
    def _errors_carry_no_data(self) -> "JSONEnvelope":
        if self.error and self.data is not None:
            raise ValueError("error envelopes must not carry data")
        return self

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload


@dataclass(slots=True)
class JSONResponder:
    """Build JSON responses with a status code and optional extra headers."""

    log: logging.Logger = field(default_factory=lambda: logger)

    def write(
        self,
        status_code: int,
        value: Any,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        """Serialize ``value``; caller ``headers`` override the defaults verbatim."""
        body = self.encode(value)
        response = Response(content=body, status_code=status_code, media_type=JSON_MEDIA_TYPE)
        for name, header_value in (headers or {}).items():
            response.headers[name] = header_value
        return response

    def write_error(
        self,
        error: BaseException | str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        """Write ``{"error": true, "message": str(error)}``."""
        envelope = JSONEnvelope(error=True, message=str(error))
        return self.write(status_code, envelope, headers)

    def write_data(
        self,
        data: Any,
        message: str = "",
        status_code: int = status.HTTP_200_OK,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        """Write a success envelope carrying ``data``."""
        envelope = JSONEnvelope(error=False, message=message, data=data)
        return self.write(status_code, envelope, headers)

    def encode(self, value: Any) -> bytes:
        if isinstance(value, JSONEnvelope):
            value = value.to_payload()
        try:
            prepared = jsonable_encoder(value)
            text = json.dumps(prepared, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            self.log.error(
                "api.response.encode_failed",
                extra={"value_type": type(value).__name__, "error": str(exc)},
            )
            raise ResponseEncodingError(f"value cannot be encoded as JSON: {exc}") from exc
        return text.encode("utf-8")


__all__ = ["JSON_MEDIA_TYPE", "JSONEnvelope", "JSONResponder"]
