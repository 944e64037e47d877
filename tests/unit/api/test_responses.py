import json
import math
from dataclasses import dataclass

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import ValidationError

from payload_toolkit.api.errors import install_error_handlers
from payload_toolkit.api.responses import JSONEnvelope, JSONResponder
from payload_toolkit.ingest.ingest_errors import (
    PayloadTooLargeError,
    ResponseEncodingError,
    UnknownFieldError,
)


@dataclass
class Sample:
    name: str
    size: int


def test_write_sets_status_body_and_content_type() -> None:
    response = JSONResponder().write(202, {"foo": "bar"})

    assert response.status_code == 202
    assert response.headers["content-type"] == "application/json"
    assert json.loads(response.body) == {"foo": "bar"}


def test_write_applies_caller_headers() -> None:
    response = JSONResponder().write(
        200,
        {"ok": True},
        headers={"X-Request-Id": "abc", "Content-Type": "application/vnd.test+json"},
    )

    assert response.headers["x-request-id"] == "abc"
    assert response.headers["content-type"] == "application/vnd.test+json"


def test_write_error_defaults_to_bad_request() -> None:
    response = JSONResponder().write_error(ValueError("some error"))

    assert response.status_code == 400
    assert json.loads(response.body) == {"error": True, "message": "some error"}


def test_write_error_with_explicit_status() -> None:
    response = JSONResponder().write_error("another error", 503)

    assert response.status_code == 503
    assert json.loads(response.body) == {"error": True, "message": "another error"}


def test_write_data_wraps_dataclasses() -> None:
    response = JSONResponder().write_data(Sample(name="a.png", size=3), message="ok")

    assert json.loads(response.body) == {
        "error": False,
        "message": "ok",
        "data": {"name": "a.png", "size": 3},
    }


def test_encode_rejects_non_finite_numbers() -> None:
    with pytest.raises(ResponseEncodingError):
        JSONResponder().encode({"value": math.nan})


def test_envelope_refuses_data_on_errors() -> None:
    with pytest.raises(ValidationError):
        JSONEnvelope(error=True, message="bad", data={"x": 1})


def test_error_handler_renders_envelope_with_failure_status() -> None:
    app = FastAPI()
    install_error_handlers(app)

    @app.get("/too-large")
    async def too_large():
        raise PayloadTooLargeError(4)

    @app.get("/unknown")
    async def unknown():
        raise UnknownFieldError("fooo")

    client = TestClient(app)

    response = client.get("/too-large")
    assert response.status_code == 413
    assert response.json() == {"error": True, "message": "body must not be larger than 4 bytes"}

    response = client.get("/unknown")
    assert response.status_code == 400
    assert response.json() == {"error": True, "message": 'body contains unknown key "fooo"'}
