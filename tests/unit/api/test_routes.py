from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from payload_toolkit.core.config import IngestionConfig
from payload_toolkit.main import create_app


@pytest.fixture
def config(tmp_path: Path) -> IngestionConfig:
    return IngestionConfig(
        upload_dir=tmp_path / "uploads",
        static_dir=tmp_path / "static",
        allowed_types=frozenset({"image/png", "image/jpeg"}),
        max_json_bytes=256,
    )


@pytest.fixture
def client(config: IngestionConfig) -> TestClient:
    return TestClient(create_app(config))


def test_upload_route_stores_files(
    client: TestClient, config: IngestionConfig, png_bytes: bytes
) -> None:
    response = client.post(
        "/api/uploads",
        files=[
            ("file", ("a.png", png_bytes, "image/png")),
            ("file", ("b.png", png_bytes, "image/png")),
        ],
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["error"] is False
    assert payload["message"] == "2 file(s) uploaded"
    assert [item["original_name"] for item in payload["data"]] == ["a.png", "b.png"]
    for item in payload["data"]:
        assert (config.upload_dir / item["stored_name"]).read_bytes() == png_bytes


def test_upload_one_route_keeps_name_when_requested(
    client: TestClient, config: IngestionConfig, png_bytes: bytes
) -> None:
    response = client.post(
        "/api/uploads/one",
        params={"rename": "false"},
        files={"file": ("keep.png", png_bytes, "image/png")},
    )

    assert response.status_code == 201
    assert response.json()["data"] == {
        "original_name": "keep.png",
        "stored_name": "keep.png",
        "size_bytes": len(png_bytes),
    }
    assert (config.upload_dir / "keep.png").exists()


def test_upload_route_rejects_disallowed_type(client: TestClient) -> None:
    response = client.post(
        "/api/uploads",
        files={"file": ("notes.png", b"just some text", "image/png")},
    )

    assert response.status_code == 415
    assert response.json() == {
        "error": True,
        "message": "the uploaded file type is not permitted",
    }


def test_upload_one_route_without_file(client: TestClient, make_multipart) -> None:
    body, content_type = make_multipart([("caption", None, b"nothing attached", None)])

    response = client.post(
        "/api/uploads/one", content=body, headers={"Content-Type": content_type}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "no file was uploaded"


def test_json_route_echoes_payload(client: TestClient) -> None:
    response = client.post(
        "/api/json",
        content=b'{"message": "hello", "tags": ["a"]}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "error": False,
        "message": "payload accepted",
        "data": {"message": "hello", "tags": ["a"]},
    }


@pytest.mark.parametrize(
    ("body", "status_code", "message"),
    [
        (b"", 400, "body must not be empty"),
        (b'{"message": "hi", "extra": 1}', 400, 'body contains unknown key "extra"'),
        (b'{"message": 5}', 400, 'body contains incorrect JSON type for field "message"'),
        (b'{"message": "a"}{"message": "b"}', 400, "body must have only a single JSON value"),
        (b"{}", 400, 'body is missing required key "message"'),
        (b'{"message": "' + b"x" * 300 + b'"}', 413, "body must not be larger than 256 bytes"),
    ],
)
def test_json_route_rejects_bad_bodies(
    client: TestClient, body: bytes, status_code: int, message: str
) -> None:
    response = client.post("/api/json", content=body)

    assert response.status_code == status_code
    assert response.json() == {"error": True, "message": message}


def test_download_route_serves_attachment(client: TestClient, config: IngestionConfig) -> None:
    config.static_dir.mkdir(parents=True)
    (config.static_dir / "img.jpg").write_bytes(b"\xff\xd8\xff\xe0" + b"\x00" * 12)

    response = client.get("/api/downloads/img.jpg", params={"display_name": "puppy.jpg"})

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="puppy.jpg"'


def test_download_route_missing_file(client: TestClient) -> None:
    response = client.get("/api/downloads/missing.bin")

    assert response.status_code == 404
    assert response.json() == {"error": True, "message": "File not found"}


def test_json_route_honours_allow_unknown_fields(config: IngestionConfig) -> None:
    client = TestClient(create_app(config.model_copy(update={"allow_unknown_json_fields": True})))

    response = client.post("/api/json", content=b'{"message": "hi", "extra": 1}')

    assert response.status_code == 200
    assert response.json()["data"] == {"message": "hi", "tags": []}


def test_invalid_query_parameter_uses_error_envelope(
    client: TestClient, png_bytes: bytes
) -> None:
    response = client.post(
        "/api/uploads",
        params={"rename": "notabool"},
        files={"file": ("a.png", png_bytes, "image/png")},
    )

    assert response.status_code == 422
    body = response.json()
    assert body["error"] is True
    assert body["message"].startswith("invalid request: query.rename: ")
    assert "detail" not in body


def test_unsupported_method_uses_error_envelope(client: TestClient) -> None:
    response = client.delete("/api/json")

    assert response.status_code == 405
    assert response.json() == {"error": True, "message": "Method Not Allowed"}
    assert "POST" in response.headers["allow"]
