"""HTTP routes for upload and JSON ingestion."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import Response
from pydantic import BaseModel, Field

from ..core.config import IngestionConfig
from ..decoding.json_reader import JSONReader
from ..ingest.upload_service import UploadIngestor
from ..media.static_files import download_static_file
from .responses import JSONResponder

router = APIRouter(prefix="/api", tags=["ingest"])
logger = logging.getLogger(__name__)


class EchoPayload(BaseModel):
    """Body accepted by ``POST /api/json``."""

    message: str
    tags: list[str] = Field(default_factory=list)


def get_config(request: Request) -> IngestionConfig:
    """Return the ingestion configuration from application state."""
    config = getattr(request.app.state, "config", None)
    if not isinstance(config, IngestionConfig):  # pragma: no cover - wiring error
        raise RuntimeError("IngestionConfig is not configured")
    return config


def get_upload_ingestor(request: Request) -> UploadIngestor:
    try:
        return request.app.state.upload_ingestor  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("UploadIngestor is not configured") from exc


def get_json_reader(request: Request) -> JSONReader:
    try:
        return request.app.state.json_reader  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("JSONReader is not configured") from exc


def get_responder(request: Request) -> JSONResponder:
    return getattr(request.app.state, "responder", None) or JSONResponder()


@router.post("/uploads")
async def upload_files(
    request: Request,
    rename: bool = Query(True),
    config: IngestionConfig = Depends(get_config),
    ingestor: UploadIngestor = Depends(get_upload_ingestor),
    responder: JSONResponder = Depends(get_responder),
) -> Response:
    """Store every file part of a multipart body."""
    uploaded = await ingestor.ingest(request, config.upload_dir, rename=rename)
    logger.info("api.uploads.stored", extra={"count": len(uploaded)})
    return responder.write_data(
        uploaded,
        message=f"{len(uploaded)} file(s) uploaded",
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/uploads/one")
async def upload_one_file(
    request: Request,
    rename: bool = Query(True),
    config: IngestionConfig = Depends(get_config),
    ingestor: UploadIngestor = Depends(get_upload_ingestor),
    responder: JSONResponder = Depends(get_responder),
) -> Response:
    """Store only the first file part of a multipart body."""
    record = await ingestor.ingest_one(request, config.upload_dir, rename=rename)
    return responder.write_data(
        record,
        message="file uploaded",
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/json")
async def echo_json(
    request: Request,
    reader: JSONReader = Depends(get_json_reader),
    responder: JSONResponder = Depends(get_responder),
) -> Response:
    """Decode a strict :class:`EchoPayload` body and return it in the envelope."""
    payload = await reader.read(request, EchoPayload)
    return responder.write_data(payload, message="payload accepted")


@router.get("/downloads/{file_name}")
async def download_file(
    file_name: str,
    display_name: str | None = Query(None),
    config: IngestionConfig = Depends(get_config),
) -> Response:
    """Serve a file from the static directory as an attachment."""
    return download_static_file(config.static_dir, file_name, display_name or file_name)


__all__ = ["EchoPayload", "router"]
