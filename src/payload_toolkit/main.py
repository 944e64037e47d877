"""FastAPI application entry point."""

from fastapi import FastAPI

from .api.errors import install_error_handlers
from .api.responses import JSONResponder
from .api.routes import router
from .core.config import IngestionConfig
from .decoding.json_reader import JSONReader
from .ingest.upload_service import UploadIngestor
from .logging import configure_logging
from .security.random_ids import RandomIdentifier


def create_app(config: IngestionConfig | None = None) -> FastAPI:
    """Build FastAPI instance with ingestion services attached to its state."""
    configure_logging()
    cfg = config or IngestionConfig.build_default()
    app = FastAPI(title="payload-toolkit")
    app.state.config = cfg
    app.state.upload_ingestor = UploadIngestor(config=cfg, identifiers=RandomIdentifier())
    app.state.json_reader = JSONReader(config=cfg)
    app.state.responder = JSONResponder()
    install_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()
