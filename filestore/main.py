"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from filestore.core.config import settings
from filestore.core.logging import setup_logging
from filestore.routes import files_router, health_router
from filestore.services.image_processor import PillowImageProcessor
from filestore.storage.contracts import StorageAuthenticationError, StorageConfigError
from filestore.storage.factory import build_storage
from filestore.storage.images import ImageStorageAdapter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the storage backend on startup, release its clients on shutdown."""
    setup_logging()

    try:
        storage = build_storage()
    except StorageConfigError as e:
        logger.error("Storage backend not configured: %s", e)
        storage = None

    app.state.storage = storage
    app.state.images = (
        ImageStorageAdapter(storage, PillowImageProcessor(settings.AVATAR_SIZE_PX))
        if storage is not None
        else None
    )
    if storage is not None:
        logger.info("Using %s", type(storage).__name__)

    yield

    if storage is not None:
        await storage.close()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)


@app.exception_handler(StorageConfigError)
@app.exception_handler(StorageAuthenticationError)
async def storage_unavailable_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=503, content={"detail": "Storage backend unavailable"})


# Register routers
app.include_router(health_router)
app.include_router(files_router)
