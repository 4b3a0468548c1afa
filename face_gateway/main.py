# face_gateway/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from face_gateway.core.config import Settings, get_settings
from face_gateway.core.error_handlers import register_error_handlers
from face_gateway.core.logging import configure_logging
from face_gateway.core.middleware import register_middleware
from face_gateway.routers.health_router import router as health_router
from face_gateway.routers.rekognition_router import router as rekognition_router
from face_gateway.services.adapters.face_adapter import FaceAdapter
from face_gateway.services.face_service import select_adapter

logger = logging.getLogger("face_gateway")


def create_app(settings: Optional[Settings] = None, adapter: Optional[FaceAdapter] = None) -> FastAPI:
    """
    Build the API.
    `adapter` replaces the configured provider adapter (tests, embedding).
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # one provider client per process, shared by every request
        if adapter is not None:
            app.state.face_adapter = adapter
        else:
            logger.info(f"Initializing face adapter (mode={settings.face_mode}, region={settings.aws_region})...")
            try:
                app.state.face_adapter = select_adapter(settings)
            except Exception as e:
                logger.error(f"Failed to initialize face adapter: {e}")
                raise e
            logger.info("Face adapter initialized successfully.")
        yield
        app.state.face_adapter.close()
        logger.info("Face Gateway shutting down.")

    app = FastAPI(
        title="Face Gateway",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
    )
    app.state.settings = settings

    register_error_handlers(app)
    register_middleware(app, settings)

    app.include_router(health_router)
    app.include_router(rekognition_router)
    return app


app = create_app()
