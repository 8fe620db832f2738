from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pricecam.api.routes import router
from pricecam.core.config import Settings, settings
from pricecam.core.context import AppContext
from pricecam.core.logging import configure_logging
from pricecam.ocr.base_ocr import OCREngine
from pricecam.ocr.factory import get_ocr_engine


def create_app(config: Settings | None = None, ocr_engine: OCREngine | None = None) -> FastAPI:
    config = config or settings
    configure_logging(config.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logging.getLogger(__name__).info("startup", extra={"ocr_provider": config.ocr_provider})
        context = AppContext.from_settings(config, ocr_engine or get_ocr_engine())
        await context.settings_store.aload()
        app.state.context = context
        try:
            yield
        finally:
            await context.close()

    app = FastAPI(title="PriceCam", version="0.1.0", lifespan=lifespan)
    app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to the PriceCam API",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()
