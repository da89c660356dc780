"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from anonymizex import __version__
from anonymizex.api.routes import router
from anonymizex.config import get_settings
from anonymizex.imaging.pool import ProcessingPool

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting AnonymizeX (max_concurrent=%s, max_regions=%s, radius=%s, padding=%s, shape=%s, passes=%s)",
        settings.max_concurrent,
        settings.max_regions,
        settings.blur_radius,
        settings.padding,
        settings.shape,
        settings.blur_passes,
    )

    processing_pool = ProcessingPool(settings)
    app.state.processing_pool = processing_pool

    logger.info("AnonymizeX ready")
    yield

    logger.info("Shutting down AnonymizeX")
    processing_pool.shutdown()
    logger.info("AnonymizeX shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="AnonymizeX",
        description="Irreversible face-region anonymization for raster images",
        version=__version__,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Regions-Processed", "X-Regions-Skipped"],
    )

    application.include_router(router)
    return application


app = create_app()
