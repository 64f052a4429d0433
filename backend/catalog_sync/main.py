"""
FastAPI application for the video catalog cache and sync layer.

Serves the cached video collection, transcript search and cache
maintenance over HTTP.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog_sync import __version__
from catalog_sync.api import cache_routes, routes, transcript_routes
from catalog_sync.config import get_settings
from catalog_sync.logging_config import setup_logging
from catalog_sync.services.catalog_services import get_services, set_services

# Configure logging before anything else
settings = get_settings()
setup_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs startup info, checks catalog availability and closes the shared
    client on shutdown.
    """
    logger.info("Starting Video Catalog Sync API")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Catalog API: {settings.catalog_api_url}")
    logger.info(f"Store directory: {settings.store_dir}")
    logger.info(f"Cache duration: {settings.cache_duration_minutes} min")

    services = get_services()
    status = await services.client.check_service()
    logger.info(f"Catalog API available: {status['catalog']}")

    yield

    logger.info("Shutting down Video Catalog Sync API")
    await services.close()
    set_services(None)


app = FastAPI(
    title="Video Catalog Sync API",
    description="Cache-first access to a remote video and transcript catalog",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes.router)
app.include_router(transcript_routes.router)
app.include_router(cache_routes.router)


@app.get("/health")
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        Basic health status
    """
    return {"status": "ok"}


@app.get("/health/services")
async def services_health() -> dict:
    """
    Check catalog API availability.

    Returns:
        Catalog status, API URL and effective cache duration
    """
    services = get_services()
    status = await services.client.check_service()
    return {
        "catalog": status["catalog"],
        "error": status["error"],
        "catalog_url": services.settings.catalog_api_url,
        "cache_duration_minutes": services.orchestrator.cache_duration_minutes(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "catalog_sync.main:app",
        host="0.0.0.0",
        port=8802,
        reload=True,
    )
