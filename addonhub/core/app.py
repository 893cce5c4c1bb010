"""
FastAPI Application Factory
Creates and configures the FastAPI app instance
"""
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from addonhub.api.endpoints import addons, catalogs, health, streams
from addonhub.core.config import settings
from addonhub.services.engine import AddonEngine
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def create_app(engine: Optional[AddonEngine] = None) -> FastAPI:
    """Create and configure FastAPI application"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan event handler for startup and shutdown"""
        logger.info("Starting addon engine")
        app.state.engine = engine or AddonEngine()
        await app.state.engine.start()

        yield

        logger.info("Shutting down addon engine")
        await app.state.engine.close()

    app = FastAPI(
        title="Addon Hub",
        description="Addon registry, catalog preferences and stream resolution",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(addons.router)
    app.include_router(catalogs.router)
    app.include_router(streams.router)

    return app
