"""
FastAPI application factory for the StudyStore gateway.

This module creates the app with:
- CORS configuration for the browser views
- One LocalClient shared by all requests
- API routes under /api/v1

Invariants:
    - The gateway holds a single auth session for the whole server, the
      same "at most one session per environment" rule the client follows.
      Any HTTP caller acts as whoever signed in last; there are no
      per-request tokens. Bind to localhost only.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .._version import __version__
from ..client import LocalClient, create_client
from ..config import Settings
from .routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log gateway lifecycle."""
    settings: Settings = app.state.settings
    settings.log_config()
    logger.info(f"StudyStore gateway starting on {settings.host}:{settings.port}")

    yield

    logger.info("StudyStore gateway stopped")


def create_app(settings: Optional[Settings] = None, client: Optional[LocalClient] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings (loaded from environment if omitted)
        client: Prebuilt client (built from settings if omitted)
    """
    settings = settings or Settings()

    app = FastAPI(
        title="StudyStore Gateway",
        description="Local REST stand-in for the study tracker backend.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.client = client or create_client(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "studystore-gateway"}

    return app
