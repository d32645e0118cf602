"""
Documet Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Deterministic startup
- External clients constructed once per process and injected per request
- Centralized router registration
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from .cache.store import ResponseCache
from .config import settings
from .db.session import async_engine
from .core.errors import DocumetError, domain_exception_handler, unhandled_exception_handler
from .embeddings.embedder import Embedder
from .llm.client import LLMClient

from .api import (
    document_routes,
    health_routes,
    qa_routes,
    shared_routes,
)


logger = logging.getLogger("documet.app")


# ---------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Build long-lived clients before the first request and release the
    database pool on shutdown.
    """
    logger.info("Starting documet")

    # Touch critical secrets to force validation now (not at first use)
    _ = settings.openai_api_key.get_secret_value()
    _ = settings.jwt_secret.get_secret_value()

    app.state.embedder = Embedder()
    app.state.llm = LLMClient()
    app.state.cache = ResponseCache()

    logger.info(
        "Configuration validated (embedding model %s, chat model %s)",
        settings.embedding_model,
        settings.chat_model,
    )

    yield

    logger.info("Shutting down documet")
    await async_engine.dispose()


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    app = FastAPI(
        title="documet",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(DocumetError, domain_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(document_routes.router)
    app.include_router(qa_routes.router)
    app.include_router(shared_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
