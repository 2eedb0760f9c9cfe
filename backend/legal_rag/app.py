"""FastAPI application setup for the legal document assistant."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from legal_rag.api.dependencies import ServiceContainer
from legal_rag.api.routes_admin import router as admin_router
from legal_rag.api.routes_documents import router as documents_router
from legal_rag.api.routes_query import router as query_router
from legal_rag.core.config import Settings, get_settings
from legal_rag.core.logging import configure_logging


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    if app.state.services is None:
        app.state.services = ServiceContainer.from_settings(app.state.settings)
    try:
        yield
    finally:
        app.state.services.close()


def create_app(settings: Settings | None = None, services: ServiceContainer | None = None) -> FastAPI:
    """Build an application; services are wired at startup unless given."""
    settings = settings or get_settings()
    configure_logging(use_json=settings.log_json)

    app = FastAPI(
        title="Legal RAG",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=_lifespan,
    )
    app.state.settings = settings
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://127.0.0.1:3000",
            "http://localhost:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(documents_router, prefix="/documents", tags=["documents"])
    app.include_router(query_router, prefix="", tags=["query"])
    app.include_router(admin_router, prefix="", tags=["admin"])
    return app


__all__ = ["create_app"]
