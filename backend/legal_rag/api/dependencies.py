"""Shared FastAPI dependencies."""

from __future__ import annotations

from dataclasses import dataclass

import requests
from fastapi import Depends, Request

from legal_rag.chat.client import ChatClient
from legal_rag.chat.service import ChatService
from legal_rag.core.config import Settings
from legal_rag.db.chunks import ChunkStore
from legal_rag.db.documents import DocumentStore
from legal_rag.db.sqlite import SQLiteDatabase
from legal_rag.ingest.embeddings import Embedder
from legal_rag.ingest.pipeline import IngestPipeline
from legal_rag.retrieval.search import Retriever


@dataclass(slots=True)
class ServiceContainer:
    """Every service one application instance needs, wired once."""

    settings: Settings
    db: SQLiteDatabase
    documents: DocumentStore
    chunks: ChunkStore
    embedder: Embedder
    retriever: Retriever
    pipeline: IngestPipeline
    chat: ChatService

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        embedder: Embedder | None = None,
        chat_client: ChatClient | None = None,
        session: requests.Session | None = None,
    ) -> "ServiceContainer":
        db = SQLiteDatabase(settings.db_path)
        db.ensure_schema()
        documents = DocumentStore(db)
        chunks = ChunkStore(db, search_timeout=settings.search_timeout)
        embedder = embedder or Embedder.from_settings(settings, session=session)
        retriever = Retriever.from_settings(settings, chunks, embedder)
        return cls(
            settings=settings,
            db=db,
            documents=documents,
            chunks=chunks,
            embedder=embedder,
            retriever=retriever,
            pipeline=IngestPipeline(documents, chunks, embedder, settings),
            chat=ChatService(
                retriever,
                documents,
                chat_client or ChatClient.from_settings(settings, session=session),
                settings,
            ),
        )

    def close(self) -> None:
        self.db.close()


def get_container(request: Request) -> ServiceContainer:
    """The container built by the application lifespan."""
    return request.app.state.services


def get_app_settings(container: ServiceContainer = Depends(get_container)) -> Settings:
    return container.settings


def get_document_store(container: ServiceContainer = Depends(get_container)) -> DocumentStore:
    return container.documents


def get_chunk_store(container: ServiceContainer = Depends(get_container)) -> ChunkStore:
    return container.chunks


def get_retriever(container: ServiceContainer = Depends(get_container)) -> Retriever:
    return container.retriever


def get_ingest_pipeline(container: ServiceContainer = Depends(get_container)) -> IngestPipeline:
    return container.pipeline


def get_chat_service(container: ServiceContainer = Depends(get_container)) -> ChatService:
    return container.chat


__all__ = [
    "ServiceContainer",
    "get_container",
    "get_app_settings",
    "get_document_store",
    "get_chunk_store",
    "get_retriever",
    "get_ingest_pipeline",
    "get_chat_service",
]
