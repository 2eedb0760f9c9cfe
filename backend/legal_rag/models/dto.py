"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from legal_rag.ingest.types import IngestResult
from legal_rag.models.entities import Chunk, Document
from legal_rag.retrieval.context import Source
from legal_rag.retrieval.search import RetrievalResult

ScoreKindName = Literal["vector", "lexical", "substring", "document"]


class DocumentTextRequest(BaseModel):
    title: str = Field(min_length=1)
    content: str
    owner_id: str | None = None
    is_shared: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    process: bool = Field(default=True, description="Chunk and embed the text right away")


class ProcessRequest(BaseModel):
    text: str | None = Field(default=None, description="Replace the stored text before processing")
    metadata: dict[str, Any] = Field(default_factory=dict)


class DocumentResponse(BaseModel):
    id: str
    title: str
    owner_id: str | None
    is_shared: bool
    mime: str | None
    size_bytes: int | None
    metadata: dict[str, Any]
    has_content: bool
    chunk_count: int | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, document: Document, chunk_count: int | None = None) -> "DocumentResponse":
        return cls(
            id=document.id,
            title=document.title,
            owner_id=document.owner_id,
            is_shared=document.is_shared,
            mime=document.mime,
            size_bytes=document.size_bytes,
            metadata=document.metadata,
            has_content=document.has_content,
            chunk_count=chunk_count,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )


class DocumentDetailResponse(DocumentResponse):
    content: str | None = None


class IngestResponse(BaseModel):
    document_id: str
    status: Literal["processed", "partial", "failed", "empty"]
    stats: dict[str, int]
    detail: str | None = None

    @classmethod
    def from_result(cls, result: IngestResult) -> "IngestResponse":
        return cls(
            document_id=result.document_id,
            status=result.status,
            stats=result.stats.to_dict(),
            detail=result.detail,
        )


class UploadResponse(BaseModel):
    document: DocumentResponse
    ingest: IngestResponse | None = None


class ChunkResponse(BaseModel):
    id: str
    document_id: str
    chunk_index: int
    content: str
    embedding_model: str | None
    embedding_dim: int | None
    embedding_backend: str | None
    metadata: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_entity(cls, chunk: Chunk) -> "ChunkResponse":
        return cls(
            id=chunk.id,
            document_id=chunk.document_id,
            chunk_index=chunk.chunk_index,
            content=chunk.content,
            embedding_model=chunk.embedding_model,
            embedding_dim=chunk.embedding_dim,
            embedding_backend=chunk.embedding_backend,
            metadata=chunk.metadata,
            created_at=chunk.created_at,
        )


class SearchRequest(BaseModel):
    query: str
    document_ids: list[str] | None = None
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    limit: int | None = Field(default=None, ge=1, le=50)


class SearchResult(BaseModel):
    chunk_id: str
    document_id: str
    document_title: str | None
    chunk_index: int
    content: str
    similarity: float
    score_kind: ScoreKindName

    @classmethod
    def from_result(cls, result: RetrievalResult) -> "SearchResult":
        return cls(
            chunk_id=result.chunk_id,
            document_id=result.document_id,
            document_title=result.document_title,
            chunk_index=result.chunk_index,
            content=result.content,
            similarity=result.similarity,
            score_kind=result.score_kind.value,
        )


class SourceResponse(BaseModel):
    document_id: str
    document_title: str
    similarity: float
    score_kind: ScoreKindName
    preview: str

    @classmethod
    def from_source(cls, source: Source) -> "SourceResponse":
        return cls(**source.to_dict())


class SearchResponse(BaseModel):
    results: list[SearchResult]
    context: str
    sources: list[SourceResponse]
    has_context: bool


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)
    document_ids: list[str] | None = None


class ChatResponse(BaseModel):
    response: str
    sources: list[SourceResponse]
    has_context: bool
    fallback: bool


class TitleRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)


class TitleResponse(BaseModel):
    title: str


class DeleteResponse(BaseModel):
    status: Literal["ok"]
    deleted: int


class HealthResponse(BaseModel):
    ok: bool
    full_text_available: bool


__all__ = [
    "DocumentTextRequest",
    "ProcessRequest",
    "DocumentResponse",
    "DocumentDetailResponse",
    "IngestResponse",
    "UploadResponse",
    "ChunkResponse",
    "SearchRequest",
    "SearchResult",
    "SearchResponse",
    "SourceResponse",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "TitleRequest",
    "TitleResponse",
    "DeleteResponse",
    "HealthResponse",
]
