"""Chunk retrieval with a vector -> full-text -> substring cascade."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from legal_rag.core.config import Settings
from legal_rag.core.errors import SearchBackendError
from legal_rag.core.logging import get_logger, log_context
from legal_rag.core.metrics import SEARCH_LATENCY, SEARCH_REQUESTS
from legal_rag.db.chunks import ChunkHit, ChunkStore
from legal_rag.ingest.embeddings import OLLAMA_BACKEND, Embedder
from legal_rag.models.entities import Document
from legal_rag.retrieval.query_parser import QuerySyntaxError, to_fts_query
from legal_rag.retrieval.vector_index import VectorIndex
from legal_rag.utils.text import truncate

logger = get_logger(__name__)


class ScoreKind(str, Enum):
    """How a result's similarity was obtained.

    Only ``VECTOR`` scores are real distances. ``LEXICAL``, ``SUBSTRING`` and
    ``DOCUMENT`` results carry a fixed placeholder that is meant for display and
    must not be compared across queries or held against a quality threshold.
    ``DOCUMENT`` marks a whole selected document used when no chunk matched.
    """

    VECTOR = "vector"
    LEXICAL = "lexical"
    SUBSTRING = "substring"
    DOCUMENT = "document"


@dataclass(slots=True)
class RetrievalResult:
    chunk_id: str
    document_id: str
    document_title: str | None
    content: str
    chunk_index: int
    similarity: float
    score_kind: ScoreKind
    metadata: dict[str, Any] = field(default_factory=dict)


class Retriever:
    """Finds the chunks most relevant to a query, never raising on backend failure."""

    def __init__(
        self,
        chunk_store: ChunkStore,
        embedder: Embedder | None = None,
        fallback_similarity: float = 0.8,
        vector_search_enabled: bool = False,
    ) -> None:
        self.chunk_store = chunk_store
        self.embedder = embedder
        self.fallback_similarity = fallback_similarity
        self.vector_search_enabled = vector_search_enabled and embedder is not None

    @classmethod
    def from_settings(cls, settings: Settings, chunk_store: ChunkStore, embedder: Embedder | None = None) -> "Retriever":
        return cls(
            chunk_store=chunk_store,
            embedder=embedder,
            fallback_similarity=settings.fallback_similarity,
            vector_search_enabled=settings.vector_search_enabled,
        )

    def search(
        self,
        query: str,
        document_ids: Sequence[str] | None = None,
        threshold: float = 0.7,
        limit: int = 5,
    ) -> list[RetrievalResult]:
        """Return up to ``limit`` results, most relevant first.

        ``threshold`` only applies to vector ranking; the lexical strategies
        cannot compute a comparable similarity and ignore it. A full-text query
        that matches nothing with every word required is retried with any word
        matching, still ordered by rank.
        """
        start_time = time.perf_counter()
        try:
            return self._search(query, document_ids, threshold, limit)
        finally:
            SEARCH_LATENCY.observe(time.perf_counter() - start_time)

    def _search(
        self,
        query: str,
        document_ids: Sequence[str] | None,
        threshold: float,
        limit: int,
    ) -> list[RetrievalResult]:
        query = (query or "").strip()
        if not query or limit <= 0:
            return []
        ids = list(dict.fromkeys(document_ids)) if document_ids else None
        context = log_context(query_length=len(query), document_ids=ids, limit=limit)

        if self.vector_search_enabled:
            try:
                vector_results = self._vector_search(query, ids, threshold, limit)
            except SearchBackendError as exc:
                SEARCH_REQUESTS.labels(strategy="vector", outcome="error").inc()
                logger.warning("Vector search failed, trying full-text search: %s", exc, extra=context)
            else:
                if vector_results is not None:
                    SEARCH_REQUESTS.labels(strategy="vector", outcome="ok").inc()
                    return vector_results
                SEARCH_REQUESTS.labels(strategy="vector", outcome="skipped").inc()

        try:
            hits = self._full_text_search(query, ids, limit)
        except (SearchBackendError, QuerySyntaxError) as exc:
            SEARCH_REQUESTS.labels(strategy="full_text", outcome="error").inc()
            logger.warning("Full-text search failed, falling back to substring search: %s", exc, extra=context)
        else:
            SEARCH_REQUESTS.labels(strategy="full_text", outcome="ok").inc()
            return [self._lexical_result(hit, ScoreKind.LEXICAL) for hit in hits]

        try:
            hits = self.chunk_store.substring_search(query, ids, limit)
        except SearchBackendError as exc:
            SEARCH_REQUESTS.labels(strategy="substring", outcome="error").inc()
            logger.error("All search strategies failed, returning no context: %s", exc, extra=context)
            return []
        SEARCH_REQUESTS.labels(strategy="substring", outcome="ok").inc()
        return [self._lexical_result(hit, ScoreKind.SUBSTRING) for hit in hits]

    def _vector_search(
        self,
        query: str,
        document_ids: list[str] | None,
        threshold: float,
        limit: int,
    ) -> list[RetrievalResult] | None:
        """Rank stored model embeddings; ``None`` means the strategy cannot be used."""
        embedding = self.embedder.encode(query)
        if embedding.degraded:
            logger.info("Query embedding is a fallback vector, skipping vector ranking")
            return None
        candidates = self.chunk_store.embedded_chunks(embedding.dim, OLLAMA_BACKEND, document_ids)
        if not candidates:
            return None
        index = VectorIndex(dim=embedding.dim)
        index.upsert([hit.chunk_id for hit, _ in candidates], [vector for _, vector in candidates])
        hits_by_id: dict[str, ChunkHit] = {hit.chunk_id: hit for hit, _ in candidates}
        return [
            _to_result(hits_by_id[match.chunk_id], match.score, ScoreKind.VECTOR)
            for match in index.search(embedding.vector, top_k=limit, threshold=threshold)
        ]

    def _full_text_search(self, query: str, document_ids: list[str] | None, limit: int) -> list[ChunkHit]:
        strict = to_fts_query(query)
        hits = self.chunk_store.full_text_search(strict, document_ids, limit)
        if hits:
            return hits
        relaxed = to_fts_query(query, match_any=True)
        if relaxed == strict:
            return hits
        logger.debug("No chunk holds every query term, matching any term instead")
        return self.chunk_store.full_text_search(relaxed, document_ids, limit)

    def _lexical_result(self, hit: ChunkHit, kind: ScoreKind) -> RetrievalResult:
        return _to_result(hit, self.fallback_similarity, kind)


def document_result(document: Document, similarity: float, max_chars: int) -> RetrievalResult:
    """Present a whole document as one result; ``chunk_id`` carries the document id."""
    return RetrievalResult(
        chunk_id=document.id,
        document_id=document.id,
        document_title=document.title,
        content=truncate(document.content or "", max_chars),
        chunk_index=0,
        similarity=similarity,
        score_kind=ScoreKind.DOCUMENT,
        metadata=dict(document.metadata),
    )


def _to_result(hit: ChunkHit, similarity: float, kind: ScoreKind) -> RetrievalResult:
    return RetrievalResult(
        chunk_id=hit.chunk_id,
        document_id=hit.document_id,
        document_title=hit.document_title,
        content=hit.content,
        chunk_index=hit.chunk_index,
        similarity=similarity,
        score_kind=kind,
        metadata=hit.metadata,
    )


__all__ = ["Retriever", "RetrievalResult", "ScoreKind", "document_result"]
