"""Ingest pipeline orchestration."""

from __future__ import annotations

import sqlite3
import time
from typing import Any, Callable, Mapping

from legal_rag.core.config import Settings
from legal_rag.core.logging import get_logger, log_context
from legal_rag.core.metrics import CHUNKS_FAILED, CHUNKS_PERSISTED, INGEST_DURATION
from legal_rag.db.chunks import ChunkStore
from legal_rag.db.documents import DocumentStore
from legal_rag.ingest.chunker import build_chunk_payloads, chunk_text
from legal_rag.ingest.embeddings import Embedder
from legal_rag.ingest.types import ChunkPayload, IngestResult, IngestStats

logger = get_logger(__name__)


class IngestPipeline:
    """Coordinate chunking, embeddings, and persistence for one document at a time."""

    def __init__(
        self,
        document_store: DocumentStore,
        chunk_store: ChunkStore,
        embedder: Embedder,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.documents = document_store
        self.chunks = chunk_store
        self.embedder = embedder
        self.settings = settings
        self._sleep = sleep

    def process_document(self, document_id: str, metadata: Mapping[str, Any] | None = None) -> IngestResult:
        """Chunk and embed the text already stored on the document."""
        document = self.documents.get(document_id)
        tags = {"document_title": document.title, **(metadata or {})}
        return self.process_document_text(document_id, document.content or "", tags)

    def process_document_text(
        self,
        document_id: str,
        text: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> IngestResult:
        """Replace the document's chunks with freshly embedded chunks of ``text``.

        Chunks are embedded and written one by one with a fixed pause between
        them. A chunk that fails to persist is logged and skipped, so the
        stored indexes may have gaps.
        """
        start_time = time.perf_counter()
        context = log_context(document_id=document_id)
        stats = IngestStats()
        removed = self.chunks.delete_for_document(document_id)
        if removed:
            logger.info("Removed %s existing chunks before reprocessing", removed, extra=context)

        payloads = build_chunk_payloads(
            document_id,
            chunk_text(text, self.settings.chunk_max_size, self.settings.chunk_min_length),
            metadata,
        )
        stats.chunks = len(payloads)
        if not payloads:
            logger.warning("Document produced no chunks", extra=context)
            INGEST_DURATION.observe(time.perf_counter() - start_time)
            return IngestResult(document_id=document_id, status="empty", stats=stats)

        persisted: list[int] = []
        delay = self.settings.ingest_chunk_delay_ms / 1000.0
        for position, payload in enumerate(payloads):
            if position and delay > 0:
                self._sleep(delay)
            if self._persist_chunk(payload, stats):
                persisted.append(payload.chunk_index)

        INGEST_DURATION.observe(time.perf_counter() - start_time)
        status = "processed" if stats.failed == 0 else ("partial" if persisted else "failed")
        logger.info(
            "Processed document: %s of %s chunks stored",
            stats.persisted,
            stats.chunks,
            extra=log_context(document_id=document_id, **stats.to_dict()),
        )
        return IngestResult(document_id=document_id, status=status, stats=stats, chunk_indexes=persisted)

    def _persist_chunk(self, payload: ChunkPayload, stats: IngestStats) -> bool:
        embedding = self.embedder.encode(payload.content)
        if embedding.degraded:
            stats.degraded += 1
        try:
            self.chunks.insert_chunk(
                document_id=payload.document_id,
                content=payload.content,
                embedding=embedding.vector,
                chunk_index=payload.chunk_index,
                metadata=payload.metadata,
                embedding_model=embedding.model,
                embedding_backend=embedding.backend,
            )
        except sqlite3.Error as exc:
            stats.failed += 1
            CHUNKS_FAILED.inc()
            logger.error(
                "Failed to store chunk %s: %s",
                payload.chunk_index,
                exc,
                extra=log_context(document_id=payload.document_id, chunk_index=payload.chunk_index),
            )
            return False
        stats.persisted += 1
        CHUNKS_PERSISTED.inc()
        return True


__all__ = ["IngestPipeline"]
