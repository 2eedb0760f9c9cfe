"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ExtractedDocument:
    """Text pulled out of an uploaded file."""

    filename: str
    text: str
    mime: str
    title: str
    size_bytes: int
    metadata: dict[str, Any]


@dataclass(slots=True)
class ChunkPayload:
    """Chunk produced by the chunker prior to embedding and persistence."""

    document_id: str
    chunk_index: int
    content: str
    metadata: dict[str, Any]


@dataclass(slots=True)
class IngestStats:
    """Per-document ingest counters."""

    chunks: int = 0
    persisted: int = 0
    failed: int = 0
    degraded: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "chunks": self.chunks,
            "persisted": self.persisted,
            "failed": self.failed,
            "degraded": self.degraded,
        }


@dataclass(slots=True)
class IngestResult:
    """Outcome of processing one document's text."""

    document_id: str
    status: str
    stats: IngestStats = field(default_factory=IngestStats)
    detail: str | None = None
    chunk_indexes: list[int] = field(default_factory=list)


__all__ = [
    "ExtractedDocument",
    "ChunkPayload",
    "IngestStats",
    "IngestResult",
]
