"""Internal dataclasses representing persisted entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class Document:
    id: str
    title: str
    content: str | None
    owner_id: str | None
    is_shared: bool
    mime: str | None
    size_bytes: int | None
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @property
    def has_content(self) -> bool:
        return bool(self.content and self.content.strip())


@dataclass(slots=True)
class Chunk:
    id: str
    document_id: str
    chunk_index: int
    content: str
    embedding: list[float] | None
    embedding_model: str | None
    embedding_dim: int | None
    embedding_backend: str | None
    created_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


__all__ = ["Document", "Chunk"]
