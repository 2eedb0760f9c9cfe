"""Vector index abstraction."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence


@dataclass(slots=True)
class SearchResult:
    chunk_id: str
    score: float


class VectorIndex:
    """In-memory cosine-similarity index over vectors of a single dimension."""

    def __init__(self, dim: int) -> None:
        self.dim = dim
        self._ids: list[str] = []
        self._vectors: list[list[float]] = []

    @property
    def size(self) -> int:
        return len(self._vectors)

    def upsert(self, ids: Sequence[str], vectors: Sequence[Sequence[float]]) -> None:
        if len(ids) != len(vectors):
            raise ValueError("ids and vectors must have the same length")
        for vector in vectors:
            if len(vector) != self.dim:
                raise ValueError("Vector dimension mismatch")
        positions = {chunk_id: idx for idx, chunk_id in enumerate(self._ids)}
        for chunk_id, vector in zip(ids, vectors):
            normalized = _unit(vector)
            if chunk_id in positions:
                self._vectors[positions[chunk_id]] = normalized
            else:
                positions[chunk_id] = len(self._ids)
                self._ids.append(chunk_id)
                self._vectors.append(normalized)

    def search(
        self,
        vector: Sequence[float],
        top_k: int = 8,
        threshold: float = 0.0,
    ) -> list[SearchResult]:
        """Return up to ``top_k`` hits with similarity in [0, 1] at or above ``threshold``."""
        if not self._vectors or top_k <= 0:
            return []
        if len(vector) != self.dim:
            raise ValueError("Query vector dimension mismatch")
        query = _unit(vector)
        scored = [
            (idx, max(0.0, min(1.0, _dot(self._vectors[idx], query))))
            for idx in range(len(self._vectors))
        ]
        scored = [item for item in scored if item[1] >= threshold]
        scored.sort(key=lambda item: item[1], reverse=True)
        return [SearchResult(chunk_id=self._ids[idx], score=score) for idx, score in scored[:top_k]]


def _unit(vector: Sequence[float]) -> list[float]:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return [0.0] * len(vector)
    return [value / norm for value in vector]


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return sum(x * y for x, y in zip(a, b))


__all__ = ["VectorIndex", "SearchResult"]
