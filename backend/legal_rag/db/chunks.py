"""Chunk persistence and lexical search."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Sequence

import orjson

from legal_rag.core.errors import SearchBackendError
from legal_rag.db.sqlite import SQLiteDatabase, iter_rows
from legal_rag.ingest.embeddings import bytes_to_vector, vector_to_bytes
from legal_rag.models.entities import Chunk
from legal_rag.utils.ids import new_chunk_id
from legal_rag.utils.time import ms_to_datetime, now_ms

_HIT_COLUMNS = """
  chunks.id AS chunk_id,
  chunks.document_id,
  chunks.chunk_index,
  chunks.content,
  chunks.meta_json,
  documents.title AS document_title
"""


@dataclass(slots=True)
class ChunkHit:
    """A chunk matched by a store query, joined with its document title."""

    chunk_id: str
    document_id: str
    document_title: str | None
    chunk_index: int
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


class ChunkStore:
    """Stores chunks with their embeddings and answers lexical queries over them."""

    def __init__(self, db: SQLiteDatabase, search_timeout: float | None = None) -> None:
        self.db = db
        self.search_timeout = search_timeout

    def insert_chunk(
        self,
        document_id: str,
        content: str,
        embedding: Sequence[float] | None,
        chunk_index: int,
        metadata: dict[str, Any] | None = None,
        embedding_model: str | None = None,
        embedding_backend: str | None = None,
    ) -> str:
        chunk_id = new_chunk_id()
        self.db.write(
            """
            INSERT INTO chunks (
              id, document_id, chunk_index, content, embedding, embedding_model,
              embedding_dim, embedding_backend, meta_json, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                chunk_id,
                document_id,
                chunk_index,
                content,
                vector_to_bytes(embedding) if embedding is not None else None,
                embedding_model,
                len(embedding) if embedding is not None else None,
                embedding_backend,
                orjson.dumps(metadata or {}).decode("utf-8"),
                now_ms(),
            ],
        )
        return chunk_id

    def delete_for_document(self, document_id: str) -> int:
        return self.db.write("DELETE FROM chunks WHERE document_id = ?", [document_id])

    def count(self, document_id: str | None = None) -> int:
        if document_id is None:
            row = self.db.query_one("SELECT COUNT(*) AS count FROM chunks")
        else:
            row = self.db.query_one("SELECT COUNT(*) AS count FROM chunks WHERE document_id = ?", [document_id])
        return int(row["count"]) if row else 0

    def full_text_search(
        self,
        fts_query: str,
        document_ids: Sequence[str] | None = None,
        limit: int = 5,
    ) -> list[ChunkHit]:
        """Run an FTS5 MATCH query, best matches first."""
        filter_sql, params = _document_filter(document_ids)
        sql = f"""
            SELECT {_HIT_COLUMNS}, bm25(chunks_fts) AS bm25_score
            FROM chunks_fts
            JOIN chunks ON chunks.rowid = chunks_fts.rowid
            JOIN documents ON documents.id = chunks.document_id
            WHERE chunks_fts MATCH ?{filter_sql}
            ORDER BY bm25_score ASC
            LIMIT ?
        """
        return self._search("full_text", sql, [fts_query, *params, limit])

    def substring_search(
        self,
        text: str,
        document_ids: Sequence[str] | None = None,
        limit: int = 5,
    ) -> list[ChunkHit]:
        """Case-insensitive contains match, in document and chunk order."""
        filter_sql, params = _document_filter(document_ids)
        sql = f"""
            SELECT {_HIT_COLUMNS}
            FROM chunks
            JOIN documents ON documents.id = chunks.document_id
            WHERE chunks.content LIKE ? ESCAPE '\\'{filter_sql}
            ORDER BY chunks.document_id, chunks.chunk_index
            LIMIT ?
        """
        return self._search("substring", sql, [f"%{_escape_like(text)}%", *params, limit])

    def chunks_for_documents(self, document_ids: Sequence[str]) -> list[Chunk]:
        """All chunks of the given documents in reading order."""
        if not document_ids:
            return []
        filter_sql, params = _document_filter(document_ids)
        rows = self.db.query(
            f"""
            SELECT id, document_id, chunk_index, content, embedding, embedding_model,
                   embedding_dim, embedding_backend, meta_json, created_at
            FROM chunks
            WHERE 1 = 1{filter_sql}
            ORDER BY document_id, chunk_index
            """,
            params,
        )
        return [_row_to_chunk(row) for row in rows]

    def embedded_chunks(
        self,
        dim: int,
        backend: str,
        document_ids: Sequence[str] | None = None,
    ) -> list[tuple[ChunkHit, list[float]]]:
        """Return chunks whose stored vector has ``dim`` dimensions and came from ``backend``."""
        filter_sql, params = _document_filter(document_ids)
        sql = f"""
            SELECT {_HIT_COLUMNS}, chunks.embedding
            FROM chunks
            JOIN documents ON documents.id = chunks.document_id
            WHERE chunks.embedding IS NOT NULL
              AND chunks.embedding_dim = ?
              AND chunks.embedding_backend = ?{filter_sql}
            ORDER BY chunks.rowid ASC
        """
        found: list[tuple[ChunkHit, list[float]]] = []
        try:
            with self.db.deadline(self.search_timeout):
                cursor = self.db.execute(sql, [dim, backend, *params])
                for row in iter_rows(cursor):
                    found.append((_row_to_hit(row), bytes_to_vector(row["embedding"])))
        except (sqlite3.Error, ValueError) as exc:
            raise SearchBackendError("vector", str(exc)) from exc
        return found

    def _search(self, strategy: str, sql: str, params: list[Any]) -> list[ChunkHit]:
        # ValueError covers undecodable meta_json rows
        try:
            with self.db.deadline(self.search_timeout):
                rows = self.db.query(sql, params)
            return [_row_to_hit(row) for row in rows]
        except (sqlite3.Error, ValueError) as exc:
            raise SearchBackendError(strategy, str(exc)) from exc


def _document_filter(document_ids: Sequence[str] | None) -> tuple[str, list[Any]]:
    if not document_ids:
        return "", []
    ids = list(dict.fromkeys(document_ids))
    placeholders = ",".join("?" for _ in ids)
    return f" AND chunks.document_id IN ({placeholders})", ids


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_hit(row: sqlite3.Row) -> ChunkHit:
    return ChunkHit(
        chunk_id=row["chunk_id"],
        document_id=row["document_id"],
        document_title=row["document_title"],
        chunk_index=row["chunk_index"],
        content=row["content"],
        metadata=orjson.loads(row["meta_json"]) if row["meta_json"] else {},
    )


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        id=row["id"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        content=row["content"],
        embedding=bytes_to_vector(row["embedding"]) if row["embedding"] is not None else None,
        embedding_model=row["embedding_model"],
        embedding_dim=row["embedding_dim"],
        embedding_backend=row["embedding_backend"],
        created_at=ms_to_datetime(row["created_at"]),
        metadata=orjson.loads(row["meta_json"]) if row["meta_json"] else {},
    )


__all__ = ["ChunkStore", "ChunkHit"]
