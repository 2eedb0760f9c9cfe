"""Document persistence."""

from __future__ import annotations

import sqlite3
from typing import Any, Sequence

import orjson

from legal_rag.core.errors import DocumentNotFoundError
from legal_rag.db.sqlite import SQLiteDatabase
from legal_rag.models.entities import Document
from legal_rag.utils.ids import new_document_id
from legal_rag.utils.time import ms_to_datetime, now_ms

_COLUMNS = "id, title, content, owner_id, is_shared, mime, size_bytes, meta_json, created_at, updated_at"


class DocumentStore:
    """Source of document text keyed by document id."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def create(
        self,
        title: str,
        content: str | None = None,
        owner_id: str | None = None,
        is_shared: bool = False,
        mime: str | None = None,
        size_bytes: int | None = None,
        metadata: dict[str, Any] | None = None,
        document_id: str | None = None,
    ) -> Document:
        document_id = document_id or new_document_id()
        now = now_ms()
        self.db.write(
            f"INSERT INTO documents ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                document_id,
                title,
                content,
                owner_id,
                int(is_shared),
                mime,
                size_bytes,
                orjson.dumps(metadata or {}).decode("utf-8"),
                now,
                now,
            ],
        )
        return self.get(document_id)

    def get(self, document_id: str) -> Document:
        row = self.db.query_one(f"SELECT {_COLUMNS} FROM documents WHERE id = ?", [document_id])
        if row is None:
            raise DocumentNotFoundError(document_id)
        return _row_to_document(row)

    def get_many(self, document_ids: Sequence[str]) -> list[Document]:
        """Return the known documents among ``document_ids`` in the requested order."""
        if not document_ids:
            return []
        placeholders = ",".join("?" for _ in document_ids)
        rows = self.db.query(
            f"SELECT {_COLUMNS} FROM documents WHERE id IN ({placeholders})",
            list(document_ids),
        )
        by_id = {row["id"]: _row_to_document(row) for row in rows}
        return [by_id[document_id] for document_id in dict.fromkeys(document_ids) if document_id in by_id]

    def list(self, owner_id: str | None = None, shared_only: bool = False) -> list[Document]:
        """List documents newest first.

        With ``owner_id`` the result holds that owner's documents plus shared
        ones; ``shared_only`` restricts to shared documents.
        """
        clauses: list[str] = []
        params: list[Any] = []
        if shared_only:
            clauses.append("is_shared = 1")
        elif owner_id is not None:
            clauses.append("(owner_id = ? OR is_shared = 1)")
            params.append(owner_id)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.db.query(f"SELECT {_COLUMNS} FROM documents{where} ORDER BY created_at DESC, rowid DESC", params)
        return [_row_to_document(row) for row in rows]

    def set_content(self, document_id: str, content: str | None) -> Document:
        updated = self.db.write(
            "UPDATE documents SET content = ?, updated_at = ? WHERE id = ?",
            [content, now_ms(), document_id],
        )
        if updated == 0:
            raise DocumentNotFoundError(document_id)
        return self.get(document_id)

    def delete(self, document_id: str) -> bool:
        """Delete a document; its chunks go with it through the foreign key cascade."""
        return self.db.write("DELETE FROM documents WHERE id = ?", [document_id]) > 0


def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        owner_id=row["owner_id"],
        is_shared=bool(row["is_shared"]),
        mime=row["mime"],
        size_bytes=row["size_bytes"],
        metadata=orjson.loads(row["meta_json"]) if row["meta_json"] else {},
        created_at=ms_to_datetime(row["created_at"]),
        updated_at=ms_to_datetime(row["updated_at"]),
    )


__all__ = ["DocumentStore"]
