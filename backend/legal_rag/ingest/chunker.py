"""Sentence-bounded chunking."""

from __future__ import annotations

import re
from typing import Any, Iterable, Iterator, Mapping

from legal_rag.ingest.types import ChunkPayload
from legal_rag.utils.time import utc_now

_SENTENCE_END_RE = re.compile(r"[.!?]+")
SENTENCE_JOINER = ". "

DEFAULT_MAX_CHUNK_SIZE = 1000
DEFAULT_MIN_CHUNK_LENGTH = 50


def chunk_text(
    text: str | None,
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
    min_chunk_length: int = DEFAULT_MIN_CHUNK_LENGTH,
) -> list[str]:
    """Greedily pack sentences into chunks of at most ``max_chunk_size`` characters.

    A sentence that is longer than ``max_chunk_size`` on its own is emitted as a
    single oversized chunk rather than being cut. Chunks shorter than
    ``min_chunk_length`` are dropped. Text made only of punctuation and
    whitespace has no sentences and yields no chunks; there is no paragraph or
    word level fallback.
    """
    if not text or not text.strip():
        return []

    chunks: list[str] = []
    buffer = ""
    for sentence in _iter_sentences(text):
        if buffer and len(buffer) + len(SENTENCE_JOINER) + len(sentence) > max_chunk_size:
            chunks.append(buffer)
            buffer = sentence
        elif buffer:
            buffer = f"{buffer}{SENTENCE_JOINER}{sentence}"
        else:
            buffer = sentence

    if buffer:
        chunks.append(buffer)

    return [chunk for chunk in chunks if len(chunk) >= min_chunk_length]


def _iter_sentences(text: str) -> Iterator[str]:
    for candidate in _SENTENCE_END_RE.split(text):
        sentence = candidate.strip()
        if sentence:
            yield sentence


def build_chunk_payloads(
    document_id: str,
    chunks: Iterable[str],
    metadata: Mapping[str, Any] | None = None,
) -> list[ChunkPayload]:
    """Attach sequence indexes and processing metadata to raw chunk strings."""
    processed_at = utc_now().isoformat()
    payloads = []
    for chunk_index, content in enumerate(chunks):
        chunk_meta = dict(metadata or {})
        chunk_meta["processed_at"] = processed_at
        chunk_meta["chunk_length"] = len(content)
        payloads.append(
            ChunkPayload(
                document_id=document_id,
                chunk_index=chunk_index,
                content=content,
                metadata=chunk_meta,
            )
        )
    return payloads


__all__ = [
    "chunk_text",
    "build_chunk_payloads",
    "DEFAULT_MAX_CHUNK_SIZE",
    "DEFAULT_MIN_CHUNK_LENGTH",
]
