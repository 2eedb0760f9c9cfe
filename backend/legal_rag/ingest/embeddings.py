"""Embedding utilities."""

from __future__ import annotations

import hashlib
import math
import re
from array import array
from dataclasses import dataclass
from typing import Sequence

import requests

from legal_rag.core.config import Settings
from legal_rag.core.errors import EmbeddingServiceError
from legal_rag.core.logging import get_logger, log_context
from legal_rag.core.metrics import EMBEDDING_REQUESTS

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+")

OLLAMA_BACKEND = "ollama"
HASHED_BACKEND = "hashed"


@dataclass(slots=True)
class EmbeddingResult:
    vector: list[float]
    model: str
    dim: int
    backend: str

    @property
    def degraded(self) -> bool:
        return self.backend == HASHED_BACKEND


class HashedEmbedding:
    """Deterministic bag-of-words vector used when the model is unreachable.

    Rankings built on these vectors carry no semantic meaning; they only keep
    stored records dimensionally consistent.
    """

    model_name = "hashed"

    def __init__(self, dim: int) -> None:
        self.dim = dim

    def encode(self, text: str) -> list[float]:
        vector = [0.0] * self.dim
        for token in _tokenize(text):
            vector[_hash_token(token, self.dim)] += 1.0
        _normalize(vector)
        return vector


class OllamaEmbeddingClient:
    """Calls the Ollama ``/api/embeddings`` endpoint."""

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/embeddings"

    def embed(self, prompt: str) -> list[float]:
        try:
            resp = self._session.post(
                self.endpoint,
                json={"model": self.model, "prompt": prompt},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise EmbeddingServiceError(f"Ollama embedding request failed: {exc}") from exc
        embedding = payload.get("embedding") if isinstance(payload, dict) else None
        if not embedding:
            raise EmbeddingServiceError("Ollama response does not contain an embedding")
        try:
            return [float(value) for value in embedding]
        except (TypeError, ValueError) as exc:
            raise EmbeddingServiceError(f"Ollama returned a non-numeric embedding: {exc}") from exc


class Embedder:
    """Turns chunk or query text into a fixed-length vector."""

    def __init__(
        self,
        client: OllamaEmbeddingClient,
        dim: int,
        max_chars: int = 2000,
        fallback: HashedEmbedding | None = None,
    ) -> None:
        self.client = client
        self.dim = dim
        self.max_chars = max_chars
        self.fallback = fallback or HashedEmbedding(dim)

    @classmethod
    def from_settings(cls, settings: Settings, session: requests.Session | None = None) -> "Embedder":
        client = OllamaEmbeddingClient(
            base_url=settings.ollama_base_url,
            model=settings.embedding_model,
            timeout=settings.embedding_timeout,
            session=session,
        )
        return cls(client=client, dim=settings.embedding_dim, max_chars=settings.embedding_max_chars)

    @property
    def model_name(self) -> str:
        return self.client.model

    def prepare(self, text: str) -> str:
        """Flatten newlines and cap the text sent to the model."""
        return text.replace("\n", " ")[: self.max_chars]

    def encode(self, text: str, strict: bool = False) -> EmbeddingResult:
        """Embed ``text``; on failure return the hashed vector unless ``strict``."""
        prepared = self.prepare(text)
        try:
            vector = self.client.embed(prepared)
            if len(vector) != self.dim:
                raise EmbeddingServiceError(
                    f"Model {self.model_name} returned {len(vector)} dimensions, expected {self.dim}"
                )
        except EmbeddingServiceError as exc:
            if strict:
                raise
            EMBEDDING_REQUESTS.labels(outcome="fallback").inc()
            logger.warning(
                "Embedding service unavailable, using hashed fallback vector: %s",
                exc,
                extra=log_context(model=self.model_name, text_length=len(prepared)),
            )
            return EmbeddingResult(
                vector=self.fallback.encode(prepared),
                model=self.fallback.model_name,
                dim=self.dim,
                backend=HASHED_BACKEND,
            )
        EMBEDDING_REQUESTS.labels(outcome="ok").inc()
        return EmbeddingResult(vector=vector, model=self.model_name, dim=self.dim, backend=OLLAMA_BACKEND)

    def embed(self, text: str) -> list[float]:
        return self.encode(text).vector


def vector_to_bytes(vector: Sequence[float]) -> bytes:
    return array("f", vector).tobytes()


def bytes_to_vector(data: bytes) -> list[float]:
    floats = array("f")
    floats.frombytes(data)
    return list(floats)


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "Embedder",
    "EmbeddingResult",
    "HashedEmbedding",
    "OllamaEmbeddingClient",
    "OLLAMA_BACKEND",
    "HASHED_BACKEND",
    "vector_to_bytes",
    "bytes_to_vector",
]
