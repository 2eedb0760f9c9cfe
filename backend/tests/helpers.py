"""Sample documents and in-process stand-ins for the Ollama HTTP services."""

from __future__ import annotations

from typing import Any

import requests

from legal_rag.core.errors import ChatServiceError, EmbeddingServiceError
from legal_rag.ingest.embeddings import HashedEmbedding

LEASE_TEXT = (
    "The tenant shall maintain insurance for the premises at all times during the term. "
    "The liability clause limits damages to the amount of fees paid in the prior twelve months. "
    "Either party may terminate this agreement with thirty days written notice."
)

SERVICES_TEXT = (
    "The liability clause in this services contract caps exposure at five million dollars. "
    "Payment is due within forty five days of each invoice date."
)


class FakeEmbeddingClient:
    """Returns bag-of-words vectors so identical text embeds identically."""

    def __init__(self, dim: int = 32, fail: bool = False, model: str = "fake-embed") -> None:
        self.model = model
        self.dim = dim
        self.fail = fail
        self.prompts: list[str] = []
        self._hasher = HashedEmbedding(dim)

    def embed(self, prompt: str) -> list[float]:
        self.prompts.append(prompt)
        if self.fail:
            raise EmbeddingServiceError("embedding service down")
        return self._hasher.encode(prompt)


class FakeChatClient:
    def __init__(self, reply: str = "Stub answer", fail: bool = False) -> None:
        self.reply = reply
        self.fail = fail
        self.calls: list[list[dict[str, str]]] = []

    def chat(self, messages) -> str:
        self.calls.append([dict(message) for message in messages])
        if self.fail:
            raise ChatServiceError("chat model down")
        return self.reply


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[dict[str, Any]] = []

    def post(self, url: str, json: Any = None, timeout: float | None = None) -> FakeResponse:
        self.requests.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response
