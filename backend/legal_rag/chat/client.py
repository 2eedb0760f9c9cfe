"""HTTP client for the Ollama chat endpoint."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import requests

from legal_rag.core.config import Settings
from legal_rag.core.errors import ChatServiceError


class ChatClient:
    """Sends non-streaming chat requests to ``/api/chat``."""

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 120.0,
        options: Mapping[str, Any] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.options = dict(options or {})
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings, session: requests.Session | None = None) -> "ChatClient":
        return cls(
            base_url=settings.ollama_base_url,
            model=settings.chat_model,
            timeout=settings.chat_timeout,
            options={
                "temperature": settings.chat_temperature,
                "top_p": settings.chat_top_p,
                "top_k": settings.chat_top_k,
                "num_ctx": settings.chat_num_ctx,
            },
            session=session,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/chat"

    def chat(self, messages: Sequence[Mapping[str, str]]) -> str:
        """Return the assistant reply text; raise :class:`ChatServiceError` on any failure."""
        payload = {
            "model": self.model,
            "messages": [dict(message) for message in messages],
            "stream": False,
            "options": self.options,
        }
        try:
            resp = self._session.post(self.endpoint, json=payload, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise ChatServiceError(f"Ollama chat request failed: {exc}") from exc
        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if content is None:
            raise ChatServiceError("Ollama chat response does not contain a message")
        return content


__all__ = ["ChatClient"]
