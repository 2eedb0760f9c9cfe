"""Retrieval-augmented chat orchestration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from legal_rag.chat.client import ChatClient
from legal_rag.chat.prompts import (
    build_system_prompt,
    build_title_prompt,
    clean_title,
    fallback_response,
    mentions_attachment,
)
from legal_rag.core.config import Settings
from legal_rag.core.errors import ChatServiceError, InvalidRequestError
from legal_rag.core.logging import get_logger, log_context
from legal_rag.core.metrics import CHAT_REQUESTS
from legal_rag.db.documents import DocumentStore
from legal_rag.retrieval.context import Source, assemble_context
from legal_rag.retrieval.search import RetrievalResult, Retriever, document_result

logger = get_logger(__name__)

DEFAULT_TITLE = "New conversation"
SELECTED_DOCUMENT_SIMILARITY = 0.95
# Documents with less text than this are not worth quoting.
MIN_DOCUMENT_CHARS = 20


@dataclass(slots=True)
class ChatAnswer:
    response: str
    sources: list[Source] = field(default_factory=list)
    has_context: bool = False
    fallback: bool = False


class ChatService:
    """Answer the latest user message, grounded in the selected documents.

    When no chunk of the selected documents matches the question, the
    documents' own text (capped at ``document_context_chars`` each) becomes the
    context, so a selected document is never silently ignored.
    """

    def __init__(
        self,
        retriever: Retriever,
        documents: DocumentStore,
        client: ChatClient,
        settings: Settings,
    ) -> None:
        self.retriever = retriever
        self.documents = documents
        self.client = client
        self.settings = settings

    def answer(
        self,
        messages: Sequence[Mapping[str, str]],
        document_ids: Sequence[str] | None = None,
    ) -> ChatAnswer:
        query = self._validated_query(messages)
        ids = list(dict.fromkeys(document_ids)) if document_ids else []
        results: list[RetrievalResult] = []
        if ids:
            results = self.retriever.search(
                query,
                ids,
                threshold=self.settings.chat_search_threshold,
                limit=self.settings.chat_search_limit,
            )
            if not results:
                results = self._selected_documents(ids)
        assembled = assemble_context(results, preview_chars=self.settings.preview_chars)
        context = log_context(document_ids=ids, results=len(results))
        if ids and not assembled.has_context:
            logger.info("Selected documents have no readable content", extra=context)

        system_prompt = build_system_prompt(assembled.context, assembled.has_context, mentions_attachment(query))
        try:
            response = self.client.chat([{"role": "system", "content": system_prompt}, *messages])
        except ChatServiceError as exc:
            CHAT_REQUESTS.labels(outcome="fallback").inc()
            logger.warning("Chat model unavailable, returning canned answer: %s", exc, extra=context)
            return ChatAnswer(
                response=fallback_response(query, assembled.context),
                sources=assembled.sources,
                has_context=assembled.has_context,
                fallback=True,
            )
        CHAT_REQUESTS.labels(outcome="model").inc()
        return ChatAnswer(response=response, sources=assembled.sources, has_context=assembled.has_context)

    def generate_title(self, messages: Sequence[Mapping[str, str]]) -> str:
        """Ask the model for a short conversation title, falling back to the first question."""
        if not messages:
            raise InvalidRequestError("At least one message is required")
        try:
            raw = self.client.chat([{"role": "user", "content": build_title_prompt(messages)}])
        except ChatServiceError as exc:
            logger.warning("Chat model unavailable for title generation: %s", exc)
            raw = next((m["content"] for m in messages if m.get("role") == "user"), "")
        return clean_title(raw) or DEFAULT_TITLE

    def _selected_documents(self, document_ids: list[str]) -> list[RetrievalResult]:
        logger.info(
            "No chunks matched, using the selected documents in full",
            extra=log_context(document_ids=document_ids),
        )
        return [
            document_result(document, SELECTED_DOCUMENT_SIMILARITY, self.settings.document_context_chars)
            for document in self.documents.get_many(document_ids)
            if len((document.content or "").strip()) > MIN_DOCUMENT_CHARS
        ]

    def _validated_query(self, messages: Sequence[Mapping[str, str]]) -> str:
        if not messages:
            raise InvalidRequestError("At least one message is required")
        last = messages[-1]
        if last.get("role") != "user":
            raise InvalidRequestError("The last message must come from the user")
        query = (last.get("content") or "").strip()
        if not query:
            raise InvalidRequestError("Message cannot be empty")
        if len(query) > self.settings.max_query_chars:
            raise InvalidRequestError(f"Message exceeds {self.settings.max_query_chars} characters")
        return query


__all__ = ["ChatService", "ChatAnswer"]
