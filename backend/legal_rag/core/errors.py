"""Exception types raised across the retrieval backend."""

from __future__ import annotations


class LegalRagError(Exception):
    """Base class for errors raised by this package."""


class EmbeddingServiceError(LegalRagError):
    """The embedding service failed or returned an unusable vector."""


class SearchBackendError(LegalRagError):
    """A chunk store search strategy failed."""

    def __init__(self, strategy: str, message: str) -> None:
        super().__init__(f"{strategy} search failed: {message}")
        self.strategy = strategy


class ChatServiceError(LegalRagError):
    """The response-generation service failed."""


class DocumentNotFoundError(LegalRagError):
    """No document exists for the requested id."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class UnsupportedDocumentError(LegalRagError):
    """An upload has a file type or size the loaders do not accept."""


class InvalidRequestError(LegalRagError, ValueError):
    """Caller input is empty, too long or otherwise unusable."""


__all__ = [
    "LegalRagError",
    "EmbeddingServiceError",
    "SearchBackendError",
    "ChatServiceError",
    "DocumentNotFoundError",
    "UnsupportedDocumentError",
    "InvalidRequestError",
]
