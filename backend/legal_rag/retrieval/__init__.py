"""Retrieval orchestration components."""

from .context import AssembledContext, Source, assemble_context
from .query_parser import QuerySyntaxError, to_fts_query
from .search import RetrievalResult, Retriever, ScoreKind, document_result
from .vector_index import VectorIndex

__all__ = [
    "AssembledContext",
    "Source",
    "assemble_context",
    "QuerySyntaxError",
    "to_fts_query",
    "RetrievalResult",
    "Retriever",
    "ScoreKind",
    "document_result",
    "VectorIndex",
]
