"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

EMBEDDING_REQUESTS = Counter(
    "lrag_embedding_requests_total",
    "Embedding calls by outcome (ok, fallback)",
    labelnames=("outcome",),
    registry=REGISTRY,
)

SEARCH_REQUESTS = Counter(
    "lrag_search_requests_total",
    "Retrieval strategy attempts by outcome",
    labelnames=("strategy", "outcome"),
    registry=REGISTRY,
)

SEARCH_LATENCY = Histogram(
    "lrag_search_latency_seconds",
    "Latency of a full retrieval call",
    registry=REGISTRY,
)

CHUNKS_PERSISTED = Counter(
    "lrag_chunks_persisted_total",
    "Chunks written to the chunk store",
    registry=REGISTRY,
)

CHUNKS_FAILED = Counter(
    "lrag_chunks_failed_total",
    "Chunks that could not be persisted",
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "lrag_ingest_duration_seconds",
    "Duration of processing one document",
    registry=REGISTRY,
)

CHAT_REQUESTS = Counter(
    "lrag_chat_requests_total",
    "Chat answers by outcome (model, fallback)",
    labelnames=("outcome",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "EMBEDDING_REQUESTS",
    "SEARCH_REQUESTS",
    "SEARCH_LATENCY",
    "CHUNKS_PERSISTED",
    "CHUNKS_FAILED",
    "INGEST_DURATION",
    "CHAT_REQUESTS",
    "metrics_response",
]
