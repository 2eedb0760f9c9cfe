"""Test fixtures for the legal document assistant."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from helpers import FakeChatClient, FakeEmbeddingClient  # noqa: E402

from legal_rag.api.dependencies import ServiceContainer  # noqa: E402
from legal_rag.core.config import Settings, get_settings  # noqa: E402
from legal_rag.db.chunks import ChunkStore  # noqa: E402
from legal_rag.db.documents import DocumentStore  # noqa: E402
from legal_rag.db.sqlite import SQLiteDatabase  # noqa: E402
from legal_rag.ingest.embeddings import Embedder  # noqa: E402
from legal_rag.ingest.pipeline import IngestPipeline  # noqa: E402

EMBEDDING_DIM = 32


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate configuration between tests."""
    for key in [key for key in os.environ if key.startswith("LRAG_")]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LRAG_DB_PATH", str(tmp_path / "env.db"))
    monkeypatch.setenv("LRAG_INGEST_CHUNK_DELAY_MS", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        db_path=tmp_path / "legal_rag.db",
        embedding_dim=EMBEDDING_DIM,
        chunk_max_size=120,
        ingest_chunk_delay_ms=0,
        log_json=False,
    )


@pytest.fixture
def db(settings: Settings) -> SQLiteDatabase:
    database = SQLiteDatabase(settings.db_path)
    database.ensure_schema()
    yield database
    database.close()


@pytest.fixture
def documents(db: SQLiteDatabase) -> DocumentStore:
    return DocumentStore(db)


@pytest.fixture
def chunks(db: SQLiteDatabase, settings: Settings) -> ChunkStore:
    return ChunkStore(db, search_timeout=settings.search_timeout)


@pytest.fixture
def embedding_client() -> FakeEmbeddingClient:
    return FakeEmbeddingClient(dim=EMBEDDING_DIM)


@pytest.fixture
def embedder(embedding_client: FakeEmbeddingClient) -> Embedder:
    return Embedder(client=embedding_client, dim=EMBEDDING_DIM)


@pytest.fixture
def pipeline(documents: DocumentStore, chunks: ChunkStore, embedder: Embedder, settings: Settings) -> IngestPipeline:
    return IngestPipeline(documents, chunks, embedder, settings)


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def services(settings: Settings, embedder: Embedder, chat_client: FakeChatClient) -> ServiceContainer:
    container = ServiceContainer.from_settings(settings, embedder=embedder, chat_client=chat_client)
    yield container
    container.close()


@pytest.fixture
def require_fts(db: SQLiteDatabase) -> None:
    if not db.full_text_available:
        pytest.skip("SQLite build lacks FTS5")
