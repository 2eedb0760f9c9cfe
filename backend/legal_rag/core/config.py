"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "LRAG_"
DEFAULT_CONFIG_PATH = Path("~/.config/legal-rag/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("ollama", "base_url"): "ollama_base_url",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "dim"): "embedding_dim",
    ("embeddings", "max_chars"): "embedding_max_chars",
    ("embeddings", "timeout"): "embedding_timeout",
    ("chat", "model"): "chat_model",
    ("chat", "timeout"): "chat_timeout",
    ("chat", "temperature"): "chat_temperature",
    ("chat", "top_p"): "chat_top_p",
    ("chat", "top_k"): "chat_top_k",
    ("chat", "num_ctx"): "chat_num_ctx",
    ("chat", "search_threshold"): "chat_search_threshold",
    ("chat", "search_limit"): "chat_search_limit",
    ("chat", "max_query_chars"): "max_query_chars",
    ("chat", "document_context_chars"): "document_context_chars",
    ("chunking", "max_size"): "chunk_max_size",
    ("chunking", "min_length"): "chunk_min_length",
    ("ingest", "chunk_delay_ms"): "ingest_chunk_delay_ms",
    ("ingest", "max_upload_bytes"): "max_upload_bytes",
    ("retrieval", "threshold"): "search_threshold",
    ("retrieval", "limit"): "search_limit",
    ("retrieval", "timeout"): "search_timeout",
    ("retrieval", "fallback_similarity"): "fallback_similarity",
    ("retrieval", "vector_search"): "vector_search_enabled",
    ("retrieval", "preview_chars"): "preview_chars",
    ("logging", "json"): "log_json",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".legal-rag" / "legal_rag.db")
    ollama_base_url: str = "http://localhost:11434"

    embedding_model: str = "nomic-embed-text"
    embedding_dim: int = Field(default=768, ge=1)
    embedding_max_chars: int = Field(default=2000, ge=1)
    embedding_timeout: float = Field(default=30.0, gt=0)

    chat_model: str = "llama3.1:8b"
    chat_timeout: float = Field(default=120.0, gt=0)
    chat_temperature: float = 0.2
    chat_top_p: float = 0.9
    chat_top_k: int = 40
    chat_num_ctx: int = 4096
    chat_search_threshold: float = Field(default=0.2, ge=0.0, le=1.0)
    chat_search_limit: int = Field(default=8, ge=1)
    max_query_chars: int = Field(default=10_000, ge=1)
    document_context_chars: int = Field(default=6000, ge=1)

    chunk_max_size: int = Field(default=1000, ge=1)
    chunk_min_length: int = Field(default=50, ge=0)
    ingest_chunk_delay_ms: int = Field(default=100, ge=0)
    max_upload_bytes: int = Field(default=50 * 1024 * 1024, ge=1)

    search_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    search_limit: int = Field(default=5, ge=1)
    search_timeout: float = Field(default=5.0, gt=0)
    fallback_similarity: float = Field(default=0.8, ge=0.0, le=1.0)
    vector_search_enabled: bool = False
    preview_chars: int = Field(default=300, ge=1)

    log_json: bool = True

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("db_path must be a path or string")

    @field_validator("ollama_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with LRAG_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
