"""Text extraction for uploaded documents."""

from __future__ import annotations

import io
import zipfile
from pathlib import PurePath

import fitz
import langid
from docx import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError
from markdown_it import MarkdownIt

from legal_rag.core.errors import UnsupportedDocumentError
from legal_rag.ingest.types import ExtractedDocument
from legal_rag.utils.text import normalize

MAX_UPLOAD_BYTES = 50 * 1024 * 1024

_MD = MarkdownIt()


class BaseLoader:
    """Common loader interface."""

    suffixes: tuple[str, ...] = ()
    mime_type: str = "application/octet-stream"

    def can_load(self, filename: str) -> bool:
        return PurePath(filename).suffix.lower() in self.suffixes

    def extract(self, data: bytes) -> tuple[str, dict[str, object]]:  # pragma: no cover - interface
        raise NotImplementedError


class TextLoader(BaseLoader):
    suffixes = (".txt",)
    mime_type = "text/plain"

    def extract(self, data: bytes) -> tuple[str, dict[str, object]]:
        return normalize(data.decode("utf-8", errors="ignore")), {}


class MarkdownLoader(BaseLoader):
    suffixes = (".md",)
    mime_type = "text/markdown"

    def extract(self, data: bytes) -> tuple[str, dict[str, object]]:
        return _markdown_to_text(data.decode("utf-8", errors="ignore")), {}


class PDFLoader(BaseLoader):
    suffixes = (".pdf",)
    mime_type = "application/pdf"

    def extract(self, data: bytes) -> tuple[str, dict[str, object]]:
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                pages = [page.get_text("text", sort=True) for page in doc]
        except (RuntimeError, ValueError) as exc:
            raise UnsupportedDocumentError(f"Could not read PDF: {exc}") from exc
        return normalize("\n\n".join(pages)), {"page_count": len(pages)}


class DocxLoader(BaseLoader):
    suffixes = (".docx",)
    mime_type = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

    def extract(self, data: bytes) -> tuple[str, dict[str, object]]:
        try:
            document = DocxDocument(io.BytesIO(data))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as exc:
            raise UnsupportedDocumentError(f"Could not read DOCX: {exc}") from exc
        paragraphs = [para.text for para in document.paragraphs if para.text.strip()]
        core = document.core_properties
        metadata: dict[str, object] = {}
        if core.title:
            metadata["docx_title"] = core.title
        if core.author:
            metadata["author"] = core.author
        return normalize("\n".join(paragraphs)), metadata


class LoaderRegistry:
    """Registry that selects an appropriate loader for a filename."""

    def __init__(self) -> None:
        self._loaders: list[BaseLoader] = [
            PDFLoader(),
            DocxLoader(),
            MarkdownLoader(),
            TextLoader(),
        ]

    @property
    def suffixes(self) -> tuple[str, ...]:
        return tuple(suffix for loader in self._loaders for suffix in loader.suffixes)

    def for_filename(self, filename: str) -> BaseLoader | None:
        for loader in self._loaders:
            if loader.can_load(filename):
                return loader
        return None


_REGISTRY = LoaderRegistry()


def extract_text(filename: str, data: bytes, max_bytes: int = MAX_UPLOAD_BYTES) -> ExtractedDocument:
    """Extract normalized text from an uploaded file.

    Raises :class:`UnsupportedDocumentError` for empty or oversized uploads and
    for file types other than PDF, DOCX, Markdown and plain text.
    """
    if not data:
        raise UnsupportedDocumentError("Uploaded file is empty")
    if len(data) > max_bytes:
        raise UnsupportedDocumentError(f"File exceeds the {max_bytes // (1024 * 1024)}MB limit")
    loader = _REGISTRY.for_filename(filename)
    if loader is None:
        accepted = ", ".join(_REGISTRY.suffixes)
        raise UnsupportedDocumentError(f"Unsupported file type for {filename!r}; accepted: {accepted}")

    text, metadata = loader.extract(data)
    metadata["filename"] = filename
    metadata["lang"] = _detect_lang(text)
    return ExtractedDocument(
        filename=filename,
        text=text,
        mime=loader.mime_type,
        title=PurePath(filename).stem or filename,
        size_bytes=len(data),
        metadata=metadata,
    )


def _markdown_to_text(text: str) -> str:
    tokens = _MD.parse(text)
    parts: list[str] = []
    for token in tokens:
        content = token.content.strip()
        if content:
            parts.append(content)
    return normalize("\n".join(parts) if parts else text)


def _detect_lang(text: str) -> str | None:
    if not text.strip():
        return None
    lang, _ = langid.classify(text)
    return lang


__all__ = ["extract_text", "LoaderRegistry", "MAX_UPLOAD_BYTES"]
