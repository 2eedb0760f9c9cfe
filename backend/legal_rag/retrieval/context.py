"""Turn retrieval results into prompt context plus displayable sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from legal_rag.retrieval.search import RetrievalResult, ScoreKind
from legal_rag.utils.text import truncate

BLOCK_SEPARATOR = "\n\n---\n\n"
UNTITLED_DOCUMENT = "Untitled document"


@dataclass(slots=True)
class Source:
    document_id: str
    document_title: str
    similarity: float
    score_kind: ScoreKind
    preview: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "document_title": self.document_title,
            "similarity": self.similarity,
            "score_kind": self.score_kind.value,
            "preview": self.preview,
        }


@dataclass(slots=True)
class AssembledContext:
    context: str = ""
    sources: list[Source] = field(default_factory=list)

    @property
    def has_context(self) -> bool:
        return bool(self.sources)


def assemble_context(results: Sequence[RetrievalResult], preview_chars: int = 300) -> AssembledContext:
    """Render one ``Document:``/``Content:`` block per result, in result order.

    ``sources[i]`` always describes ``results[i]``; an empty input yields an
    empty context string and no sources.
    """
    blocks: list[str] = []
    sources: list[Source] = []
    for result in results:
        title = result.document_title or UNTITLED_DOCUMENT
        blocks.append(f"Document: {title}\nContent: {result.content}")
        sources.append(
            Source(
                document_id=result.document_id,
                document_title=title,
                similarity=result.similarity,
                score_kind=result.score_kind,
                preview=truncate(result.content, preview_chars),
            )
        )
    return AssembledContext(context=BLOCK_SEPARATOR.join(blocks), sources=sources)


__all__ = ["AssembledContext", "Source", "assemble_context", "BLOCK_SEPARATOR"]
