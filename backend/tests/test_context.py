"""Tests for context assembly."""

from legal_rag.retrieval.context import assemble_context
from legal_rag.retrieval.search import RetrievalResult, ScoreKind


def _result(document_id: str, title: str | None, content: str, kind: ScoreKind = ScoreKind.LEXICAL) -> RetrievalResult:
    return RetrievalResult(
        chunk_id=f"chk_{document_id}",
        document_id=document_id,
        document_title=title,
        content=content,
        chunk_index=0,
        similarity=0.8,
        score_kind=kind,
    )


def test_empty_results_give_empty_context() -> None:
    assembled = assemble_context([])
    assert assembled.context == ""
    assert assembled.sources == []
    assert assembled.has_context is False


def test_blocks_and_sources_follow_result_order() -> None:
    results = [
        _result("doc_a", "Lease", "Rent is due monthly."),
        _result("doc_b", None, "Notice must be written.", ScoreKind.SUBSTRING),
    ]
    assembled = assemble_context(results)
    assert assembled.context == (
        "Document: Lease\nContent: Rent is due monthly."
        "\n\n---\n\n"
        "Document: Untitled document\nContent: Notice must be written."
    )
    assert [source.document_id for source in assembled.sources] == ["doc_a", "doc_b"]
    assert assembled.sources[1].document_title == "Untitled document"
    assert assembled.sources[1].score_kind is ScoreKind.SUBSTRING
    assert assembled.has_context is True


def test_preview_is_truncated_with_ellipsis() -> None:
    content = "x" * 400
    source = assemble_context([_result("doc_a", "Long", content)]).sources[0]
    assert source.preview == "x" * 300 + "..."
    short = assemble_context([_result("doc_a", "Short", "brief")], preview_chars=300).sources[0]
    assert short.preview == "brief"


def test_source_serialization() -> None:
    source = assemble_context([_result("doc_a", "Lease", "Rent")]).sources[0]
    assert source.to_dict() == {
        "document_id": "doc_a",
        "document_title": "Lease",
        "similarity": 0.8,
        "score_kind": "lexical",
        "preview": "Rent",
    }
