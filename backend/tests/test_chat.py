"""Tests for prompts, the chat client, and the chat service."""

import pytest
import requests

from legal_rag.chat.client import ChatClient
from legal_rag.chat.prompts import (
    build_system_prompt,
    build_title_prompt,
    clean_title,
    fallback_response,
    mentions_attachment,
)
from legal_rag.chat.service import ChatService
from legal_rag.core.config import Settings
from legal_rag.core.errors import ChatServiceError, InvalidRequestError
from legal_rag.db.chunks import ChunkStore
from legal_rag.db.documents import DocumentStore
from legal_rag.ingest.pipeline import IngestPipeline
from legal_rag.retrieval.search import Retriever, ScoreKind

from helpers import LEASE_TEXT, FakeChatClient, FakeResponse, FakeSession

CONTEXT = "Document: Lease\nContent: The liability clause limits damages to the fees paid in the prior year."


def test_system_prompt_branches_on_context() -> None:
    grounded = build_system_prompt(CONTEXT, has_context=True)
    assert "DOCUMENT CONTEXT PROVIDED:" in grounded
    assert CONTEXT in grounded
    assert "IMPORTANT DISCLAIMERS:" in grounded

    empty = build_system_prompt("", has_context=False)
    assert "NO DOCUMENT CONTEXT PROVIDED:" in empty
    assert "IMPORTANT DISCLAIMERS:" in empty

    assert "NO DOCUMENT CONTEXT PROVIDED:" in build_system_prompt("Document: x\nContent: y", has_context=True)


def test_attachment_mentions_add_instructions() -> None:
    assert mentions_attachment("What does the attached PDF say?") is True
    assert mentions_attachment("What is promissory estoppel?") is False
    prompt = build_system_prompt(CONTEXT, has_context=True, attachment_mentioned=True)
    assert "uploaded document content" in prompt


def test_title_prompt_and_cleanup() -> None:
    prompt = build_title_prompt([{"role": "user", "content": "Review my lease"}])
    assert "user: Review my lease" in prompt
    assert prompt.endswith("Title:")
    assert clean_title('Title: "Lease Review"') == "Lease Review"
    assert clean_title("conversation title: 'NDA scope'") == "NDA scope"
    assert len(clean_title("x" * 80)) == 50


def test_fallback_response_quotes_context() -> None:
    long_context = "Clause text. " * 200
    answer = fallback_response("Is the cap enforceable?", long_context)
    assert '"Is the cap enforceable?"' in answer
    assert long_context[:1200] in answer
    assert "[Content continues...]" in answer
    assert "No Document Context Available" in fallback_response("Is the cap enforceable?", "")


def test_chat_client_sends_options() -> None:
    session = FakeSession(FakeResponse({"message": {"role": "assistant", "content": "Answer"}}))
    settings = Settings(ollama_base_url="http://ollama:11434/")
    client = ChatClient.from_settings(settings, session=session)
    assert client.chat([{"role": "user", "content": "Hi"}]) == "Answer"
    request = session.requests[0]
    assert request["url"] == "http://ollama:11434/api/chat"
    assert request["json"]["stream"] is False
    assert request["json"]["model"] == "llama3.1:8b"
    assert request["json"]["options"] == {"temperature": 0.2, "top_p": 0.9, "top_k": 40, "num_ctx": 4096}
    assert request["timeout"] == 120.0


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.Timeout("slow")),
        FakeSession(FakeResponse({"error": "boom"}, status_code=500)),
        FakeSession(FakeResponse({"done": True})),
    ],
)
def test_chat_client_failures(session: FakeSession) -> None:
    with pytest.raises(ChatServiceError):
        ChatClient("http://ollama:11434", "llama3.1:8b", session=session).chat([{"role": "user", "content": "Hi"}])


@pytest.fixture
def lease_id(documents: DocumentStore, pipeline: IngestPipeline) -> str:
    doc = documents.create("Office Lease", content=LEASE_TEXT)
    pipeline.process_document(doc.id)
    return doc.id


def _service(
    chunks: ChunkStore, documents: DocumentStore, settings: Settings, client: FakeChatClient
) -> ChatService:
    return ChatService(Retriever(chunks), documents, client, settings)


def test_answer_with_selected_documents(
    chunks: ChunkStore, documents: DocumentStore, settings: Settings, chat_client: FakeChatClient, lease_id: str
) -> None:
    service = _service(chunks, documents, settings, chat_client)
    messages = [{"role": "user", "content": "liability clause damages"}]
    answer = service.answer(messages, [lease_id])
    assert answer.response == "Stub answer"
    assert answer.fallback is False
    assert answer.has_context is True
    assert answer.sources and all(source.document_id == lease_id for source in answer.sources)

    sent = chat_client.calls[0]
    assert sent[0]["role"] == "system"
    assert "DOCUMENT CONTEXT PROVIDED:" in sent[0]["content"]
    assert "Document: Office Lease" in sent[0]["content"]
    assert sent[1:] == messages


def test_question_sentence_finds_matching_chunks(
    require_fts: None,
    chunks: ChunkStore,
    documents: DocumentStore,
    settings: Settings,
    chat_client: FakeChatClient,
    lease_id: str,
) -> None:
    service = _service(chunks, documents, settings, chat_client)
    answer = service.answer([{"role": "user", "content": "What does the liability clause say?"}], [lease_id])
    assert answer.has_context is True
    assert answer.sources
    assert all(source.score_kind is ScoreKind.LEXICAL for source in answer.sources)
    assert "liability clause" in chat_client.calls[0][0]["content"]


def test_unmatched_question_uses_selected_documents_in_full(
    chunks: ChunkStore, documents: DocumentStore, settings: Settings, chat_client: FakeChatClient, lease_id: str
) -> None:
    service = _service(chunks, documents, settings, chat_client)
    answer = service.answer([{"role": "user", "content": "Explain the zoning variance"}], [lease_id])
    assert answer.has_context is True
    assert [source.document_id for source in answer.sources] == [lease_id]
    assert answer.sources[0].score_kind is ScoreKind.DOCUMENT
    assert answer.sources[0].similarity == 0.95
    assert LEASE_TEXT in chat_client.calls[0][0]["content"]


def test_selected_documents_without_text_give_no_context(
    chunks: ChunkStore, documents: DocumentStore, settings: Settings, chat_client: FakeChatClient
) -> None:
    short = documents.create("Memo", content="  Signed.  ")
    empty = documents.create("Scan")
    answer = _service(chunks, documents, settings, chat_client).answer(
        [{"role": "user", "content": "Explain the zoning variance"}], [short.id, empty.id]
    )
    assert answer.has_context is False
    assert answer.sources == []
    assert "NO DOCUMENT CONTEXT PROVIDED:" in chat_client.calls[0][0]["content"]


def test_document_context_is_capped(
    chunks: ChunkStore, documents: DocumentStore, chat_client: FakeChatClient, settings: Settings, lease_id: str
) -> None:
    capped = settings.model_copy(update={"document_context_chars": 40})
    answer = _service(chunks, documents, capped, chat_client).answer(
        [{"role": "user", "content": "Explain the zoning variance"}], [lease_id]
    )
    assert answer.sources[0].score_kind is ScoreKind.DOCUMENT
    assert LEASE_TEXT not in chat_client.calls[0][0]["content"]
    assert LEASE_TEXT[:30] in chat_client.calls[0][0]["content"]


def test_answer_without_documents_skips_search(
    chunks: ChunkStore, documents: DocumentStore, settings: Settings, chat_client: FakeChatClient, lease_id: str
) -> None:
    service = _service(chunks, documents, settings, chat_client)
    answer = service.answer([{"role": "user", "content": "liability clause"}])
    assert answer.has_context is False
    assert answer.sources == []
    assert "NO DOCUMENT CONTEXT PROVIDED:" in chat_client.calls[0][0]["content"]


def test_answer_falls_back_when_model_is_down(
    chunks: ChunkStore, documents: DocumentStore, settings: Settings, lease_id: str
) -> None:
    service = _service(chunks, documents, settings, FakeChatClient(fail=True))
    answer = service.answer([{"role": "user", "content": "liability clause"}], [lease_id])
    assert answer.fallback is True
    assert answer.has_context is True
    assert "Document Analysis Complete" in answer.response
    assert "\"liability clause\"" in answer.response


@pytest.mark.parametrize(
    "messages",
    [
        [],
        [{"role": "user", "content": "   "}],
        [{"role": "assistant", "content": "Hello"}],
        [{"role": "user", "content": "x" * 10001}],
    ],
)
def test_invalid_messages_are_rejected(
    chunks: ChunkStore,
    documents: DocumentStore,
    settings: Settings,
    chat_client: FakeChatClient,
    messages: list[dict[str, str]],
) -> None:
    with pytest.raises(InvalidRequestError):
        _service(chunks, documents, settings, chat_client).answer(messages)
    assert chat_client.calls == []


def test_generate_title(chunks: ChunkStore, documents: DocumentStore, settings: Settings) -> None:
    messages = [{"role": "user", "content": "Can we terminate the lease early?"}]
    titled = _service(chunks, documents, settings, FakeChatClient(reply='Title: "Early Lease Termination"'))
    assert titled.generate_title(messages) == "Early Lease Termination"

    offline = _service(chunks, documents, settings, FakeChatClient(fail=True))
    assert offline.generate_title(messages) == "Can we terminate the lease early?"

    with pytest.raises(InvalidRequestError):
        offline.generate_title([])
