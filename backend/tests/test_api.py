"""API integration tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from legal_rag.api.dependencies import ServiceContainer
from legal_rag.app import create_app
from legal_rag.core.config import Settings

from helpers import LEASE_TEXT, SERVICES_TEXT, FakeChatClient


@pytest.fixture
def client(settings: Settings, services: ServiceContainer) -> TestClient:
    with TestClient(create_app(settings, services)) as test_client:
        yield test_client


def _create(client: TestClient, title: str, content: str, **extra) -> dict:
    resp = client.post("/documents/text", json={"title": title, "content": content, **extra})
    assert resp.status_code == 200
    return resp.json()


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_text_document_search_and_chat_flow(client: TestClient, chat_client: FakeChatClient) -> None:
    lease = _create(client, "Office Lease", LEASE_TEXT)
    services = _create(client, "Services Agreement", SERVICES_TEXT)
    assert lease["ingest"]["status"] == "processed"
    assert lease["ingest"]["stats"]["persisted"] == 3
    lease_id = lease["document"]["id"]

    search_resp = client.post("/search", json={"query": "liability clause", "document_ids": [lease_id]})
    assert search_resp.status_code == 200
    payload = search_resp.json()
    assert payload["results"]
    assert all(result["document_id"] == lease_id for result in payload["results"])
    assert payload["has_context"] is True
    assert payload["context"].startswith("Document: Office Lease\nContent: ")
    assert len(payload["sources"]) == len(payload["results"])

    chat_resp = client.post(
        "/chat",
        json={
            "messages": [{"role": "user", "content": "liability clause"}],
            "document_ids": [lease_id, services["document"]["id"]],
        },
    )
    assert chat_resp.status_code == 200
    answer = chat_resp.json()
    assert answer["response"] == "Stub answer"
    assert answer["fallback"] is False
    assert {source["document_title"] for source in answer["sources"]} == {"Office Lease", "Services Agreement"}
    assert "DOCUMENT CONTEXT PROVIDED:" in chat_client.calls[-1][0]["content"]


def test_blank_search_returns_empty_context(client: TestClient) -> None:
    resp = client.post("/search", json={"query": "   "})
    assert resp.status_code == 200
    assert resp.json() == {"results": [], "context": "", "sources": [], "has_context": False}


def test_upload_and_chunks(client: TestClient) -> None:
    files = {"file": ("lease.txt", LEASE_TEXT.encode("utf-8"), "text/plain")}
    resp = client.post("/documents", files=files, data={"owner_id": "alice"})
    assert resp.status_code == 200
    body = resp.json()
    document_id = body["document"]["id"]
    assert body["document"]["title"] == "lease"
    assert body["document"]["metadata"]["lang"] == "en"
    assert body["ingest"]["stats"]["chunks"] == 3

    chunks_resp = client.get(f"/documents/{document_id}/chunks")
    assert [chunk["chunk_index"] for chunk in chunks_resp.json()] == [0, 1, 2]

    detail = client.get(f"/documents/{document_id}").json()
    assert detail["chunk_count"] == 3
    assert detail["content"] == LEASE_TEXT

    listed = client.get("/documents", params={"owner_id": "alice"}).json()
    assert [doc["id"] for doc in listed] == [document_id]


def test_upload_without_processing(client: TestClient) -> None:
    files = {"file": ("memo.md", b"# Memo\n\nThe deposit is refundable within thirty days of move out.", "text/markdown")}
    resp = client.post("/documents", files=files, data={"title": "Deposit memo", "process": "false"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ingest"] is None
    assert body["document"]["title"] == "Deposit memo"

    process_resp = client.post(f"/documents/{body['document']['id']}/process")
    assert process_resp.status_code == 200
    assert process_resp.json()["status"] == "processed"


def test_unsupported_upload_is_415(client: TestClient) -> None:
    files = {"file": ("setup.exe", b"MZ\x90\x00", "application/octet-stream")}
    assert client.post("/documents", files=files).status_code == 415


def test_process_with_replacement_text(client: TestClient) -> None:
    created = _create(client, "Draft", "placeholder", process=False)
    document_id = created["document"]["id"]
    resp = client.post(f"/documents/{document_id}/process", json={"text": SERVICES_TEXT, "metadata": {"rev": 2}})
    assert resp.status_code == 200
    assert resp.json()["stats"]["persisted"] == 2
    chunk = client.get(f"/documents/{document_id}/chunks").json()[0]
    assert chunk["metadata"]["rev"] == 2


def test_missing_documents_are_404(client: TestClient) -> None:
    assert client.get("/documents/doc_missing").status_code == 404
    assert client.get("/documents/doc_missing/chunks").status_code == 404
    assert client.post("/documents/doc_missing/process").status_code == 404
    assert client.delete("/documents/doc_missing").status_code == 404


def test_delete_removes_document_and_chunks(client: TestClient) -> None:
    document_id = _create(client, "Office Lease", LEASE_TEXT)["document"]["id"]
    resp = client.delete(f"/documents/{document_id}")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "deleted": 1}
    assert client.get(f"/documents/{document_id}").status_code == 404
    assert client.post("/search", json={"query": "liability clause"}).json()["results"] == []


def test_chat_validation(client: TestClient) -> None:
    assert client.post("/chat", json={"messages": []}).status_code == 422
    assert client.post("/chat", json={"messages": [{"role": "user", "content": "  "}]}).status_code == 400


def test_chat_title(client: TestClient, chat_client: FakeChatClient) -> None:
    chat_client.reply = "Title: 'Lease termination options'"
    resp = client.post("/chat/title", json={"messages": [{"role": "user", "content": "How do I end my lease?"}]})
    assert resp.status_code == 200
    assert resp.json() == {"title": "Lease termination options"}


def test_metrics_endpoint(client: TestClient) -> None:
    client.post("/search", json={"query": "liability"})
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "lrag_search_requests_total" in resp.text


def test_services_are_built_at_startup(settings: Settings) -> None:
    app = create_app(settings)
    assert app.state.services is None
    with TestClient(app) as test_client:
        assert app.state.services is not None
        assert test_client.get("/health").status_code == 200
