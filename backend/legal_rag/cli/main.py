"""CLI entrypoint for the legal document assistant."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional

import requests
import typer

app = typer.Typer(name="lrag", help="Legal RAG command-line interface")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip("/")
    env_host = os.environ.get("LRAG_HOST")
    if env_host:
        return env_host.rstrip("/")
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    try:
        resp = requests.request(method, url, timeout=300, **kwargs)
    except requests.RequestException as exc:
        typer.echo(f"Could not reach {base}: {exc}", err=True)
        raise typer.Exit(code=1)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _echo_json(resp: requests.Response) -> None:
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def serve(
    bind: str = typer.Option("127.0.0.1", "--bind", help="Interface to listen on"),
    port: int = typer.Option(8000, "--port", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("legal_rag.app:create_app", factory=True, host=bind, port=port, reload=reload)


@app.command()
def upload(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF, DOCX, Markdown or text file"),
    title: Optional[str] = typer.Option(None, "--title", help="Document title (defaults to file name)"),
    owner: Optional[str] = typer.Option(None, "--owner", help="Owner identifier"),
    shared: bool = typer.Option(False, "--shared", help="Make the document visible to everyone"),
    process: bool = typer.Option(True, "--process/--no-process", help="Chunk and embed after upload"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Upload a document."""
    form: dict[str, str] = {"is_shared": str(shared).lower(), "process": str(process).lower()}
    if title:
        form["title"] = title
    if owner:
        form["owner_id"] = owner
    with path.expanduser().open("rb") as handle:
        resp = _request("POST", "/documents", host=host, data=form, files={"file": (path.name, handle)})
    _echo_json(resp)


@app.command()
def process(
    document_id: str = typer.Argument(..., help="Document identifier"),
    text_file: Optional[Path] = typer.Option(None, "--text-file", exists=True, help="Replace stored text first"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """(Re)build a document's chunks."""
    body: dict[str, object] = {}
    if text_file:
        body["text"] = text_file.expanduser().read_text(encoding="utf-8")
    resp = _request("POST", f"/documents/{document_id}/process", host=host, json=body)
    _echo_json(resp)


@app.command()
def search(
    q: str = typer.Argument(..., help="Query text"),
    document: Optional[List[str]] = typer.Option(None, "--document", "-d", help="Restrict to these document IDs"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Number of results to return"),
    threshold: Optional[float] = typer.Option(None, "--threshold", help="Minimum vector similarity"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Search document chunks."""
    payload: dict[str, object] = {"query": q}
    if document:
        payload["document_ids"] = document
    if limit is not None:
        payload["limit"] = limit
    if threshold is not None:
        payload["threshold"] = threshold
    _echo_json(_request("POST", "/search", host=host, json=payload))


@app.command()
def chat(
    message: str = typer.Argument(..., help="Question to ask"),
    document: Optional[List[str]] = typer.Option(None, "--document", "-d", help="Documents to ground the answer in"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask the assistant a question."""
    payload: dict[str, object] = {"messages": [{"role": "user", "content": message}]}
    if document:
        payload["document_ids"] = document
    data = _request("POST", "/chat", host=host, json=payload).json()
    typer.echo(data["response"])
    for source in data["sources"]:
        typer.echo(f"- {source['document_title']} ({source['score_kind']} {source['similarity']:.2f})")


@app.command()
def delete(
    document_id: str = typer.Argument(..., help="Document identifier"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Delete a document and its chunks."""
    _echo_json(_request("DELETE", f"/documents/{document_id}", host=host))


if __name__ == "__main__":
    app()
