"""Document upload and processing routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from legal_rag.api.dependencies import (
    get_app_settings,
    get_chunk_store,
    get_document_store,
    get_ingest_pipeline,
)
from legal_rag.core.config import Settings
from legal_rag.core.errors import DocumentNotFoundError, UnsupportedDocumentError
from legal_rag.db.chunks import ChunkStore
from legal_rag.db.documents import DocumentStore
from legal_rag.ingest.loaders import extract_text
from legal_rag.ingest.pipeline import IngestPipeline
from legal_rag.models.dto import (
    ChunkResponse,
    DeleteResponse,
    DocumentDetailResponse,
    DocumentResponse,
    DocumentTextRequest,
    IngestResponse,
    ProcessRequest,
    UploadResponse,
)

router = APIRouter()


@router.post("", response_model=UploadResponse, summary="Upload a PDF, DOCX, Markdown or text file")
def upload_document(
    file: UploadFile = File(...),
    title: str | None = Form(default=None),
    owner_id: str | None = Form(default=None),
    is_shared: bool = Form(default=False),
    process: bool = Form(default=True),
    settings: Settings = Depends(get_app_settings),
    documents: DocumentStore = Depends(get_document_store),
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> UploadResponse:
    data = file.file.read(settings.max_upload_bytes + 1)
    try:
        extracted = extract_text(file.filename or "upload", data, max_bytes=settings.max_upload_bytes)
    except UnsupportedDocumentError as exc:
        raise HTTPException(status_code=415, detail=str(exc)) from exc
    document = documents.create(
        title=(title or "").strip() or extracted.title,
        content=extracted.text,
        owner_id=owner_id,
        is_shared=is_shared,
        mime=extracted.mime,
        size_bytes=extracted.size_bytes,
        metadata=extracted.metadata,
    )
    ingest = None
    if process:
        result = pipeline.process_document(document.id, metadata={"filename": extracted.filename})
        ingest = IngestResponse.from_result(result)
    return UploadResponse(document=DocumentResponse.from_entity(document), ingest=ingest)


@router.post("/text", response_model=UploadResponse, summary="Create a document from raw text")
def create_text_document(
    request: DocumentTextRequest,
    documents: DocumentStore = Depends(get_document_store),
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> UploadResponse:
    document = documents.create(
        title=request.title,
        content=request.content,
        owner_id=request.owner_id,
        is_shared=request.is_shared,
        mime="text/plain",
        size_bytes=len(request.content.encode("utf-8")),
        metadata=request.metadata,
    )
    ingest = None
    if request.process:
        ingest = IngestResponse.from_result(pipeline.process_document(document.id, metadata=request.metadata))
    return UploadResponse(document=DocumentResponse.from_entity(document), ingest=ingest)


@router.get("", response_model=list[DocumentResponse], summary="List documents")
def list_documents(
    owner_id: str | None = None,
    shared_only: bool = False,
    documents: DocumentStore = Depends(get_document_store),
) -> list[DocumentResponse]:
    return [DocumentResponse.from_entity(doc) for doc in documents.list(owner_id=owner_id, shared_only=shared_only)]


@router.get("/{document_id}", response_model=DocumentDetailResponse, summary="Fetch one document")
def get_document(
    document_id: str,
    documents: DocumentStore = Depends(get_document_store),
    chunks: ChunkStore = Depends(get_chunk_store),
) -> DocumentDetailResponse:
    try:
        document = documents.get(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    summary = DocumentResponse.from_entity(document, chunk_count=chunks.count(document_id))
    return DocumentDetailResponse(**summary.model_dump(), content=document.content)


@router.get("/{document_id}/chunks", response_model=list[ChunkResponse], summary="List a document's chunks")
def list_chunks(
    document_id: str,
    documents: DocumentStore = Depends(get_document_store),
    chunks: ChunkStore = Depends(get_chunk_store),
) -> list[ChunkResponse]:
    try:
        documents.get(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return [ChunkResponse.from_entity(chunk) for chunk in chunks.chunks_for_documents([document_id])]


@router.post("/{document_id}/process", response_model=IngestResponse, summary="Chunk and embed a document")
def process_document(
    document_id: str,
    request: ProcessRequest | None = None,
    documents: DocumentStore = Depends(get_document_store),
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> IngestResponse:
    request = request or ProcessRequest()
    try:
        if request.text is not None:
            documents.set_content(document_id, request.text)
        result = pipeline.process_document(document_id, metadata=request.metadata)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return IngestResponse.from_result(result)


@router.delete("/{document_id}", response_model=DeleteResponse, summary="Delete a document and its chunks")
def delete_document(document_id: str, documents: DocumentStore = Depends(get_document_store)) -> DeleteResponse:
    if not documents.delete(document_id):
        raise HTTPException(status_code=404, detail=f"Document not found: {document_id}")
    return DeleteResponse(status="ok", deleted=1)


__all__ = ["router"]
