"""Search and chat API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from legal_rag.api.dependencies import get_app_settings, get_chat_service, get_retriever
from legal_rag.chat.service import ChatService
from legal_rag.core.config import Settings
from legal_rag.core.errors import InvalidRequestError
from legal_rag.models.dto import (
    ChatRequest,
    ChatResponse,
    SearchRequest,
    SearchResponse,
    SearchResult,
    SourceResponse,
    TitleRequest,
    TitleResponse,
)
from legal_rag.retrieval.context import assemble_context
from legal_rag.retrieval.search import Retriever

router = APIRouter()


@router.post("/search", response_model=SearchResponse, summary="Retrieve relevant chunks and their context")
def search(
    request: SearchRequest,
    settings: Settings = Depends(get_app_settings),
    retriever: Retriever = Depends(get_retriever),
) -> SearchResponse:
    results = retriever.search(
        request.query,
        request.document_ids,
        threshold=request.threshold if request.threshold is not None else settings.search_threshold,
        limit=request.limit or settings.search_limit,
    )
    assembled = assemble_context(results, preview_chars=settings.preview_chars)
    return SearchResponse(
        results=[SearchResult.from_result(result) for result in results],
        context=assembled.context,
        sources=[SourceResponse.from_source(source) for source in assembled.sources],
        has_context=assembled.has_context,
    )


@router.post("/chat", response_model=ChatResponse, summary="Answer a question using selected documents")
def chat(request: ChatRequest, service: ChatService = Depends(get_chat_service)) -> ChatResponse:
    messages = [message.model_dump() for message in request.messages]
    try:
        answer = service.answer(messages, request.document_ids)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ChatResponse(
        response=answer.response,
        sources=[SourceResponse.from_source(source) for source in answer.sources],
        has_context=answer.has_context,
        fallback=answer.fallback,
    )


@router.post("/chat/title", response_model=TitleResponse, summary="Generate a conversation title")
def chat_title(request: TitleRequest, service: ChatService = Depends(get_chat_service)) -> TitleResponse:
    messages = [message.model_dump() for message in request.messages]
    try:
        title = service.generate_title(messages)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TitleResponse(title=title)


__all__ = ["router"]
