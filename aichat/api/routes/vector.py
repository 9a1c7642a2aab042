"""
Vector Routes - Embedding storage and similarity search (RAG plans only).
"""
from fastapi import APIRouter, Depends, status

from aichat.api.dependencies import get_current_user
from aichat.auth.supabase_client import AuthenticatedUser
from aichat.models.chat import DeletedResponse
from aichat.models.common import error_responses
from aichat.models.content import (
    StoreEmbeddingRequest,
    StoreEmbeddingResponse,
    VectorSearchRequest,
    VectorSearchResponse,
)
from aichat.services.content_service import ContentService, get_content_service

router = APIRouter(
    prefix="/vector",
    tags=["Vector"],
    responses=error_responses(400, 401, 403),
)


@router.post("/search", response_model=VectorSearchResponse, summary="Find the closest documents")
def search(
    request: VectorSearchRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> VectorSearchResponse:
    results = service.search_similar(
        user,
        request.query,
        request.embedding,
        limit=request.limit,
        scope=request.scope,
    )
    return VectorSearchResponse(results=results)


@router.post(
    "/embeddings",
    response_model=StoreEmbeddingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Store an embedding owned by the caller",
)
def store_embedding(
    request: StoreEmbeddingRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> StoreEmbeddingResponse:
    embedding_id = service.store_embedding(user, request.content, request.embedding, request.metadata)
    return StoreEmbeddingResponse(id=embedding_id)


@router.delete("/embeddings", response_model=DeletedResponse, summary="Delete the caller's embeddings")
def delete_embeddings(
    user: AuthenticatedUser = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> DeletedResponse:
    return DeletedResponse(deleted=service.delete_user_embeddings(user))
