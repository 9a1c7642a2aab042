"""
Content Routes - Uploaded content items and per-user stats.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from aichat.api.dependencies import get_current_user
from aichat.auth.supabase_client import AuthenticatedUser
from aichat.models.common import error_responses
from aichat.models.content import (
    ContentListResponse,
    ContentResponse,
    CreateContentRequest,
    UpdateContentRequest,
    UserStatsResponse,
)
from aichat.services.content_service import ContentService, get_content_service

router = APIRouter(
    prefix="/content",
    tags=["Content"],
    responses=error_responses(401),
)


@router.get("", response_model=ContentListResponse, summary="List the caller's content, newest first")
def list_content(
    content_type: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    user: AuthenticatedUser = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> ContentListResponse:
    return ContentListResponse(items=service.list_content(user, content_type, limit))


@router.post(
    "",
    response_model=ContentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a content item",
    responses=error_responses(400, 403),
)
def create_content(
    request: CreateContentRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> ContentResponse:
    item = service.create_content(
        user,
        request.title,
        request.content,
        request.content_type,
        metadata=request.metadata,
        tags=request.tags,
    )
    return ContentResponse(**item)


# Declared before /{content_id} so the literal paths win
@router.get(
    "/search",
    response_model=ContentListResponse,
    summary="Case-insensitive search over titles and bodies",
    responses=error_responses(400),
)
def search_content(
    q: str = Query(..., min_length=1),
    limit: int = Query(default=10, ge=1, le=50),
    user: AuthenticatedUser = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> ContentListResponse:
    return ContentListResponse(items=service.search_content(user, q, limit))


@router.get("/stats", response_model=UserStatsResponse, summary="Chat, message and content counts")
def get_stats(
    user: AuthenticatedUser = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> UserStatsResponse:
    return UserStatsResponse(**service.get_user_stats(user))


@router.get(
    "/{content_id}",
    response_model=ContentResponse,
    summary="Get a content item",
    responses=error_responses(404),
)
def get_content(
    content_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> ContentResponse:
    return ContentResponse(**service.get_content(user, content_id))


@router.patch(
    "/{content_id}",
    response_model=ContentResponse,
    summary="Update a content item",
    responses=error_responses(400, 404),
)
def update_content(
    content_id: str,
    request: UpdateContentRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> ContentResponse:
    updates = request.model_dump(exclude_unset=True)
    return ContentResponse(**service.update_content(user, content_id, **updates))


@router.delete(
    "/{content_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a content item",
    responses=error_responses(404),
)
def delete_content(
    content_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> None:
    service.delete_content(user, content_id)
