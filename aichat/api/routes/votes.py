"""
Vote Routes - Thumbs up/down on assistant messages.
"""
from fastapi import APIRouter, Depends, status

from aichat.api.dependencies import get_current_user
from aichat.auth.supabase_client import AuthenticatedUser
from aichat.models.chat import VoteRequest, VoteResponse, VoteSummaryResponse
from aichat.models.common import error_responses
from aichat.services.chat_service import ChatService, get_chat_service

router = APIRouter(
    prefix="/messages",
    tags=["Votes"],
    responses=error_responses(401, 404),
)


@router.put(
    "/{message_id}/vote",
    response_model=VoteResponse,
    summary="Cast or change the caller's vote",
    responses=error_responses(400),
)
def vote_message(
    message_id: str,
    request: VoteRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> VoteResponse:
    return VoteResponse(**service.vote_message(user, message_id, request.type))


@router.get("/{message_id}/vote", response_model=VoteSummaryResponse, summary="Vote counts")
def get_votes(
    message_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> VoteSummaryResponse:
    return VoteSummaryResponse(**service.get_votes(user, message_id))


@router.delete(
    "/{message_id}/vote",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Withdraw the caller's vote",
)
def remove_vote(
    message_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> None:
    service.remove_vote(user, message_id)
