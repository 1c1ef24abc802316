"""Category collaboration endpoints: suggestions, votes and comments."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from grocery.api.dependencies import EditorAccess, ViewerAccess, get_collaboration_service
from grocery.models.enums import SuggestionStatus
from grocery.schemas.collaboration import (
    CategoryVoteCreate,
    CategoryVoteTally,
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    SuggestionCreate,
    SuggestionResponse,
    SuggestionReviewResult,
    SuggestionVoteCreate,
    SuggestionVoteTally,
)
from grocery.schemas.common import Envelope
from grocery.services.category_service import to_response
from grocery.services.collaboration_service import CollaborationService, build_comment_tree

router = APIRouter(prefix="/api/lists/{list_id}/categories", tags=["collaboration"])

CollaborationServiceDep = Annotated[CollaborationService, Depends(get_collaboration_service)]


# Suggestions


@router.get("/suggestions", response_model=Envelope[list[SuggestionResponse]])
async def get_suggestions(
    access: ViewerAccess,
    service: CollaborationServiceDep,
    status: SuggestionStatus | None = None,
):
    """Get category suggestions, optionally filtered by status."""
    return Envelope(data=service.list_suggestions(access, status))


@router.post(
    "/suggestions",
    response_model=Envelope[SuggestionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def suggest_category(
    suggestion_data: SuggestionCreate, access: ViewerAccess, service: CollaborationServiceDep
):
    """Suggest a new category for owners and editors to review."""
    suggestion = service.suggest_category(access, suggestion_data)
    return Envelope(
        data=service.to_suggestion_response(suggestion), message="Suggestion submitted"
    )


@router.post(
    "/suggestions/{suggestion_id}/approve", response_model=Envelope[SuggestionReviewResult]
)
async def approve_suggestion(
    suggestion_id: UUID, access: EditorAccess, service: CollaborationServiceDep
):
    """Approve a pending suggestion, creating the category."""
    suggestion, category = service.approve_suggestion(access, suggestion_id)
    return Envelope(
        data=SuggestionReviewResult(
            suggestion=service.to_suggestion_response(suggestion),
            category=to_response(category),
        ),
        message="Suggestion approved",
    )


@router.post(
    "/suggestions/{suggestion_id}/reject", response_model=Envelope[SuggestionReviewResult]
)
async def reject_suggestion(
    suggestion_id: UUID, access: EditorAccess, service: CollaborationServiceDep
):
    suggestion = service.reject_suggestion(access, suggestion_id)
    return Envelope(
        data=SuggestionReviewResult(suggestion=service.to_suggestion_response(suggestion)),
        message="Suggestion rejected",
    )


@router.post(
    "/suggestions/{suggestion_id}/votes", response_model=Envelope[SuggestionVoteTally]
)
async def vote_on_suggestion(
    suggestion_id: UUID,
    vote: SuggestionVoteCreate,
    access: ViewerAccess,
    service: CollaborationServiceDep,
):
    return Envelope(data=service.vote_on_suggestion(access, suggestion_id, vote.vote_type))


# Category votes


@router.get("/{category_id}/votes", response_model=Envelope[CategoryVoteTally])
async def get_category_votes(
    category_id: UUID, access: ViewerAccess, service: CollaborationServiceDep
):
    return Envelope(data=service.get_category_votes(access, category_id))


@router.post("/{category_id}/votes", response_model=Envelope[CategoryVoteTally])
async def vote_on_category(
    category_id: UUID,
    vote: CategoryVoteCreate,
    access: ViewerAccess,
    service: CollaborationServiceDep,
):
    """Vote to keep or remove a category."""
    return Envelope(
        data=service.vote_on_category(access, category_id, vote.vote_type),
        message="Vote recorded",
    )


# Comments


@router.get("/{category_id}/comments", response_model=Envelope[list[CommentResponse]])
async def get_comments(
    category_id: UUID, access: ViewerAccess, service: CollaborationServiceDep
):
    """Get a category's comments as a thread tree."""
    return Envelope(data=service.list_comments(access, category_id))


@router.post(
    "/{category_id}/comments",
    response_model=Envelope[CommentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    category_id: UUID,
    comment_data: CommentCreate,
    access: ViewerAccess,
    service: CollaborationServiceDep,
):
    comment = service.add_comment(
        access, category_id, comment_data.comment_text, comment_data.parent_id
    )
    return Envelope(data=build_comment_tree([comment])[0], message="Comment added")


@router.put("/{category_id}/comments/{comment_id}", response_model=Envelope[CommentResponse])
async def update_comment(
    category_id: UUID,
    comment_id: UUID,
    comment_data: CommentUpdate,
    access: ViewerAccess,
    service: CollaborationServiceDep,
):
    comment = service.update_comment(access, category_id, comment_id, comment_data.comment_text)
    return Envelope(data=build_comment_tree([comment])[0], message="Comment updated")


@router.delete("/{category_id}/comments/{comment_id}", response_model=Envelope[None])
async def delete_comment(
    category_id: UUID,
    comment_id: UUID,
    access: ViewerAccess,
    service: CollaborationServiceDep,
):
    """Delete a comment and all replies to it."""
    service.delete_comment(access, category_id, comment_id)
    return Envelope(message="Comment deleted")
