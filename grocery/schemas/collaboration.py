"""Suggestion, vote and comment schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from grocery.models.enums import CategoryVoteType, SuggestionStatus, SuggestionVoteType
from grocery.schemas.category import CategoryResponse
from grocery.schemas.common import CATEGORY_COLOR_PATTERN

COMMENT_MAX_LENGTH = 1000


class SuggestionCreate(BaseModel):
    """Propose a new custom category."""

    name: str = Field(..., min_length=1, max_length=100)
    color: str | None = Field(None, pattern=CATEGORY_COLOR_PATTERN)
    icon: str | None = Field(None, min_length=1, max_length=10)
    reason: str | None = Field(None, max_length=500)


class SuggestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    list_id: UUID
    suggested_by: UUID | None
    name: str
    color: str | None
    icon: str | None
    reason: str | None
    status: SuggestionStatus
    reviewed_by: UUID | None
    reviewed_at: datetime | None
    created_category_id: UUID | None
    created_at: datetime
    updated_at: datetime
    upvotes: int = 0
    downvotes: int = 0


class CategoryVoteCreate(BaseModel):
    vote_type: CategoryVoteType


class SuggestionVoteCreate(BaseModel):
    vote_type: SuggestionVoteType


class CategoryVoteTally(BaseModel):
    category_id: UUID
    keep_votes: int
    remove_votes: int
    total_votes: int
    user_vote: CategoryVoteType | None = None


class SuggestionVoteTally(BaseModel):
    suggestion_id: UUID
    upvotes: int
    downvotes: int
    user_vote: SuggestionVoteType | None = None


class _CommentText(BaseModel):
    comment_text: str = Field(..., max_length=COMMENT_MAX_LENGTH)

    @field_validator("comment_text")
    @classmethod
    def strip_and_require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment text is required")
        return value


class CommentCreate(_CommentText):
    parent_id: UUID | None = None


class CommentUpdate(_CommentText):
    pass


class CommentResponse(BaseModel):
    id: UUID
    category_id: UUID
    user_id: UUID | None
    author_name: str | None
    parent_id: UUID | None
    comment_text: str
    created_at: datetime
    updated_at: datetime
    replies: list["CommentResponse"] = []


class SuggestionReviewResult(BaseModel):
    suggestion: SuggestionResponse
    category: CategoryResponse | None = None
