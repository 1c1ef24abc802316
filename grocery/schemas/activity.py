"""Activity log schemas.

Each action has its own details model; the ``action`` field is the tag that
selects the variant when stored details are read back.
"""

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter

from grocery.schemas.common import UserSummary


class FieldChange(BaseModel):
    old: Any = None
    new: Any = None


class _ListRef(BaseModel):
    list_name: str


class _MemberRef(BaseModel):
    member_id: UUID
    member_name: str


class _ItemRef(BaseModel):
    item_id: UUID
    item_name: str


class _CategoryRef(BaseModel):
    category_id: UUID
    category_name: str


# List events


class ListCreatedDetails(_ListRef):
    action: Literal["list_created"] = "list_created"
    duplicated_from: UUID | None = None


class ListRenamedDetails(BaseModel):
    action: Literal["list_renamed"] = "list_renamed"
    changes: dict[str, FieldChange]


class ListDeletedDetails(_ListRef):
    action: Literal["list_deleted"] = "list_deleted"


class ListArchivedDetails(_ListRef):
    action: Literal["list_archived"] = "list_archived"


class ListUnarchivedDetails(_ListRef):
    action: Literal["list_unarchived"] = "list_unarchived"


class ListSharedDetails(BaseModel):
    action: Literal["list_shared"] = "list_shared"
    shared_with: str
    permission: str


# Membership events


class MemberAddedDetails(_MemberRef):
    action: Literal["member_added"] = "member_added"
    permission: str


class MemberRemovedDetails(_MemberRef):
    action: Literal["member_removed"] = "member_removed"
    left: bool = False


class MemberPermissionChangedDetails(_MemberRef):
    action: Literal["member_permission_changed"] = "member_permission_changed"
    old_permission: str
    new_permission: str


class OwnershipTransferredDetails(BaseModel):
    action: Literal["ownership_transferred"] = "ownership_transferred"
    previous_owner_id: UUID
    new_owner_id: UUID
    new_owner_name: str


# Item events


class ItemAddedDetails(_ItemRef):
    action: Literal["item_added"] = "item_added"
    quantity: int = 1


class ItemUpdatedDetails(_ItemRef):
    action: Literal["item_updated"] = "item_updated"
    changes: dict[str, FieldChange] = {}


class ItemDeletedDetails(_ItemRef):
    action: Literal["item_deleted"] = "item_deleted"


class ItemCheckedDetails(_ItemRef):
    action: Literal["item_checked"] = "item_checked"


class ItemUncheckedDetails(_ItemRef):
    action: Literal["item_unchecked"] = "item_unchecked"


class ItemsClearedDetails(BaseModel):
    action: Literal["items_cleared"] = "items_cleared"
    count: int


class ItemsBulkDeletedDetails(BaseModel):
    action: Literal["items_bulk_deleted"] = "items_bulk_deleted"
    count: int
    item_ids: list[UUID] = []


# Category events


class CategoryCreatedDetails(_CategoryRef):
    action: Literal["category_created"] = "category_created"


class CategoryUpdatedDetails(_CategoryRef):
    action: Literal["category_updated"] = "category_updated"
    changes: dict[str, FieldChange] = {}


class CategoryArchivedDetails(_CategoryRef):
    action: Literal["category_archived"] = "category_archived"


class CategoryRestoredDetails(_CategoryRef):
    action: Literal["category_restored"] = "category_restored"


class CategoryDeletedDetails(_CategoryRef):
    action: Literal["category_deleted"] = "category_deleted"
    items_affected: int = 0


class CategoryMergedDetails(BaseModel):
    action: Literal["category_merged"] = "category_merged"
    target_id: UUID
    target_name: str
    source_ids: list[UUID]
    source_names: list[str]
    items_moved: int
    archived_sources: bool = False


class CategoryLockedDetails(_CategoryRef):
    action: Literal["category_locked"] = "category_locked"


class CategoryUnlockedDetails(_CategoryRef):
    action: Literal["category_unlocked"] = "category_unlocked"


# Collaboration events


class CategorySuggestedDetails(BaseModel):
    action: Literal["category_suggested"] = "category_suggested"
    suggestion_id: UUID
    category_name: str
    reason: str | None = None


class CategorySuggestionApprovedDetails(BaseModel):
    action: Literal["category_suggestion_approved"] = "category_suggestion_approved"
    suggestion_id: UUID
    category_id: UUID
    category_name: str
    suggested_by: UUID | None = None


class CategorySuggestionRejectedDetails(BaseModel):
    action: Literal["category_suggestion_rejected"] = "category_suggestion_rejected"
    suggestion_id: UUID
    category_name: str
    suggested_by: UUID | None = None


class CategoryCommentAddedDetails(_CategoryRef):
    action: Literal["category_comment_added"] = "category_comment_added"
    comment_id: UUID
    is_reply: bool = False


class CategoryCommentUpdatedDetails(_CategoryRef):
    action: Literal["category_comment_updated"] = "category_comment_updated"
    comment_id: UUID


class CategoryCommentDeletedDetails(_CategoryRef):
    action: Literal["category_comment_deleted"] = "category_comment_deleted"
    comment_id: UUID


class CategoryVotedDetails(_CategoryRef):
    action: Literal["category_voted"] = "category_voted"
    vote_type: str


class CategorySuggestionVotedDetails(BaseModel):
    action: Literal["category_suggestion_voted"] = "category_suggestion_voted"
    suggestion_id: UUID
    category_name: str
    vote_type: str


ActivityDetails = Annotated[
    ListCreatedDetails
    | ListRenamedDetails
    | ListDeletedDetails
    | ListArchivedDetails
    | ListUnarchivedDetails
    | ListSharedDetails
    | MemberAddedDetails
    | MemberRemovedDetails
    | MemberPermissionChangedDetails
    | OwnershipTransferredDetails
    | ItemAddedDetails
    | ItemUpdatedDetails
    | ItemDeletedDetails
    | ItemCheckedDetails
    | ItemUncheckedDetails
    | ItemsClearedDetails
    | ItemsBulkDeletedDetails
    | CategoryCreatedDetails
    | CategoryUpdatedDetails
    | CategoryArchivedDetails
    | CategoryRestoredDetails
    | CategoryDeletedDetails
    | CategoryMergedDetails
    | CategoryLockedDetails
    | CategoryUnlockedDetails
    | CategorySuggestedDetails
    | CategorySuggestionApprovedDetails
    | CategorySuggestionRejectedDetails
    | CategoryCommentAddedDetails
    | CategoryCommentUpdatedDetails
    | CategoryCommentDeletedDetails
    | CategoryVotedDetails
    | CategorySuggestionVotedDetails,
    Field(discriminator="action"),
]

ActivityDetailsAdapter: TypeAdapter[ActivityDetails] = TypeAdapter(ActivityDetails)


class ActivityCreate(BaseModel):
    """Client-submitted activity. The action is checked against the closed set."""

    action: str = Field(..., min_length=1, max_length=50)
    details: dict[str, Any] = {}


class ActivityResponse(BaseModel):
    id: UUID
    list_id: UUID
    list_name: str | None
    action: str
    details: dict[str, Any] | None
    message: str
    user: UserSummary | None
    created_at: datetime


class ActivityPage(BaseModel):
    activities: list[ActivityResponse]
    total: int
    limit: int
    offset: int
