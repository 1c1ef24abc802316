"""Activity log: recording, formatting and paging through list activity."""

import logging
from typing import assert_never
from uuid import UUID

import pydantic
from sqlalchemy.orm import Session, joinedload

from grocery.exceptions import ValidationError
from grocery.models.activity import Activity
from grocery.models.enums import ActivityAction, PermissionLevel
from grocery.schemas.activity import (
    ActivityDetails,
    ActivityDetailsAdapter,
    ActivityResponse,
    CategoryArchivedDetails,
    CategoryCommentAddedDetails,
    CategoryCommentDeletedDetails,
    CategoryCommentUpdatedDetails,
    CategoryCreatedDetails,
    CategoryDeletedDetails,
    CategoryLockedDetails,
    CategoryMergedDetails,
    CategoryRestoredDetails,
    CategorySuggestedDetails,
    CategorySuggestionApprovedDetails,
    CategorySuggestionRejectedDetails,
    CategorySuggestionVotedDetails,
    CategoryUnlockedDetails,
    CategoryUpdatedDetails,
    CategoryVotedDetails,
    ItemAddedDetails,
    ItemCheckedDetails,
    ItemDeletedDetails,
    ItemsBulkDeletedDetails,
    ItemsClearedDetails,
    ItemUncheckedDetails,
    ItemUpdatedDetails,
    ListArchivedDetails,
    ListCreatedDetails,
    ListDeletedDetails,
    ListRenamedDetails,
    ListSharedDetails,
    ListUnarchivedDetails,
    MemberAddedDetails,
    MemberPermissionChangedDetails,
    MemberRemovedDetails,
    OwnershipTransferredDetails,
)
from grocery.schemas.common import UserSummary
from grocery.services.permissions import ListAccess

logger = logging.getLogger(__name__)

UNKNOWN_ACTOR = "Someone"
_ACTION_VALUES = {action.value for action in ActivityAction}


def log_activity(
    db: Session, list_id: UUID, user_id: UUID | None, details: ActivityDetails
) -> Activity:
    """Add one activity row to the caller's transaction. Does not commit."""
    activity = Activity(
        list_id=list_id,
        user_id=user_id,
        action=details.action,
        details=details.model_dump(mode="json"),
    )
    db.add(activity)
    return activity


def _fields(changes: dict) -> str:
    return ", ".join(changes)


def format_activity_message(actor: str, details: ActivityDetails) -> str:
    """Render a human-readable sentence for an activity."""
    match details:
        case ListCreatedDetails():
            if details.duplicated_from:
                return f"{actor} created the list as a copy"
            return f"{actor} created the list"
        case ListRenamedDetails():
            name_change = details.changes.get("name")
            if name_change is not None:
                return f'{actor} renamed the list to "{name_change.new}"'
            return f"{actor} updated the list ({_fields(details.changes)})"
        case ListDeletedDetails():
            return f"{actor} deleted the list"
        case ListArchivedDetails():
            return f"{actor} archived the list"
        case ListUnarchivedDetails():
            return f"{actor} restored the list from the archive"
        case ListSharedDetails():
            return f"{actor} shared the list with {details.shared_with}"
        case MemberAddedDetails():
            return f"{actor} added {details.member_name} to the list"
        case MemberRemovedDetails():
            if details.left:
                return f"{details.member_name} left the list"
            return f"{actor} removed {details.member_name} from the list"
        case MemberPermissionChangedDetails():
            return (
                f"{actor} changed {details.member_name}'s permission "
                f"to {details.new_permission}"
            )
        case OwnershipTransferredDetails():
            return f"{actor} transferred ownership to {details.new_owner_name}"
        case ItemAddedDetails():
            return f'{actor} added "{details.item_name}"'
        case ItemUpdatedDetails():
            return f'{actor} updated "{details.item_name}"'
        case ItemDeletedDetails():
            return f'{actor} deleted "{details.item_name}"'
        case ItemCheckedDetails():
            return f'{actor} marked "{details.item_name}" as gotten'
        case ItemUncheckedDetails():
            return f'{actor} marked "{details.item_name}" as not gotten'
        case ItemsClearedDetails():
            return f"{actor} cleared {details.count} completed items"
        case ItemsBulkDeletedDetails():
            return f"{actor} deleted {details.count} items"
        case CategoryCreatedDetails():
            return f'{actor} created category "{details.category_name}"'
        case CategoryUpdatedDetails():
            if details.changes:
                return (
                    f'{actor} updated category "{details.category_name}" '
                    f"({_fields(details.changes)})"
                )
            return f'{actor} updated category "{details.category_name}"'
        case CategoryArchivedDetails():
            return f'{actor} archived category "{details.category_name}"'
        case CategoryRestoredDetails():
            return f'{actor} restored category "{details.category_name}"'
        case CategoryDeletedDetails():
            return f'{actor} deleted category "{details.category_name}"'
        case CategoryMergedDetails():
            return (
                f"{actor} merged {len(details.source_ids)} categories "
                f'into "{details.target_name}"'
            )
        case CategoryLockedDetails():
            return f'{actor} locked category "{details.category_name}"'
        case CategoryUnlockedDetails():
            return f'{actor} unlocked category "{details.category_name}"'
        case CategorySuggestedDetails():
            return f'{actor} suggested category "{details.category_name}"'
        case CategorySuggestionApprovedDetails():
            return f'{actor} approved the suggested category "{details.category_name}"'
        case CategorySuggestionRejectedDetails():
            return f'{actor} rejected the suggested category "{details.category_name}"'
        case CategoryCommentAddedDetails():
            if details.is_reply:
                return f'{actor} replied to a comment on "{details.category_name}"'
            return f'{actor} commented on "{details.category_name}"'
        case CategoryCommentUpdatedDetails():
            return f'{actor} edited a comment on "{details.category_name}"'
        case CategoryCommentDeletedDetails():
            return f'{actor} deleted a comment on "{details.category_name}"'
        case CategoryVotedDetails():
            return f'{actor} voted to {details.vote_type} category "{details.category_name}"'
        case CategorySuggestionVotedDetails():
            return f'{actor} voted on the suggested category "{details.category_name}"'
        case _:
            assert_never(details)


def parse_details(action: str, details: dict | None) -> ActivityDetails:
    """Validate raw details against the variant selected by ``action``."""
    return ActivityDetailsAdapter.validate_python({**(details or {}), "action": action})


def describe_activity(activity: Activity) -> str:
    """Format a stored activity, tolerating rows whose details no longer parse."""
    actor = activity.user.name if activity.user else UNKNOWN_ACTOR
    try:
        details = parse_details(activity.action, activity.details)
    except pydantic.ValidationError:
        logger.warning(f"Unparseable details on activity {activity.id} ({activity.action})")
        return f"{actor} performed an action"
    return format_activity_message(actor, details)


def to_response(activity: Activity) -> ActivityResponse:
    return ActivityResponse(
        id=activity.id,
        list_id=activity.list_id,
        list_name=activity.list.name if activity.list else None,
        action=activity.action,
        details=activity.details,
        message=describe_activity(activity),
        user=UserSummary.model_validate(activity.user) if activity.user else None,
        created_at=activity.created_at,
    )


class ActivityService:
    """Reading and appending to a list's activity log."""

    def __init__(self, db: Session):
        self.db = db

    def list_activities(
        self, access: ListAccess, limit: int = 50, offset: int = 0
    ) -> tuple[list[Activity], int]:
        """Return one page of activities, newest first, and the total count."""
        query = self.db.query(Activity).filter(Activity.list_id == access.list_id)
        total = query.count()
        activities = (
            query.options(joinedload(Activity.user), joinedload(Activity.list))
            .order_by(Activity.created_at.desc(), Activity.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return activities, total

    def record(self, access: ListAccess, action: str, details: dict) -> Activity:
        """Append a client-submitted activity after validating it."""
        access.require(PermissionLevel.EDITOR, "record activity")
        if action not in _ACTION_VALUES:
            raise ValidationError("Invalid activity action", details={"action": action})
        try:
            parsed = parse_details(action, details)
        except pydantic.ValidationError as e:
            raise ValidationError(
                "Invalid activity details",
                details=e.errors(include_url=False, include_context=False, include_input=False),
            ) from e

        activity = log_activity(self.db, access.list_id, access.user_id, parsed)
        self.db.commit()
        self.db.refresh(activity)
        logger.info(f"Activity {action} recorded on list {access.list_id} by {access.user_id}")
        return activity
