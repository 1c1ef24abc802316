"""Enums for model fields."""

from enum import Enum, StrEnum


class PermissionLevel(str, Enum):
    """Permission levels for list members, ordered none < viewer < editor < owner."""

    NONE = "none"
    VIEWER = "viewer"
    EDITOR = "editor"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return _PERMISSION_RANK[self]

    def at_least(self, other: "PermissionLevel") -> bool:
        """Check if this level grants everything ``other`` grants."""
        return self.rank >= other.rank

    def can_edit(self) -> bool:
        """Check if this permission allows editing items and categories."""
        return self.at_least(PermissionLevel.EDITOR)

    def is_owner(self) -> bool:
        return self == PermissionLevel.OWNER


_PERMISSION_RANK = {
    PermissionLevel.NONE: 0,
    PermissionLevel.VIEWER: 1,
    PermissionLevel.EDITOR: 2,
    PermissionLevel.OWNER: 3,
}

# Levels that can be stored on a membership row
MEMBER_LEVELS = (PermissionLevel.VIEWER, PermissionLevel.EDITOR, PermissionLevel.OWNER)


class PredefinedCategory(StrEnum):
    """Built-in item categories available on every list."""

    PRODUCE = "Produce"
    DAIRY = "Dairy"
    MEAT = "Meat"
    BAKERY = "Bakery"
    PANTRY = "Pantry"
    FROZEN = "Frozen"
    BEVERAGES = "Beverages"
    OTHER = "Other"

    @classmethod
    def matches(cls, name: str) -> bool:
        """Check if a name equals a predefined category, ignoring case."""
        normalized = name.strip().lower()
        return any(member.value.lower() == normalized for member in cls)


class SuggestionStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CategoryVoteType(StrEnum):
    KEEP = "keep"
    REMOVE = "remove"


class SuggestionVoteType(StrEnum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class ActivityAction(StrEnum):
    """Closed set of actions recorded in the activity log."""

    # List events
    LIST_CREATED = "list_created"
    LIST_RENAMED = "list_renamed"
    LIST_DELETED = "list_deleted"
    LIST_ARCHIVED = "list_archived"
    LIST_UNARCHIVED = "list_unarchived"
    LIST_SHARED = "list_shared"

    # Membership events
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"
    MEMBER_PERMISSION_CHANGED = "member_permission_changed"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"

    # Item events
    ITEM_ADDED = "item_added"
    ITEM_UPDATED = "item_updated"
    ITEM_DELETED = "item_deleted"
    ITEM_CHECKED = "item_checked"
    ITEM_UNCHECKED = "item_unchecked"
    ITEMS_CLEARED = "items_cleared"
    ITEMS_BULK_DELETED = "items_bulk_deleted"

    # Category events
    CATEGORY_CREATED = "category_created"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_ARCHIVED = "category_archived"
    CATEGORY_RESTORED = "category_restored"
    CATEGORY_DELETED = "category_deleted"
    CATEGORY_MERGED = "category_merged"
    CATEGORY_LOCKED = "category_locked"
    CATEGORY_UNLOCKED = "category_unlocked"

    # Collaboration events
    CATEGORY_SUGGESTED = "category_suggested"
    CATEGORY_SUGGESTION_APPROVED = "category_suggestion_approved"
    CATEGORY_SUGGESTION_REJECTED = "category_suggestion_rejected"
    CATEGORY_COMMENT_ADDED = "category_comment_added"
    CATEGORY_COMMENT_UPDATED = "category_comment_updated"
    CATEGORY_COMMENT_DELETED = "category_comment_deleted"
    CATEGORY_VOTED = "category_voted"
    CATEGORY_SUGGESTION_VOTED = "category_suggestion_voted"
