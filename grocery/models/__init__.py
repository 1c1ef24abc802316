"""SQLAlchemy models."""

from grocery.models.activity import Activity
from grocery.models.category import CustomCategory
from grocery.models.collaboration import (
    CategoryComment,
    CategorySuggestion,
    CategorySuggestionVote,
    CategoryVote,
)
from grocery.models.item import GroceryItem
from grocery.models.list import GroceryList, ListMember, ListPin
from grocery.models.login_attempt import AccountLockout, FailedLoginAttempt
from grocery.models.push_subscription import PushSubscription
from grocery.models.user import User

__all__ = [
    "User",
    "GroceryList",
    "ListMember",
    "ListPin",
    "GroceryItem",
    "CustomCategory",
    "CategorySuggestion",
    "CategoryVote",
    "CategorySuggestionVote",
    "CategoryComment",
    "Activity",
    "PushSubscription",
    "FailedLoginAttempt",
    "AccountLockout",
]
