"""Activity log model."""

from datetime import UTC, datetime

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from grocery.database import Base
from grocery.models.enums import ActivityAction
from grocery.models.mixins import UUIDPrimaryKeyMixin

_ACTION_VALUES = ", ".join(f"'{action.value}'" for action in ActivityAction)


class Activity(Base, UUIDPrimaryKeyMixin):
    """Append-only audit record of an action performed on a list."""

    __tablename__ = "list_activities"
    __table_args__ = (
        CheckConstraint(f"action IN ({_ACTION_VALUES})", name="valid_activity_action"),
    )

    list_id = Column(Uuid, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True)
    # Kept when the user is deleted so history survives, anonymized
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    details = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), index=True
    )

    # Relationships
    list = relationship("GroceryList", back_populates="activities")
    user = relationship("User")
