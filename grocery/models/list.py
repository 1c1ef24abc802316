"""List and membership models."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Uuid,
    event,
    func,
    inspect,
)
from sqlalchemy.orm import Session, relationship

from grocery.database import Base
from grocery.exceptions import ValidationError
from grocery.models.enums import PermissionLevel
from grocery.models.mixins import ArchiveMixin, TimestampMixin, UUIDPrimaryKeyMixin

DEFAULT_LIST_COLOR = "#4caf50"
DEFAULT_LIST_ICON = "📝"


class GroceryList(Base, UUIDPrimaryKeyMixin, TimestampMixin, ArchiveMixin):
    """A named, shareable collection of grocery items."""

    __tablename__ = "lists"

    name = Column(String(255), nullable=False)
    owner_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    color = Column(String(7), nullable=False, default=DEFAULT_LIST_COLOR)
    icon = Column(String(10), nullable=False, default=DEFAULT_LIST_ICON)

    # Relationships
    owner = relationship("User", backref="owned_lists")
    members = relationship(
        "ListMember", back_populates="list", cascade="all, delete-orphan", passive_deletes=True
    )
    items = relationship(
        "GroceryItem", back_populates="list", cascade="all, delete-orphan", passive_deletes=True
    )
    categories = relationship(
        "CustomCategory",
        back_populates="list",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    suggestions = relationship(
        "CategorySuggestion",
        back_populates="list",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    activities = relationship(
        "Activity", back_populates="list", cascade="all, delete-orphan", passive_deletes=True
    )
    pins = relationship("ListPin", cascade="all, delete-orphan", passive_deletes=True)


class ListMember(Base, TimestampMixin):
    """Membership of a user in a list with a permission level."""

    __tablename__ = "list_members"
    __table_args__ = (
        CheckConstraint(
            "permission_level IN ('owner', 'editor', 'viewer')",
            name="valid_permission_level",
        ),
    )

    list_id = Column(Uuid, ForeignKey("lists.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    permission_level = Column(String(20), nullable=False, default=PermissionLevel.VIEWER.value)

    # Relationships
    list = relationship("GroceryList", back_populates="members")
    user = relationship("User", backref="memberships")

    @property
    def permission(self) -> PermissionLevel:
        return PermissionLevel(self.permission_level)


class ListPin(Base):
    """A list pinned by one user so it sorts first in their overview."""

    __tablename__ = "list_pins"
    __table_args__ = (Index("idx_list_pins_user_pinned_at", "user_id", "pinned_at"),)

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    list_id = Column(
        Uuid, ForeignKey("lists.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    pinned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


@event.listens_for(Session, "before_flush")
def ensure_lists_keep_an_owner(session: Session, flush_context, instances) -> None:
    """Reject any flush that would leave a surviving list without an owner member."""
    affected: set = set()
    for obj in session.deleted:
        if isinstance(obj, ListMember) and obj.permission_level == PermissionLevel.OWNER:
            affected.add(obj.list_id)
    for obj in session.dirty:
        if not isinstance(obj, ListMember):
            continue
        history = inspect(obj).attrs.permission_level.history
        if PermissionLevel.OWNER.value in (history.deleted or ()):
            affected.add(obj.list_id)

    if not affected:
        return

    deleted_lists = {obj.id for obj in session.deleted if isinstance(obj, GroceryList)}
    for list_id in affected - deleted_lists:
        with session.no_autoflush:
            candidates = set(
                session.query(ListMember)
                .filter(
                    ListMember.list_id == list_id,
                    ListMember.permission_level == PermissionLevel.OWNER.value,
                )
                .all()
            )
        candidates.update(
            obj
            for obj in list(session.new) + list(session.dirty)
            if isinstance(obj, ListMember) and obj.list_id == list_id
        )
        owners = [
            member
            for member in candidates
            if member not in session.deleted
            and member.permission_level == PermissionLevel.OWNER.value
        ]
        if not owners:
            raise ValidationError("A list must always have an owner")
