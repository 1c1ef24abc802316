"""Custom category model."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    false,
    func,
)
from sqlalchemy.orm import relationship

from grocery.database import Base
from grocery.models.mixins import ArchiveMixin, TimestampMixin, UUIDPrimaryKeyMixin


class CustomCategory(Base, UUIDPrimaryKeyMixin, TimestampMixin, ArchiveMixin):
    """User-defined category for organizing items within one list."""

    __tablename__ = "custom_categories"
    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name="category_name_not_empty"),
        CheckConstraint("length(name) <= 100", name="category_name_max_length"),
    )

    list_id = Column(Uuid, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    color = Column(String(7), nullable=True)
    icon = Column(String(10), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)  # higher numbers sort first
    is_locked = Column(Boolean, nullable=False, default=False, server_default=false())
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    last_edited_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    list = relationship("GroceryList", back_populates="categories")
    items = relationship("GroceryItem", back_populates="custom_category", passive_deletes=True)
    votes = relationship(
        "CategoryVote",
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comments = relationship(
        "CategoryComment",
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    created_by_user = relationship("User", foreign_keys=[created_by])


# Category names are unique per list regardless of case
Index(
    "uq_custom_categories_list_lower_name",
    CustomCategory.list_id,
    func.lower(CustomCategory.name),
    unique=True,
)
