"""Grocery item model."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from grocery.database import Base
from grocery.models.enums import PredefinedCategory
from grocery.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class GroceryItem(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """An item on a grocery list."""

    __tablename__ = "grocery_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="item_quantity_positive"),)

    list_id = Column(Uuid, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    gotten = Column(Boolean, nullable=False, default=False, index=True)
    gotten_at = Column(DateTime(timezone=True), nullable=True)
    # Predefined category name; a custom category takes precedence when set
    category = Column(String(50), nullable=False, default=PredefinedCategory.OTHER.value)
    custom_category_id = Column(
        Uuid, ForeignKey("custom_categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    notes = Column(String(1000), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    list = relationship("GroceryList", back_populates="items")
    custom_category = relationship("CustomCategory", back_populates="items")
    created_by_user = relationship("User", foreign_keys=[created_by])
