"""Category collaboration models: suggestions, votes and comments."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import backref, relationship

from grocery.database import Base
from grocery.models.enums import SuggestionStatus
from grocery.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class CategorySuggestion(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A proposed custom category awaiting review by an editor or owner."""

    __tablename__ = "category_suggestions"
    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name="suggestion_name_not_empty"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="valid_suggestion_status"
        ),
    )

    list_id = Column(Uuid, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True)
    suggested_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(100), nullable=False)
    color = Column(String(7), nullable=True)
    icon = Column(String(10), nullable=True)
    reason = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=SuggestionStatus.PENDING.value, index=True)
    reviewed_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_category_id = Column(
        Uuid, ForeignKey("custom_categories.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    list = relationship("GroceryList", back_populates="suggestions")
    suggester = relationship("User", foreign_keys=[suggested_by])
    reviewer = relationship("User", foreign_keys=[reviewed_by])
    votes = relationship(
        "CategorySuggestionVote",
        back_populates="suggestion",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class CategoryVote(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A member's vote to keep or remove a category."""

    __tablename__ = "category_votes"
    __table_args__ = (
        UniqueConstraint("category_id", "user_id", name="unique_vote_per_user_category"),
        CheckConstraint("vote_type IN ('keep', 'remove')", name="valid_vote_type"),
    )

    category_id = Column(
        Uuid, ForeignKey("custom_categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    vote_type = Column(String(10), nullable=False)

    # Relationships
    category = relationship("CustomCategory", back_populates="votes")


class CategorySuggestionVote(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A member's up or down vote on a pending suggestion."""

    __tablename__ = "category_suggestion_votes"
    __table_args__ = (
        UniqueConstraint("suggestion_id", "user_id", name="unique_vote_per_user_suggestion"),
        CheckConstraint(
            "vote_type IN ('upvote', 'downvote')", name="valid_suggestion_vote_type"
        ),
    )

    suggestion_id = Column(
        Uuid,
        ForeignKey("category_suggestions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    vote_type = Column(String(10), nullable=False)

    # Relationships
    suggestion = relationship("CategorySuggestion", back_populates="votes")


class CategoryComment(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A threaded discussion comment on a category."""

    __tablename__ = "category_comments"
    __table_args__ = (
        CheckConstraint("length(trim(comment_text)) > 0", name="comment_text_not_empty"),
        CheckConstraint("length(comment_text) <= 1000", name="comment_text_max_length"),
    )

    category_id = Column(
        Uuid, ForeignKey("custom_categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    parent_id = Column(
        Uuid, ForeignKey("category_comments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    comment_text = Column(Text, nullable=False)

    # Relationships
    category = relationship("CustomCategory", back_populates="comments")
    author = relationship("User")
    replies = relationship(
        "CategoryComment",
        backref=backref("parent", remote_side="CategoryComment.id"),
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
