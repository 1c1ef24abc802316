"""initial schema

Revision ID: 5c0e2f7a9b41
Revises:
Create Date: 2026-10-18 09:12:04.518330

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c0e2f7a9b41"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ACTIONS = (
    "list_created",
    "list_renamed",
    "list_deleted",
    "list_archived",
    "list_unarchived",
    "list_shared",
    "member_added",
    "member_removed",
    "member_permission_changed",
    "ownership_transferred",
    "item_added",
    "item_updated",
    "item_deleted",
    "item_checked",
    "item_unchecked",
    "items_cleared",
    "items_bulk_deleted",
    "category_created",
    "category_updated",
    "category_archived",
    "category_restored",
    "category_deleted",
    "category_merged",
    "category_locked",
    "category_unlocked",
    "category_suggested",
    "category_suggestion_approved",
    "category_suggestion_rejected",
    "category_comment_added",
    "category_comment_updated",
    "category_comment_deleted",
    "category_voted",
    "category_suggestion_voted",
)

# Deferred so an ownership transfer can demote and promote within one transaction
OWNER_GUARD_FUNCTION = """
CREATE OR REPLACE FUNCTION ensure_list_has_owner() RETURNS trigger AS $$
BEGIN
    IF EXISTS (SELECT 1 FROM lists WHERE id = OLD.list_id)
       AND NOT EXISTS (
           SELECT 1 FROM list_members
           WHERE list_id = OLD.list_id AND permission_level = 'owner'
       ) THEN
        RAISE EXCEPTION 'List % must always have an owner', OLD.list_id
            USING ERRCODE = 'check_violation';
    END IF;
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""

OWNER_GUARD_TRIGGER = """
CREATE CONSTRAINT TRIGGER list_members_keep_owner
    AFTER UPDATE OR DELETE ON list_members
    DEFERRABLE INITIALLY DEFERRED
    FOR EACH ROW EXECUTE FUNCTION ensure_list_has_owner();
"""


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def _archive_columns() -> list[sa.Column]:
    return [
        sa.Column("is_archived", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "lists",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False),
        sa.Column("icon", sa.String(length=10), nullable=False),
        *_timestamps(),
        *_archive_columns(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_lists_owner_id"), "lists", ["owner_id"], unique=False)

    op.create_table(
        "list_members",
        sa.Column("list_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("permission_level", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "permission_level IN ('owner', 'editor', 'viewer')", name="valid_permission_level"
        ),
        sa.ForeignKeyConstraint(["list_id"], ["lists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("list_id", "user_id"),
    )
    op.create_index(op.f("ix_list_members_user_id"), "list_members", ["user_id"], unique=False)

    op.create_table(
        "custom_categories",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("list_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=True),
        sa.Column("icon", sa.String(length=10), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_locked", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("last_edited_by", sa.Uuid(), nullable=True),
        *_timestamps(),
        *_archive_columns(),
        sa.CheckConstraint("length(trim(name)) > 0", name="category_name_not_empty"),
        sa.CheckConstraint("length(name) <= 100", name="category_name_max_length"),
        sa.ForeignKeyConstraint(["list_id"], ["lists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["last_edited_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_custom_categories_list_id"), "custom_categories", ["list_id"], unique=False
    )
    op.create_index(
        "uq_custom_categories_list_lower_name",
        "custom_categories",
        ["list_id", sa.text("lower(name)")],
        unique=True,
    )

    op.create_table(
        "grocery_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("list_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("gotten", sa.Boolean(), nullable=False),
        sa.Column("gotten_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("custom_category_id", sa.Uuid(), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="item_quantity_positive"),
        sa.ForeignKeyConstraint(["list_id"], ["lists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["custom_category_id"], ["custom_categories.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_grocery_items_list_id"), "grocery_items", ["list_id"], unique=False)
    op.create_index(op.f("ix_grocery_items_gotten"), "grocery_items", ["gotten"], unique=False)
    op.create_index(
        op.f("ix_grocery_items_custom_category_id"),
        "grocery_items",
        ["custom_category_id"],
        unique=False,
    )

    op.create_table(
        "category_suggestions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("list_id", sa.Uuid(), nullable=False),
        sa.Column("suggested_by", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=True),
        sa.Column("icon", sa.String(length=10), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("reviewed_by", sa.Uuid(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_category_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("length(trim(name)) > 0", name="suggestion_name_not_empty"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="valid_suggestion_status"
        ),
        sa.ForeignKeyConstraint(["list_id"], ["lists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["suggested_by"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["created_category_id"], ["custom_categories.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_category_suggestions_list_id"), "category_suggestions", ["list_id"], unique=False
    )
    op.create_index(
        op.f("ix_category_suggestions_status"), "category_suggestions", ["status"], unique=False
    )

    op.create_table(
        "category_votes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("vote_type", sa.String(length=10), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("vote_type IN ('keep', 'remove')", name="valid_vote_type"),
        sa.ForeignKeyConstraint(["category_id"], ["custom_categories.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("category_id", "user_id", name="unique_vote_per_user_category"),
    )
    op.create_index(
        op.f("ix_category_votes_category_id"), "category_votes", ["category_id"], unique=False
    )
    op.create_index(op.f("ix_category_votes_user_id"), "category_votes", ["user_id"], unique=False)

    op.create_table(
        "category_suggestion_votes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("suggestion_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("vote_type", sa.String(length=10), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "vote_type IN ('upvote', 'downvote')", name="valid_suggestion_vote_type"
        ),
        sa.ForeignKeyConstraint(
            ["suggestion_id"], ["category_suggestions.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("suggestion_id", "user_id", name="unique_vote_per_user_suggestion"),
    )
    op.create_index(
        op.f("ix_category_suggestion_votes_suggestion_id"),
        "category_suggestion_votes",
        ["suggestion_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_category_suggestion_votes_user_id"),
        "category_suggestion_votes",
        ["user_id"],
        unique=False,
    )

    op.create_table(
        "category_comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("parent_id", sa.Uuid(), nullable=True),
        sa.Column("comment_text", sa.Text(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("length(trim(comment_text)) > 0", name="comment_text_not_empty"),
        sa.CheckConstraint("length(comment_text) <= 1000", name="comment_text_max_length"),
        sa.ForeignKeyConstraint(["category_id"], ["custom_categories.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["parent_id"], ["category_comments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_category_comments_category_id"),
        "category_comments",
        ["category_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_category_comments_user_id"), "category_comments", ["user_id"], unique=False
    )
    op.create_index(
        op.f("ix_category_comments_parent_id"), "category_comments", ["parent_id"], unique=False
    )

    action_values = ", ".join(f"'{action}'" for action in ACTIONS)
    op.create_table(
        "list_activities",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("list_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column(
            "details",
            sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(f"action IN ({action_values})", name="valid_activity_action"),
        sa.ForeignKeyConstraint(["list_id"], ["lists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_list_activities_list_id"), "list_activities", ["list_id"], unique=False
    )
    op.create_index(
        op.f("ix_list_activities_user_id"), "list_activities", ["user_id"], unique=False
    )
    op.create_index(op.f("ix_list_activities_action"), "list_activities", ["action"], unique=False)
    op.create_index(
        op.f("ix_list_activities_created_at"), "list_activities", ["created_at"], unique=False
    )

    op.create_table(
        "push_subscriptions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("endpoint", sa.String(length=500), nullable=False),
        sa.Column("p256dh_key", sa.String(length=200), nullable=False),
        sa.Column("auth_key", sa.String(length=100), nullable=False),
        sa.Column("expiration_time", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "endpoint", name="uq_user_endpoint"),
    )
    op.create_index(
        op.f("ix_push_subscriptions_user_id"), "push_subscriptions", ["user_id"], unique=False
    )

    op.create_table(
        "list_pins",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("list_id", sa.Uuid(), nullable=False),
        sa.Column(
            "pinned_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["list_id"], ["lists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "list_id"),
    )
    op.create_index(op.f("ix_list_pins_list_id"), "list_pins", ["list_id"], unique=False)
    op.create_index(
        "idx_list_pins_user_pinned_at", "list_pins", ["user_id", "pinned_at"], unique=False
    )

    op.create_table(
        "failed_login_attempts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("attempt_time", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_failed_login_email_time",
        "failed_login_attempts",
        ["email", "attempt_time"],
        unique=False,
    )

    op.create_table(
        "account_lockouts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("unlock_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_account_lockouts_email_active",
        "account_lockouts",
        ["email", "is_active"],
        unique=False,
    )

    if op.get_bind().dialect.name == "postgresql":
        op.execute(OWNER_GUARD_FUNCTION)
        op.execute(OWNER_GUARD_TRIGGER)


def downgrade() -> None:
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TRIGGER IF EXISTS list_members_keep_owner ON list_members")
        op.execute("DROP FUNCTION IF EXISTS ensure_list_has_owner()")

    op.drop_table("account_lockouts")
    op.drop_table("failed_login_attempts")
    op.drop_table("list_pins")
    op.drop_table("push_subscriptions")
    op.drop_table("list_activities")
    op.drop_table("category_comments")
    op.drop_table("category_suggestion_votes")
    op.drop_table("category_votes")
    op.drop_table("category_suggestions")
    op.drop_table("grocery_items")
    op.drop_index("uq_custom_categories_list_lower_name", table_name="custom_categories")
    op.drop_table("custom_categories")
    op.drop_table("list_members")
    op.drop_table("lists")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
