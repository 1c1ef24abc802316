"""Mixins for SQLAlchemy models."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Uuid, false, func


class UUIDPrimaryKeyMixin:
    """Mixin to add a UUID v4 primary key."""

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    """Mixin to add created_at and updated_at timestamp columns."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ArchiveMixin:
    """Mixin to add reversible archive (soft delete) functionality."""

    is_archived = Column(Boolean, nullable=False, default=False, server_default=false())
    archived_at = Column(DateTime(timezone=True), nullable=True)

    def archive(self) -> None:
        """Hide the record from default views."""
        self.is_archived = True
        self.archived_at = datetime.now(UTC)

    def restore(self) -> None:
        """Restore an archived record."""
        self.is_archived = False
        self.archived_at = None
