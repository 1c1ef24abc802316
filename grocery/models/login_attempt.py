"""Failed login tracking and temporary account lockouts."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Uuid, true

from grocery.database import Base
from grocery.models.mixins import UUIDPrimaryKeyMixin


class FailedLoginAttempt(Base, UUIDPrimaryKeyMixin):
    """One rejected login, kept for the lockout window."""

    __tablename__ = "failed_login_attempts"
    __table_args__ = (Index("idx_failed_login_email_time", "email", "attempt_time"),)

    # Null when the email does not belong to any account
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    email = Column(String(255), nullable=False)
    ip_address = Column(String(45), nullable=True)
    attempt_time = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )


class AccountLockout(Base, UUIDPrimaryKeyMixin):
    """Login block for an email address until ``unlock_at``."""

    __tablename__ = "account_lockouts"
    __table_args__ = (Index("idx_account_lockouts_email_active", "email", "is_active"),)

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    email = Column(String(255), nullable=False)
    locked_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    unlock_at = Column(DateTime(timezone=True), nullable=False)
    reason = Column(String(255), nullable=False, default="Too many failed login attempts")
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
