"""Failed login tracking with temporary account lockout."""

import logging
import math
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from grocery.config import get_settings
from grocery.database import atomic
from grocery.exceptions import AccountLockedError
from grocery.models import AccountLockout, FailedLoginAttempt
from grocery.services.auth import get_user_by_email, normalize_email

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def get_active_lockout(db: Session, email: str) -> AccountLockout | None:
    now = datetime.now(UTC)
    return (
        db.query(AccountLockout)
        .filter(
            AccountLockout.email == normalize_email(email),
            AccountLockout.is_active.is_(True),
            AccountLockout.unlock_at > now,
        )
        .order_by(AccountLockout.unlock_at.desc())
        .first()
    )


def ensure_not_locked(db: Session, email: str) -> None:
    """Raise AccountLockedError while the account has an unexpired lockout."""
    lockout = get_active_lockout(db, email)
    if lockout is None:
        return

    unlock_at = _as_utc(lockout.unlock_at)
    remaining = max(1, math.ceil((unlock_at - datetime.now(UTC)).total_seconds() / 60))
    raise AccountLockedError(
        "Account temporarily locked due to too many failed login attempts. "
        f"Please try again in {remaining} minute(s).",
        details={"unlock_at": unlock_at.isoformat(), "remaining_minutes": remaining},
    )


def record_failed_login(db: Session, email: str, ip_address: str | None) -> bool:
    """Store a failed attempt and lock the account once the window's limit is reached.

    Returns True when this attempt triggered a lockout.
    """
    settings = get_settings()
    email = normalize_email(email)
    user = get_user_by_email(db, email)
    now = datetime.now(UTC)

    with atomic(db):
        db.add(
            FailedLoginAttempt(
                user_id=user.id if user else None,
                email=email,
                ip_address=ip_address,
                attempt_time=now,
            )
        )
        db.flush()

        window_start = now - timedelta(minutes=settings.login_attempt_window_minutes)
        attempts = (
            db.query(FailedLoginAttempt)
            .filter(
                FailedLoginAttempt.email == email,
                FailedLoginAttempt.attempt_time > window_start,
            )
            .count()
        )
        locked = attempts >= settings.max_login_attempts
        if locked:
            db.add(
                AccountLockout(
                    user_id=user.id if user else None,
                    email=email,
                    locked_at=now,
                    unlock_at=now + timedelta(minutes=settings.lockout_duration_minutes),
                )
            )

    if locked:
        logger.warning(f"Account {email} locked after {attempts} failed login attempts")
    else:
        logger.info(f"Failed login attempt {attempts} for {email} from {ip_address}")
    return locked


def clear_failed_attempts(db: Session, email: str) -> None:
    """Forget past failures after a successful login."""
    with atomic(db):
        db.query(FailedLoginAttempt).filter(
            FailedLoginAttempt.email == normalize_email(email)
        ).delete(synchronize_session=False)
