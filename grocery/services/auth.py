"""Authentication service for JWT and password handling."""

import re
from datetime import UTC, datetime, timedelta
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from grocery.config import get_settings
from grocery.exceptions import ValidationError
from grocery.models.user import User

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(user_id: UUID, email: str) -> str:
    """Create a JWT access token."""
    settings = get_settings()
    expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes)
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT token."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def user_id_from_token(token: str) -> UUID | None:
    """Extract the user id from a valid token, or None."""
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    try:
        return UUID(payload["sub"])
    except ValueError:
        return None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def create_user(db: Session, email: str, password: str, name: str) -> User:
    """Create a new user."""
    hashed_password = get_password_hash(password)
    user = User(email=normalize_email(email), password_hash=hashed_password, name=name.strip())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_SEARCH_RESULTS = 10


def search_users_by_email(
    db: Session, email: str, exclude_user_id: UUID, limit: int = MAX_SEARCH_RESULTS
) -> list[User]:
    """Users whose email contains ``email`` (case-insensitive), other than the caller."""
    email = normalize_email(email)
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")

    pattern = email.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return (
        db.query(User)
        .filter(User.email.ilike(f"%{pattern}%", escape="\\"), User.id != exclude_user_id)
        .order_by(User.email)
        .limit(limit)
        .all()
    )
