# app/services/users.py
#
# Credential Store
# Creates users, looks them up by email, checks and replaces passwords.
# Emails are normalized (trimmed + lower-cased) before every read and write.

import logging
import re
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import Conflict, ValidationError
from app.services.security import check_password, hash_password
from models import User, utcnow

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 6


# ---- Input checks ----

def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: Optional[str]) -> str:
    """Return the normalized email or raise ValidationError."""
    if not email or not email.strip():
        raise ValidationError("Email is required")
    normalized = normalize_email(email)
    if not EMAIL_RE.match(normalized):
        raise ValidationError("Please enter a valid email format")
    return normalized


def validate_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return password


def validate_credentials(email: Optional[str], password: Optional[str]) -> str:
    """
    Shared checks for register and login.
    Returns the normalized email.
    """
    if not email or not password:
        raise ValidationError("Email and password are required")
    normalized = validate_email(email)
    validate_password(password)
    return normalized


# ---- Store operations ----

def find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def create_user(
    db: Session,
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    rounds: int = 12,
) -> User:
    """
    Register a new user.

    Raises ValidationError for bad input and Conflict if the email is taken
    (compared case-insensitively).
    """
    normalized = validate_credentials(email, password)

    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("Name is required")

    if find_by_email(db, normalized) is not None:
        raise Conflict("User already exists with this email")

    user = User(
        name=clean_name,
        email=normalized,
        password_hash=hash_password(password, rounds=rounds),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration for the same email
        db.rollback()
        raise Conflict("User already exists with this email")
    db.refresh(user)

    logger.info("Registered user id=%s", user.id)
    return user


def verify_password(user: User, password: str) -> bool:
    return check_password(password, user.password_hash)


def authenticate(db: Session, email: Optional[str], password: Optional[str]) -> User:
    """
    Login check. Unknown email and wrong password produce the same error.
    """
    normalized = validate_credentials(email, password)

    user = find_by_email(db, normalized)
    if user is None or not verify_password(user, password):
        logger.info("Login rejected: invalid credentials")
        raise ValidationError("Invalid credentials")

    logger.info("Login succeeded for user id=%s", user.id)
    return user


def update_password(db: Session, user: User, new_password: str, rounds: int = 12) -> User:
    """
    Rehash and store a new password. Any pending reset token is cleared.
    """
    validate_password(new_password)

    user.password_hash = hash_password(new_password, rounds=rounds)
    user.password_changed_at = utcnow()
    user.clear_reset_token()

    db.commit()
    db.refresh(user)
    return user
