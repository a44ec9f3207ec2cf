# app/services/password_reset.py
#
# Password Reset Flow
# Issues single-use, time-limited reset tokens and consumes them.
#
# Per user:  no pending reset -> pending -> consumed | expired | aborted
#   - request_reset puts a fresh token + expiry on the user and mails a link
#   - if the mail cannot be sent the token is cleared again (aborted)
#   - consume_reset accepts the token only while expiry is in the future,
#     and clears it on success (single use)

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.errors import DependencyFailure, ValidationError
from app.services.mailer import MailDeliveryError, build_reset_url
from app.services.security import generate_reset_token, hash_password
from app.services.users import find_by_email, validate_email, validate_password
from config import Settings
from models import User, utcnow

logger = logging.getLogger(__name__)

MAIL_NOT_CONFIGURED = "Email service not configured. Please contact support."
MAIL_FAILED = "Failed to send password reset email. Please try again later."
INVALID_TOKEN = "Invalid or expired reset token"


def reset_request_message(email: str) -> str:
    """
    Response for a reset request.
    Same text whether or not the account exists, so it can't be used to
    discover which emails are registered.
    """
    return f"If an account with {email} exists, password reset instructions have been sent."


def request_reset(
    db: Session,
    email: Optional[str],
    mailer,
    settings: Settings,
    now: Optional[datetime] = None,
) -> str:
    """
    Start a password reset for `email` and return the message for the caller.

    Raises:
        ValidationError: email missing or malformed
        DependencyFailure: mail not configured, or the notification could
            not be sent (the issued token is rolled back first)
    """
    normalized = validate_email(email)

    if mailer is None:
        raise DependencyFailure(MAIL_NOT_CONFIGURED)

    user = find_by_email(db, normalized)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return reset_request_message(normalized)

    now = now or utcnow()
    token = generate_reset_token()
    user.set_reset_token(token, now + timedelta(minutes=settings.reset_token_ttl_minutes))
    db.commit()

    try:
        mailer.send_password_reset(
            to_email=user.email,
            user_name=user.name,
            reset_url=build_reset_url(settings.frontend_url, token),
        )
    except Exception as e:
        # any failure to dispatch means no pending reset may remain
        user.clear_reset_token()
        db.commit()
        if isinstance(e, MailDeliveryError):
            logger.warning("Password reset aborted for user id=%s: mail dispatch failed", user.id)
        else:
            logger.exception("Password reset aborted for user id=%s: unexpected mailer error", user.id)
        raise DependencyFailure(MAIL_FAILED) from e

    logger.info("Password reset pending for user id=%s", user.id)
    return reset_request_message(normalized)


def find_by_reset_token(db: Session, token: str, now: datetime) -> Optional[User]:
    """User holding `token`, if its expiry is strictly after `now`."""
    if not token:
        return None
    user = db.query(User).filter(User.reset_token == token).first()
    if user is None or user.reset_token_expiry is None:
        return None
    if user.reset_token_expiry <= now:
        return None
    return user


def consume_reset(
    db: Session,
    token: str,
    new_password: Optional[str],
    settings: Settings,
    now: Optional[datetime] = None,
) -> User:
    """
    Set a new password using a pending reset token.

    Raises ValidationError for a weak password or an unknown/expired token.
    """
    validate_password(new_password)
    now = now or utcnow()

    user = find_by_reset_token(db, token, now)
    if user is None:
        raise ValidationError(INVALID_TOKEN)

    # Claim the token and set the password in one conditional UPDATE, so two
    # concurrent consumes of the same token cannot both succeed.
    claimed = (
        db.query(User)
        .filter(
            User.id == user.id,
            User.reset_token == token,
            User.reset_token_expiry > now,
        )
        .update(
            {
                User.password_hash: hash_password(new_password, rounds=settings.bcrypt_rounds),
                User.password_changed_at: utcnow(),
                User.reset_token: None,
                User.reset_token_expiry: None,
            },
            synchronize_session=False,
        )
    )
    if claimed != 1:
        db.rollback()
        raise ValidationError(INVALID_TOKEN)

    db.commit()
    db.refresh(user)

    logger.info("Password reset completed for user id=%s", user.id)
    return user
