# app/deps.py
# Role: Shared application-level dependencies.
#       Provides the request-scoped SQLAlchemy session, the process settings and
#       mailer (stored on app.state by the factory), and the authorization gate
#       that turns a bearer token into the current User.

"""
Shared dependencies for the finance tracker API.
"""

import logging
from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.errors import Unauthorized
from app.services.security import SessionClaims, verify_session_token
from app.services.users import get_user
from config import Settings
from models import User

logger = logging.getLogger(__name__)

# auto_error=False: we want our own 401 body instead of FastAPI's default
bearer_scheme = HTTPBearer(auto_error=False)


# -------------------------------------------------------------------
# Configuration & collaborators
# -------------------------------------------------------------------

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request):
    """The configured mailer, or None when mail is not set up."""
    return request.app.state.mailer


# -------------------------------------------------------------------
# Database dependency
# -------------------------------------------------------------------

def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session and ensures it is closed.

    Typical usage in routes:
        db: Session = Depends(get_db)
    """
    db = request.app.state.session_factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# -------------------------------------------------------------------
# Authorization gate
# -------------------------------------------------------------------

def is_revoked(claims: SessionClaims, user: User, settings: Settings) -> bool:
    """
    True if the session predates the user's last password change.
    JWT iat has whole-second precision, so compare at that precision.
    """
    if not settings.revoke_sessions_on_password_change:
        return False
    if user.password_changed_at is None:
        return False
    return claims.issued_at < user.password_changed_at.replace(microsecond=0)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Resolve `Authorization: Bearer <token>` to a live User.

    - no token                      -> 401 "Access token required"
    - bad signature / expired       -> 403 "Invalid or expired token"
    - user deleted since issuance   -> 401 "Invalid token"
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access token required")

    claims = verify_session_token(credentials.credentials, settings)

    user = get_user(db, claims.user_id)
    if user is None:
        logger.info("Rejected token for missing user id=%s", claims.user_id)
        raise Unauthorized("Invalid token")

    if is_revoked(claims, user, settings):
        logger.info("Rejected token issued before password change for user id=%s", user.id)
        raise Unauthorized("Invalid or expired token", status_code=403)

    return user
