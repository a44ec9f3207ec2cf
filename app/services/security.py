# filename: app/services/security.py
"""
Password hashing and session tokens.

Public API:
    hash_password(plain, rounds)            -> str
    check_password(plain, password_hash)    -> bool
    issue_session_token(user, settings)     -> str
    verify_session_token(token, settings)   -> SessionClaims
    generate_reset_token()                  -> str

Session tokens are stateless HS256 JWTs carrying {sub, email, iat, exp}.
Verification only checks signature, shape and expiry; looking the user up
again is the caller's job (see app/deps.py:get_current_user).
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from app.errors import Unauthorized
from config import Settings

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

# 32 random bytes -> 64 hex chars (256 bits of entropy)
RESET_TOKEN_BYTES = 32


# ---- Passwords ----

def _password_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int = 12) -> str:
    """Salted, slow one-way hash of a plaintext password."""
    hashed = bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def check_password(plain: str, password_hash: str) -> bool:
    """Constant-time check of a plaintext password against a stored bcrypt hash."""
    if not plain or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain), password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


# ---- Reset tokens ----

def generate_reset_token() -> str:
    return secrets.token_hex(RESET_TOKEN_BYTES)


# ---- Session tokens ----

@dataclass(frozen=True)
class SessionClaims:
    user_id: int
    email: str
    issued_at: datetime  # naive UTC
    expires_at: datetime  # naive UTC


def _as_naive_utc(ts: int | float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


def issue_session_token(user, settings: Settings, now: Optional[datetime] = None) -> str:
    """
    Sign {sub, email, iat, exp} for the given user.

    `now` is an aware UTC datetime (defaults to the current time).
    """
    issued = now or datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "iat": issued,
        "exp": issued + timedelta(days=settings.session_ttl_days),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_session_token(token: str, settings: Settings) -> SessionClaims:
    """
    Decode and check a session token.

    Raises Unauthorized(403) if the signature is wrong, the payload is
    malformed, or the token has expired.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:  # includes ExpiredSignatureError
        raise Unauthorized("Invalid or expired token", status_code=403)

    try:
        user_id = int(payload["sub"])
        email = str(payload["email"])
        issued_at = _as_naive_utc(payload["iat"])
        expires_at = _as_naive_utc(payload["exp"])
    except (KeyError, TypeError, ValueError):
        raise Unauthorized("Invalid or expired token", status_code=403)

    return SessionClaims(
        user_id=user_id,
        email=email,
        issued_at=issued_at,
        expires_at=expires_at,
    )
