# config.py
# Role: Process-wide configuration for the finance tracker API.
#       Reads environment variables (and an optional .env file) exactly once
#       and exposes them as an immutable Settings object.

"""
Configuration for the finance tracker.

Business logic never calls os.getenv directly: the application factory
builds one Settings instance at startup and hands it to the services
(session tokens, password hashing, mail transport) through dependencies.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Tuple

from dotenv import load_dotenv

# Base directory of the project (where this module lives)
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Default SQLite database: <project_root>/database/finance.db
DEFAULT_DB_PATH = os.path.join(BASE_DIR, "database", "finance.db")
DEFAULT_DATABASE_URL = f"sqlite:///{DEFAULT_DB_PATH}"

# Only meant for local development; a warning is logged when it is in use.
DEV_JWT_SECRET = "dev-secret-change-me"


def _env_truthy(name: str, default: str = "0") -> bool:
    v = os.getenv(name, default)
    return str(v).strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_list(name: str, default: str = "") -> Tuple[str, ...]:
    raw = os.getenv(name, default) or ""
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """
    Immutable runtime configuration.

    Construct it with Settings.from_env() in production, or directly
    (keyword arguments) in tests.
    """

    database_url: str = DEFAULT_DATABASE_URL

    # Session tokens (JWT)
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    session_ttl_days: int = 7
    revoke_sessions_on_password_change: bool = True

    # Password hashing / reset
    bcrypt_rounds: int = 12
    reset_token_ttl_minutes: int = 60

    # Links inside notification emails point at the UI
    frontend_url: str = "http://localhost:8080"

    # Mail transport
    email_host: str = "smtp.gmail.com"
    email_port: int = 587
    email_user: str = ""
    email_password: str = field(default="", repr=False)
    email_from_name: str = "Expensia Support"
    email_timeout: int = 10

    cors_origins: Tuple[str, ...] = ()
    log_level: str = "INFO"

    @property
    def email_configured(self) -> bool:
        return bool(self.email_user and self.email_password)

    @property
    def uses_dev_secret(self) -> bool:
        return self.jwt_secret == DEV_JWT_SECRET

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        return cls(
            database_url=os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL,
            jwt_secret=os.getenv("JWT_SECRET") or DEV_JWT_SECRET,
            jwt_algorithm=os.getenv("JWT_ALGORITHM") or "HS256",
            session_ttl_days=_env_int("SESSION_TTL_DAYS", 7),
            revoke_sessions_on_password_change=_env_truthy(
                "REVOKE_SESSIONS_ON_PASSWORD_CHANGE", "1"
            ),
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", 12),
            reset_token_ttl_minutes=_env_int("RESET_TOKEN_TTL_MINUTES", 60),
            frontend_url=(os.getenv("FRONTEND_URL") or "http://localhost:8080").rstrip("/"),
            email_host=os.getenv("EMAIL_HOST") or "smtp.gmail.com",
            email_port=_env_int("EMAIL_PORT", 587),
            email_user=(os.getenv("EMAIL_USER") or "").strip(),
            email_password=os.getenv("EMAIL_PASS") or "",
            email_from_name=os.getenv("EMAIL_FROM_NAME") or "Expensia Support",
            email_timeout=_env_int("EMAIL_TIMEOUT", 10),
            cors_origins=_env_list("CORS_ORIGINS"),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for the running process (read once, then cached)."""
    return Settings.from_env()
