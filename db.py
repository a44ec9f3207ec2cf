# db.py
# Role: Database bootstrap for the FastAPI finance tracker.
#       Builds the SQLAlchemy engine and session factory from the configured
#       DATABASE_URL, and defines the declarative Base shared by all models.

"""
Database setup for the finance tracker.

- Default database is SQLite at: <project_root>/database/finance.db
- Any SQLAlchemy URL can be configured through DATABASE_URL.
- The folder of an on-disk SQLite database is created if missing.
"""

import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Declarative base class for ORM models
Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """
    Create the engine for the given URL.

    SQLite needs check_same_thread=False for FastAPI (threaded request handling).
    In-memory SQLite gets a single shared connection, otherwise every pooled
    connection would see its own empty database.
    """
    url = make_url(database_url)

    if url.get_backend_name() != "sqlite":
        return create_engine(database_url, pool_pre_ping=True)

    connect_args = {"check_same_thread": False}

    if url.database in (None, "", ":memory:"):
        engine = create_engine(
            database_url,
            connect_args=connect_args,
            poolclass=StaticPool,
        )
    else:
        # ensure folder exists for on-disk databases
        db_dir = os.path.dirname(os.path.abspath(url.database))
        os.makedirs(db_dir, exist_ok=True)
        engine = create_engine(database_url, connect_args=connect_args)

    # SQLite leaves foreign keys (and ON DELETE CASCADE) off unless asked
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    """Standard session factory used via dependency injection (see app/deps.py:get_db)."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )
