"""
Database configuration and session management for the easypath backend.

This module defines a SQLModel engine targeting a SQLite database stored
in the project's ``storage`` directory.  Set ``EASYPATH_DATABASE_URL``
to point the service at a different database.  It exposes helper
functions to initialise the schema and to obtain session objects for
interacting with the database.
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlmodel import SQLModel, Session, create_engine

# Determine the base directory for storage.  We walk up two parent
# directories from this file to locate the backend root, then append
# ``storage``.  If the storage directory doesn't exist, create it.
STORAGE_DIR = Path(__file__).resolve().parents[2] / "storage"

DATABASE_URL = os.getenv("EASYPATH_DATABASE_URL")
if not DATABASE_URL:
    STORAGE_DIR.mkdir(parents=True, exist_ok=True)
    DATABASE_URL = f"sqlite:///{(STORAGE_DIR / 'easypath.db').as_posix()}"

# Requests are served from a thread pool, so SQLite connections must be
# allowed to cross threads.
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=_connect_args)


def create_db_and_tables() -> None:
    """Create all tables in the database.

    This should be called once on application startup.  If the
    database file does not exist it will be created automatically.
    """
    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    """Return a new SQLModel session bound to the engine.

    Sessions returned by this function should be managed with a
    context manager (``with get_session() as session: ...``) to
    ensure that connections are properly closed.
    """
    return Session(engine)
