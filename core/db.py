"""
core/db.py -- Shared SQLAlchemy Core schema and engine factory.

The account, launcher and filehash tables are owned by the game's operators;
this service reads them and writes exactly one column (account.token).
create_all() is checkfirst, so it is a no-op against an existing production
schema and builds the tables for local SQLite and tests.

One Engine (one connection pool) is created at startup and shared by
AccountStore and LauncherStore. There are no multi-statement transactions:
each store call is a single independent query.

Security:
  All queries use bound parameters. No f-strings in SQL.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import BackendError

logger = logging.getLogger("launcherauth.db")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

account_table = Table(
    "account",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False, server_default=""),  # bcrypt hash; "" = not yet migrated
    Column("passhash", Text, nullable=False, server_default=""),  # legacy, never read
    Column("inactive", Boolean, nullable=False, server_default="0"),
    Column("token", String(32)),  # current game join secret
)

launcher_table = Table(
    "launcher",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("hash", String(128), nullable=False, unique=True),
    Column("version", String(32), nullable=False),
    Column("active", Boolean, nullable=False, server_default="0"),
    Column("released_at", DateTime(timezone=True), nullable=False),
)

filehash_table = Table(
    "filehash",
    metadata,
    Column("mode", Integer, nullable=False),  # 0 = fallback set shared by every mode
    Column("file", String(255), nullable=False),
    Column("hash", String(128), nullable=False),
    PrimaryKeyConstraint("mode", "file"),
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety on SQLite."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def create_db_engine(db_url: str) -> Engine:
    """Create the process-wide engine and make sure the schema exists."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args, pool_pre_ping=not db_url.startswith("sqlite"))
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    metadata.create_all(engine)
    return engine


@contextmanager
def backend_call(operation: str, **context) -> Iterator[None]:
    """Turn any SQLAlchemy failure inside the block into a BackendError.

    The cause is logged with the operation name and context (account id,
    mode, ...). The client only ever sees the generic database status code.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Database error during %s %s: %s", operation, context or "", exc)
        raise BackendError() from exc
