"""
tests/conftest.py -- Shared test fixtures for the launcher auth service.

This module provides:
  - make_engine(): an isolated named shared-memory SQLite engine
  - seed(): the reference accounts, launcher builds and file hashes below
  - stores: (AccountStore, LauncherStore, ids) over a freshly seeded engine
  - api_client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread.

Environment must be set before any app import: DEBUG so get_settings()
auto-generates JWT_KEY, a short login floor so tests stay fast, and rate
limiting off so repeated logins in one module are not throttled.

Reference data:
  accounts   alice (password "correct horse"), bob (inactive),
             legacy (empty password -> needs migration)
  launchers  hash-current 1.2.0.0 active, hash-previous 1.1.5.0 active,
             hash-retired 1.1.0.0 inactive
  filehash   mode 0: a.dll, b.dll, c.pak
             mode 2: b.dll (overrides mode 0), d.pak
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOGIN_MIN_DURATION_SECONDS", "0.05")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import bcrypt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app, configure_app_state
from auth.models import Account
from auth.store import AccountStore
from core.config import get_settings
from core.db import create_db_engine
from launcher.models import LauncherBuild
from launcher.store import LauncherStore

ALICE_PASSWORD = "correct horse"
BOB_PASSWORD = "bobpass"

# Low bcrypt cost keeps seeding fast; verification works the same way.
_ALICE_HASH = bcrypt.hashpw(ALICE_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()
_BOB_HASH = bcrypt.hashpw(BOB_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()

MODE_0_FILES = {"a.dll": "h0a", "b.dll": "h0b", "c.pak": "h0c"}
MODE_2_FILES = {"b.dll": "h2b", "d.pak": "h2d"}

LAUNCHER_UA = "PSF Launcher v1.2.0.0"


# ---------------------------------------------------------------------------
# Engine / seed helpers
# ---------------------------------------------------------------------------


def make_engine() -> Engine:
    """Create an isolated named shared-memory SQLite engine with the schema in place."""
    name = f"launcherauth_{uuid.uuid4().hex}"
    return create_db_engine(f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true")


def seed(account_store: AccountStore, launcher_store: LauncherStore, with_launchers: bool = True) -> dict[str, int]:
    """Insert the reference data and return account ids by username."""
    ids = {
        "alice": account_store.create_account(Account(username="alice", password=_ALICE_HASH)),
        "bob": account_store.create_account(Account(username="bob", password=_BOB_HASH, inactive=True)),
        "legacy": account_store.create_account(Account(username="legacy", password="")),
    }
    if with_launchers:
        launcher_store.add_build(
            LauncherBuild(
                hash="hash-current",
                version="1.2.0.0",
                active=True,
                released_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
            )
        )
        launcher_store.add_build(
            LauncherBuild(
                hash="hash-previous",
                version="1.1.5.0",
                active=True,
                released_at=datetime(2024, 2, 1, tzinfo=timezone.utc),
            )
        )
        launcher_store.add_build(
            LauncherBuild(
                hash="hash-retired",
                version="1.1.0.0",
                active=False,
                released_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )
        )
    for file, file_hash in MODE_0_FILES.items():
        launcher_store.set_file_hash(0, file, file_hash)
    for file, file_hash in MODE_2_FILES.items():
        launcher_store.set_file_hash(2, file, file_hash)
    return ids


def _patch_lifespan(engine: Engine):
    """Return an async context manager that replaces the real lifespan.

    Wires the test engine into app.state through the same
    configure_app_state() the real lifespan uses.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        configure_app_state(app, engine, get_settings())
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[tuple[AccountStore, LauncherStore, dict[str, int]], None, None]:
    """Yield (account_store, launcher_store, ids) over a freshly seeded engine."""
    engine = make_engine()
    account_store = AccountStore(engine)
    launcher_store = LauncherStore(engine)
    ids = seed(account_store, launcher_store)
    yield account_store, launcher_store, ids
    engine.dispose()


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, AccountStore, dict[str, int]], None, None]:
    """Yield (client, account_store, ids) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use an isolated in-memory database.
    """
    engine = make_engine()
    account_store = AccountStore(engine)
    ids = seed(account_store, LauncherStore(engine))

    app.router.lifespan_context = _patch_lifespan(engine)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, account_store, ids

    engine.dispose()
