"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_account is the mapper. Route and service code never touches SQL
directly.

The launcher flow only reads accounts and writes the join secret into
account.token. create_account() exists for seeding and tests; real accounts
are created by the game's registration service.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Every SQLAlchemy failure surfaces as BackendError (see core.db.backend_call).
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from auth.models import Account
from core.db import account_table as _account
from core.db import backend_call


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore(engine)
        account = store.get_by_username("alice")
        store.set_game_token(account.id, "...")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_account(self, account: Account) -> int:
        """Insert a new account and return its assigned database ID.

        Raises BackendError if the username already exists.
        """
        with backend_call("create_account", username=account.username):
            with self.engine.connect() as conn:
                result = conn.execute(
                    _account.insert().values(
                        username=account.username,
                        password=account.password,
                        inactive=account.inactive,
                        token=account.token,
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> Account | None:
        """Look up an account by exact username (case-sensitive). Returns None if not found."""
        with backend_call("get_account_by_username"):
            with self.engine.connect() as conn:
                row = conn.execute(_account.select().where(_account.c.username == username)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_id(self, account_id: int) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with backend_call("get_account_by_id", account=account_id):
            with self.engine.connect() as conn:
                row = conn.execute(_account.select().where(_account.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def set_game_token(self, account_id: int, game_token: str) -> bool:
        """Overwrite the account's join secret.

        Returns True if a row was updated, False if account_id was not found.
        """
        with backend_call("set_game_token", account=account_id):
            with self.engine.connect() as conn:
                result = conn.execute(_account.update().where(_account.c.id == account_id).values(token=game_token))
                conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        username=row.username,
        # NULL and "" both mean "not yet migrated".
        password=row.password or "",
        inactive=bool(row.inactive),
        token=row.token,
    )
