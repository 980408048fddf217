"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services
do the work.

Layer rule: no imports from api/ or launcher/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Account:
    """A game account as seen by the launcher login flow.

    password holds a bcrypt hash. An empty password means the account predates
    the bcrypt migration: the player has to log in once through the staging
    client to set a new password before the launcher will accept them.

    token is the current game join secret, overwritten on every issuance.
    """

    username: str
    password: str = ""
    id: int | None = None
    inactive: bool = False
    token: str | None = None
