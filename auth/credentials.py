"""
auth/credentials.py -- Username/password verification for launcher login.

Check order (each step is terminal):
  1. unknown username          -> WRONG_USERNAME_PASSWORD
  2. empty stored password     -> USE_STAGING_LOGIN_TO_UPDATE_PASSWORD
  3. bcrypt mismatch           -> WRONG_USERNAME_PASSWORD
  4. inactive account          -> ACCOUNT_INACTIVE
  5. otherwise                 -> the Account

Steps 1 and 3 share one client-visible status so the response body does not
reveal whether a username exists. The whole sequence runs inside
TimingGuard.hold() so the response time does not reveal it either. The log
keeps the distinction for operators.

Step 2 does leak that the username exists. That is accepted: those players
need to be told where to go to fix their account.

Passwords: bcrypt directly (no passlib wrapper). bcrypt.checkpw is a salted,
constant-time comparison.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.models import Account
from auth.store import AccountStore
from auth.timing import TimingGuard
from core.errors import AccountError, StatusCode

logger = logging.getLogger("launcherauth.auth")


# bcrypt only reads the first 72 bytes; bcrypt 5 raises instead of truncating.
_BCRYPT_MAX_BYTES = 72


def _password_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Only the first 72 UTF-8 bytes take part, as with every bcrypt
    implementation that truncates.
    """
    return bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        logger.warning("Stored password is not a valid bcrypt hash")
        return False


class CredentialVerifier:
    """Resolves a username/password pair to an Account under a timing floor."""

    def __init__(self, store: AccountStore, guard: TimingGuard) -> None:
        self.store = store
        self.guard = guard

    def verify(self, username: str, password: str) -> Account:
        """Return the Account for valid credentials.

        Raises AccountError for every credential outcome other than success
        and BackendError if the account lookup fails. Either way the call
        takes at least guard.min_duration.
        """
        with self.guard.hold():
            return self._check(username, password)

    def _check(self, username: str, password: str) -> Account:
        account = self.store.get_by_username(username)
        if account is None:
            logger.info("Requested account not in DB: %s", username)
            raise AccountError(StatusCode.WRONG_USERNAME_PASSWORD)

        if account.password == "":
            logger.info(
                "User [%s] with ID %d needs to log in via the staging client to update password",
                account.username,
                account.id,
            )
            raise AccountError(StatusCode.USE_STAGING_LOGIN_TO_UPDATE_PASSWORD)

        if not verify_password(password, account.password):
            logger.info("Login as user [%s] with ID %d failed password check", account.username, account.id)
            raise AccountError(StatusCode.WRONG_USERNAME_PASSWORD)

        if account.inactive:
            logger.info("User [%s] with ID %d tried to log in to an inactive account", account.username, account.id)
            raise AccountError(StatusCode.ACCOUNT_INACTIVE)

        return account
