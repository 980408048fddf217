"""
core/errors.py -- Status codes and the domain exception taxonomy.

Every domain failure is reported to the launcher as a *successful* HTTP
response carrying a numeric status code, so the client handles all outcomes
through one code path. Codes are grouped by hundreds:

    0xx  success
    1xx  launcher (build, files, session)
    2xx  account
    3xx  database
    4xx  internal

The numbers are part of the wire protocol shipped in released launchers.
Append new codes at the end of a group; never renumber.
"""

from enum import IntEnum


class StatusCode(IntEnum):
    SUCCESS = 0

    UPDATE_LAUNCHER = 100
    CORRUPT_LAUNCHER = 101
    LAUNCHER_TOKEN_EXPIRED = 102
    CORRUPT_FILES = 103
    LAUNCHER_NO_LONGER_SUPPORTED = 104
    LAUNCHER_GAME_TOKEN_REQUEST_NOT_VERIFIED = 105

    USE_STAGING_LOGIN_TO_UPDATE_PASSWORD = 200
    WRONG_USERNAME_PASSWORD = 201
    ACCOUNT_INACTIVE = 202

    DATABASE = 300

    INTERNAL_TOKEN_CREATION_FAILED = 400


class LauncherAuthError(Exception):
    """Base class for errors that map to a status-coded 200 response.

    error_text is sent to the client verbatim -- never put internal detail
    (SQL, stack traces, whether a username exists) in it.
    """

    def __init__(self, status: StatusCode, error_text: str = "") -> None:
        super().__init__(f"{status.name}: {error_text}" if error_text else status.name)
        self.status = status
        self.error_text = error_text


class LauncherError(LauncherAuthError):
    """Unsupported or corrupt launcher build, corrupt game files, expired session."""


class AccountError(LauncherAuthError):
    """Bad credentials, inactive account, or account awaiting password migration."""


class BackendError(LauncherAuthError):
    """Persistence unavailable or returned malformed data."""

    def __init__(self, error_text: str = "") -> None:
        super().__init__(StatusCode.DATABASE, error_text)


class InternalError(LauncherAuthError):
    """Token signing failed."""
