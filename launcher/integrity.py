"""
launcher/integrity.py -- Game file validation and session escalation.

The launcher hashes every file the server lists for its mode, concatenates
those per-file hashes in filename order, and submits the SHA-1 of the result.
The server computes the same aggregate from the filehash table. A match
escalates the session to verified; a mismatch means the install is modified
or damaged and the player has to repair it.

This is a consistency check, not a security boundary: a modified launcher can
always submit the expected value. SHA-1 is kept because released launchers
compute it; changing the digest is a client protocol change.

The mode always comes from the session token, never from the request body,
so a client cannot log in for one mode and validate against another.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from collections.abc import Iterable

from auth.tokens import SessionClaims, SessionTokenCodec
from core.errors import LauncherError, StatusCode
from launcher.store import LauncherStore

logger = logging.getLogger("launcherauth.launcher")


def aggregate_digest(file_hashes: Iterable[str]) -> str:
    """Return the lowercase hex SHA-1 over the concatenated per-file hashes.

    file_hashes must already be in filename order.
    """
    hasher = hashlib.sha1()
    for file_hash in file_hashes:
        hasher.update(file_hash.encode("utf-8"))
    return hasher.hexdigest()


class IntegrityValidator:
    """Checks a session's aggregate file hash and issues the verified token."""

    def __init__(self, store: LauncherStore, codec: SessionTokenCodec) -> None:
        self.store = store
        self.codec = codec

    def expected_files(self, claims: SessionClaims) -> list[str]:
        """Return the filenames the launcher must hash for the session's mode, in order."""
        return [entry.file for entry in self.store.get_file_hashes(claims.mode)]

    def expected_digest(self, mode: int) -> str:
        """Return the aggregate the server expects for mode."""
        return aggregate_digest(entry.hash for entry in self.store.get_file_hashes(mode))

    def validate(self, claims: SessionClaims, submitted: str) -> str:
        """Return a new verified token if submitted matches, else raise CORRUPT_FILES.

        On mismatch nothing is issued; the presented token keeps its
        unverified state.
        """
        expected = self.expected_digest(claims.mode)
        if not hmac.compare_digest(expected.encode("utf-8"), submitted.encode("utf-8")):
            logger.info("File verification failed for account ID [%d] and mode [%d]", claims.account, claims.mode)
            raise LauncherError(StatusCode.CORRUPT_FILES)

        logger.info("Account ID [%d] verified files for mode [%d]", claims.account, claims.mode)
        return self.codec.escalate(claims)
