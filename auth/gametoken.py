"""
auth/gametoken.py -- Game join secret issuance.

The last step of the launcher flow. A verified session gets a short random
secret, stored on the account, which the game server later checks when the
launcher hands over to the game client.

The game client copies the secret into a 32-byte buffer, so it is 31
characters plus the terminator. Each issuance overwrites the previous secret;
issuing twice is harmless.
"""

from __future__ import annotations

import logging
import secrets
import string

from auth.store import AccountStore
from auth.tokens import SessionClaims
from core.errors import BackendError, LauncherError, StatusCode

logger = logging.getLogger("launcherauth.auth")

GAME_TOKEN_LENGTH = 31
_ALPHABET = string.ascii_letters + string.digits


def generate_game_token(length: int = GAME_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


class GameTokenIssuer:
    def __init__(self, store: AccountStore) -> None:
        self.store = store

    def issue(self, claims: SessionClaims) -> str:
        """Mint and persist a join secret for a verified session.

        Raises LauncherError(LAUNCHER_GAME_TOKEN_REQUEST_NOT_VERIFIED) without
        touching the store if the session has not passed file validation.
        """
        if not claims.verified:
            logger.info(
                "Account ID [%d] mode [%d] requested a game token before verification",
                claims.account,
                claims.mode,
            )
            raise LauncherError(StatusCode.LAUNCHER_GAME_TOKEN_REQUEST_NOT_VERIFIED)

        game_token = generate_game_token()
        if not self.store.set_game_token(claims.account, game_token):
            logger.error("Error writing game token: account %d does not exist", claims.account)
            raise BackendError()

        logger.info("Issued game token for account ID [%d] mode [%d]", claims.account, claims.mode)
        return game_token
