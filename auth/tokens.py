"""
auth/tokens.py -- Session tokens for the launcher login flow.

Security design decisions:
  Format: python-jose JWT, HS256, signed with JWT_KEY. Registered claims
       iss/iat/nbf/exp plus two custom claims, account and mode. A third,
       verified, is only ever present with the value true.

  Escalation: login issues a token without verified. After the launcher
       proves its game files are intact, a brand-new token is signed with the
       same account/mode plus verified=true and a fresh expiry window. Tokens
       are never modified in place and there is no server-side session table;
       a superseded token just stops being used and dies at exp.

  Algorithm pinning: decode() is called with algorithms=["HS256"], so a token
       whose header names any other algorithm (including "none" or an
       asymmetric one) fails before its claims are looked at.

  Failure reporting: an expired token raises SessionExpired, which the client
       sees as "login expired" and answers by logging in again. Every other
       failure raises InvalidSessionToken and becomes a bare HTTP 400; the
       caller is not told which check failed.

The codec is built once at startup from Settings and shared by reference
through app.state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from core.errors import InternalError, LauncherError, StatusCode

logger = logging.getLogger("launcherauth.auth")

_ALGORITHM = "HS256"

_DECODE_OPTIONS = {
    "require_iat": True,
    "require_nbf": True,
    "require_exp": True,
    "require_iss": True,
}


class SessionExpired(LauncherError):
    """The presented session token is past its exp claim."""

    def __init__(self) -> None:
        super().__init__(StatusCode.LAUNCHER_TOKEN_EXPIRED, "login expired")


class InvalidSessionToken(Exception):
    """The presented session token is malformed, forged, or missing claims."""


@dataclass(frozen=True)
class SessionClaims:
    """Decoded contents of a session token.

    verified is False for tokens issued by login and True for tokens issued
    after a successful file validation. All datetimes are aware UTC values
    with whole-second precision, matching what the token can carry.
    """

    account: int
    mode: int
    issuer: str
    issued_at: datetime
    not_before: datetime
    expires_at: datetime
    verified: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionTokenCodec:
    """Signs and parses session tokens with a single shared secret."""

    def __init__(
        self,
        secret: str,
        issuer: str,
        lifetime: timedelta = timedelta(minutes=10),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._secret = secret
        self.issuer = issuer
        self.lifetime = lifetime
        self._clock = clock

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def claims_for(self, account: int, mode: int, verified: bool = False) -> SessionClaims:
        """Build a fresh claims set starting now."""
        now = self._clock().replace(microsecond=0)
        return SessionClaims(
            account=account,
            mode=mode,
            issuer=self.issuer,
            issued_at=now,
            not_before=now,
            expires_at=now + self.lifetime,
            verified=verified,
        )

    def sign(self, claims: SessionClaims) -> str:
        """Encode and sign claims. Raises InternalError if signing fails."""
        payload: dict = {
            "iss": claims.issuer,
            "iat": int(claims.issued_at.timestamp()),
            "nbf": int(claims.not_before.timestamp()),
            "exp": int(claims.expires_at.timestamp()),
            "account": claims.account,
            "mode": claims.mode,
        }
        if claims.verified:
            payload["verified"] = True
        try:
            return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)
        except JWTError as exc:
            logger.error("Token signing failed for account ID [%d]: %s", claims.account, exc)
            raise InternalError(StatusCode.INTERNAL_TOKEN_CREATION_FAILED) from exc

    def issue(self, account: int, mode: int, verified: bool = False) -> str:
        """Sign a new token for account/mode with a full lifetime."""
        return self.sign(self.claims_for(account, mode, verified=verified))

    def escalate(self, claims: SessionClaims) -> str:
        """Sign a new verified token carrying the same account and mode.

        The input claims are not touched; the old token stays valid until its
        own exp, it is simply superseded.
        """
        return self.issue(claims.account, claims.mode, verified=True)

    # ------------------------------------------------------------------
    # Parse
    # ------------------------------------------------------------------

    def parse(self, token: str) -> SessionClaims:
        """Verify token and return its claims.

        Raises SessionExpired for a correctly signed token past exp and
        InvalidSessionToken for anything else that is wrong with it.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                issuer=self.issuer,
                options=_DECODE_OPTIONS,
            )
        except ExpiredSignatureError as exc:
            raise SessionExpired() from exc
        except JWTError as exc:
            raise InvalidSessionToken(str(exc)) from exc
        return _payload_to_claims(payload)


def _require_int(payload: dict, name: str) -> int:
    value = payload.get(name)
    # bool is an int subclass; true/false is not a valid account or mode.
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidSessionToken(f"claim {name!r} missing or not an integer")
    return value


def _payload_to_claims(payload: dict) -> SessionClaims:
    verified = payload.get("verified", False)
    if not isinstance(verified, bool):
        raise InvalidSessionToken("claim 'verified' is not a boolean")
    return SessionClaims(
        account=_require_int(payload, "account"),
        mode=_require_int(payload, "mode"),
        issuer=payload["iss"],
        issued_at=datetime.fromtimestamp(_require_int(payload, "iat"), tz=timezone.utc),
        not_before=datetime.fromtimestamp(_require_int(payload, "nbf"), tz=timezone.utc),
        expires_at=datetime.fromtimestamp(_require_int(payload, "exp"), tz=timezone.utc),
        verified=verified,
    )
