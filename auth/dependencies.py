"""
auth/dependencies.py -- FastAPI Depends() helper for bearer session tokens.

Every authenticated launcher route declares
    claims: SessionClaims = Depends(get_session_claims)

Outcomes:
  - No "Authorization: Bearer <token>" header -> HTTP 400, empty body.
  - Token fails signature/algorithm/claims checks -> HTTP 400, empty body.
  - Token correctly signed but expired -> SessionExpired propagates to the
    LauncherAuthError handler: HTTP 200 with status LAUNCHER_TOKEN_EXPIRED,
    so the launcher can send the player back to the login screen.

Layer rule: auth/dependencies.py may import from fastapi because it is part of
the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.tokens import InvalidSessionToken, SessionClaims, SessionTokenCodec

logger = logging.getLogger("launcherauth.auth")


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip()
    return ""


def get_session_claims(request: Request) -> SessionClaims:
    """Return the verified claims of the request's session token."""
    token = _bearer_token(request)
    if not token:
        logger.info("Authenticated API called without token: %s", request.url.path)
        raise HTTPException(status_code=400)

    codec: SessionTokenCodec = request.app.state.token_codec
    try:
        return codec.parse(token)
    except InvalidSessionToken as exc:
        logger.info("Authenticated API called with invalid token: %s", exc)
        raise HTTPException(status_code=400) from exc
