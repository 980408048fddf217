"""
api/routes/live/login.py -- Password login for the launcher.

Route:
  POST /live/login  -- username/password/launcher hash/mode; returns an
                       unverified session token

Security:
  Rate-limited per IP (LOGIN_RATE_LIMIT).
  CredentialVerifier applies the login timing floor -- use it, never inline
  get_by_username() + bcrypt.
  Cache-Control: no-store on every login response, success or failure.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, TokenResponse
from auth.credentials import CredentialVerifier
from auth.tokens import SessionTokenCodec
from core.config import get_settings
from launcher.gate import LauncherGate

logger = logging.getLogger("launcherauth.api")

router = APIRouter()


@limiter.limit(get_settings().login_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/login", response_model=TokenResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Check credentials, then the launcher build, then issue an unverified token.

    Sync on purpose: the timing floor sleeps, and a threadpool worker is the
    right place for that.
    """
    verifier: CredentialVerifier = request.app.state.credential_verifier
    gate: LauncherGate = request.app.state.launcher_gate
    codec: SessionTokenCodec = request.app.state.token_codec

    # Failures raise LauncherAuthError; the app-level handler turns them into
    # status-coded responses (also marked no-store).
    account = verifier.verify(body.username, body.password)
    launcher_version = gate.check(body.launcher)
    token = codec.issue(account.id, body.mode)

    logger.info(
        "User [%s] with ID %d is logging in for mode %d with launcher version %s (%s)",
        body.username,
        account.id,
        body.mode,
        launcher_version,
        body.launcher,
    )

    resp = JSONResponse(content=TokenResponse(token=token).model_dump(by_alias=True))
    resp.headers["Cache-Control"] = "no-store"
    return resp
