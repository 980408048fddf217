"""
api/routes/live/validate.py -- Game file validation (session escalation).

Routes:
  GET  /live/validate  -- filenames the launcher must hash for the token's mode
  POST /live/validate  -- aggregate hash; returns a verified token on match

Both require a session token. The mode is always taken from the token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import TokenResponse, ValidateRequest, ValidateResponse
from auth.dependencies import get_session_claims
from auth.tokens import SessionClaims
from launcher.integrity import IntegrityValidator

router = APIRouter()


@router.get("/validate", response_model=ValidateResponse)
def list_files(request: Request, claims: SessionClaims = Depends(get_session_claims)) -> ValidateResponse:
    """Return the ordered filename list for the session's mode."""
    validator: IntegrityValidator = request.app.state.integrity_validator
    return ValidateResponse(files=validator.expected_files(claims))


@router.post("/validate", response_model=TokenResponse)
def validate_files(
    request: Request,
    body: ValidateRequest,
    claims: SessionClaims = Depends(get_session_claims),
) -> TokenResponse:
    """Compare the submitted aggregate hash and escalate the session on match."""
    validator: IntegrityValidator = request.app.state.integrity_validator
    return TokenResponse(token=validator.validate(claims, body.files))
