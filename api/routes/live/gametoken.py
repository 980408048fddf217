"""
api/routes/live/gametoken.py -- Game join secret for verified sessions.

Route:
  GET /live/gametoken  -- requires a verified session token
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import GameTokenResponse
from auth.dependencies import get_session_claims
from auth.gametoken import GameTokenIssuer
from auth.tokens import SessionClaims

router = APIRouter()


@router.get("/gametoken", response_model=GameTokenResponse)
def game_token(request: Request, claims: SessionClaims = Depends(get_session_claims)) -> GameTokenResponse:
    issuer: GameTokenIssuer = request.app.state.game_token_issuer
    return GameTokenResponse(game_token=issuer.issue(claims))
