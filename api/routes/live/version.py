"""
api/routes/live/version.py -- Launcher update check.

Route:
  GET /live/version  -- newest active launcher version and its release date

Unauthenticated, polled by launchers before login. Requests whose User-Agent
is not "<LAUNCHER_AGENT_NAME> v<a>.<b>.<c>.<d>" get a bare 403.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from api.models import VersionResponse
from launcher.gate import LauncherGate, match_agent

logger = logging.getLogger("launcherauth.api")

router = APIRouter()


@router.get("/version", response_model=VersionResponse)
def version(request: Request) -> VersionResponse:
    user_agent = request.headers.get("User-Agent")
    if match_agent(request.app.state.agent_pattern, user_agent) is None:
        logger.info("Not a launcher: %s", user_agent)
        raise HTTPException(status_code=403)

    gate: LauncherGate = request.app.state.launcher_gate
    info = gate.latest_version()
    return VersionResponse(
        release_date=int(info.released_at.timestamp()),
        version_string=info.version,
    )
