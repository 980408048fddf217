"""
launcher/gate.py -- Launcher build gating and version advertisement.

Gating policy:
  No active build at all  -> gating is off. Any hash logs in with version
                             "UNK". Operators who never configured launcher
                             builds keep a working login.
  Unknown hash            -> CORRUPT_LAUNCHER
  Known, inactive build   -> LAUNCHER_NO_LONGER_SUPPORTED
  Known, active build     -> that build's display version

The version endpoint is unauthenticated. It only answers clients whose
User-Agent identifies them as the launcher; the pattern is compiled once at
startup (see compile_agent_pattern) and passed in by the route.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from core.errors import LauncherError, StatusCode
from launcher.models import LauncherInfo
from launcher.store import LauncherStore

logger = logging.getLogger("launcherauth.launcher")

UNKNOWN_VERSION = "UNK"

# Advertised when no build is active: every launcher considers itself current.
NO_ACTIVE_LAUNCHER = LauncherInfo(version="0.0.0.0", released_at=datetime.fromtimestamp(0, tz=timezone.utc))


def compile_agent_pattern(agent_name: str) -> re.Pattern[str]:
    """Compile the User-Agent pattern for "<agent_name> v<a>.<b>.<c>.<d>"."""
    return re.compile(rf"^{re.escape(agent_name)} v((\d+\.){{3}}\d+)$")


def match_agent(pattern: re.Pattern[str], user_agent: str | None) -> str | None:
    """Return the launcher version announced in user_agent, or None if it is not the launcher."""
    match = pattern.match(user_agent or "")
    return match.group(1) if match else None


class LauncherGate:
    """Decides whether a launcher build may log in."""

    def __init__(self, store: LauncherStore) -> None:
        self.store = store

    def check(self, launcher_hash: str) -> str:
        """Return the display version for launcher_hash or raise LauncherError."""
        if not self.store.has_active_builds():
            return UNKNOWN_VERSION

        build = self.store.get_by_hash(launcher_hash)
        if build is None:
            logger.warning("Launcher with unknown hash: %s", launcher_hash)
            raise LauncherError(StatusCode.CORRUPT_LAUNCHER)

        if not build.active:
            logger.info("Launcher version %s (%s) is no longer supported", build.version, launcher_hash)
            raise LauncherError(StatusCode.LAUNCHER_NO_LONGER_SUPPORTED)

        return build.version

    def latest_version(self) -> LauncherInfo:
        """Return the newest active build, or NO_ACTIVE_LAUNCHER when none is active."""
        build = self.store.get_latest_active()
        if build is None:
            return NO_ACTIVE_LAUNCHER
        return LauncherInfo(version=build.version, released_at=build.released_at)
