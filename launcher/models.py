"""
launcher/models.py -- Domain dataclasses for launcher builds and game files.

These are pure data containers with zero logic. Gating and integrity rules
live in launcher/gate.py and launcher/integrity.py.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class LauncherBuild:
    """A released launcher binary, identified by the hash of its content.

    Only active builds may log in. When several builds are active, the one
    with the newest released_at is what the version endpoint advertises.

    id is None before the record is written to the database.
    """

    hash: str
    version: str  # display version, e.g. "1.4.0.2"
    released_at: datetime
    active: bool = False
    id: int | None = None


@dataclass(frozen=True)
class LauncherInfo:
    """Version information advertised to launchers polling for updates."""

    version: str
    released_at: datetime


@dataclass(frozen=True)
class FileHash:
    """Expected hash of one game file within a mode's effective file set."""

    file: str
    hash: str
