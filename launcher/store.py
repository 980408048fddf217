"""
launcher/store.py -- SQLAlchemy Core persistence layer for launcher builds and file hashes.

Pattern: Repository + Data Mapper (same as auth/store.py).

File hash fallback:
  Mode 0 is the base file set. A specific mode may override individual files;
  every file it does not override is inherited from mode 0. This is resolved
  per file inside a single query (NOT EXISTS against an aliased filehash), so
  the effective set is always consistent with one snapshot of the table.

  Rows come back ordered by filename. The launcher hashes its files in the
  same order, so the ORDER BY is part of the integrity protocol.

Security:
  All queries use bound parameters. No f-strings in SQL.
"""

from __future__ import annotations

from datetime import timezone

from sqlalchemy import and_, exists, or_, select
from sqlalchemy.engine import Engine

from core.db import backend_call
from core.db import filehash_table as _filehash
from core.db import launcher_table as _launcher
from launcher.models import FileHash, LauncherBuild


class LauncherStore:
    """Read-mostly repository for launcher builds and expected file hashes."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Launcher builds
    # ------------------------------------------------------------------

    def add_build(self, build: LauncherBuild) -> int:
        """Insert a launcher build and return its database ID. Used for seeding and tests."""
        with backend_call("add_build", hash=build.hash):
            with self.engine.connect() as conn:
                result = conn.execute(
                    _launcher.insert().values(
                        hash=build.hash,
                        version=build.version,
                        active=build.active,
                        released_at=build.released_at,
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]

    def get_by_hash(self, launcher_hash: str) -> LauncherBuild | None:
        """Look up a build by its content hash. Returns None if unknown."""
        with backend_call("get_launcher_by_hash"):
            with self.engine.connect() as conn:
                row = conn.execute(_launcher.select().where(_launcher.c.hash == launcher_hash)).fetchone()
        return _row_to_build(row) if row is not None else None

    def has_active_builds(self) -> bool:
        """Return True if at least one build is marked active."""
        with backend_call("has_active_builds"):
            with self.engine.connect() as conn:
                row = conn.execute(select(_launcher.c.id).where(_launcher.c.active.is_(True)).limit(1)).fetchone()
        return row is not None

    def get_latest_active(self) -> LauncherBuild | None:
        """Return the active build with the newest release timestamp, or None."""
        with backend_call("get_latest_active"):
            with self.engine.connect() as conn:
                row = conn.execute(
                    _launcher.select()
                    .where(_launcher.c.active.is_(True))
                    .order_by(_launcher.c.released_at.desc())
                    .limit(1)
                ).fetchone()
        return _row_to_build(row) if row is not None else None

    # ------------------------------------------------------------------
    # File hashes
    # ------------------------------------------------------------------

    def set_file_hash(self, mode: int, file: str, file_hash: str) -> None:
        """Insert one expected file hash. Used for seeding and tests."""
        with backend_call("set_file_hash", mode=mode, file=file):
            with self.engine.connect() as conn:
                conn.execute(_filehash.insert().values(mode=mode, file=file, hash=file_hash))
                conn.commit()

    def get_file_hashes(self, mode: int) -> list[FileHash]:
        """Return the effective file set for mode, ordered by filename.

        A file defined for mode is taken from mode; every other mode-0 file is
        inherited. An unknown mode therefore yields exactly the mode-0 set.
        """
        overridden = _filehash.alias("selected_mode")
        query = (
            select(_filehash.c.file, _filehash.c.hash)
            .where(
                or_(
                    _filehash.c.mode == mode,
                    and_(
                        _filehash.c.mode == 0,
                        ~exists().where(
                            and_(
                                overridden.c.mode == mode,
                                overridden.c.file == _filehash.c.file,
                            )
                        ),
                    ),
                )
            )
            .order_by(_filehash.c.file)
        )
        with backend_call("get_file_hashes", mode=mode):
            with self.engine.connect() as conn:
                rows = conn.execute(query).fetchall()
        return [FileHash(file=row.file, hash=row.hash) for row in rows]


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_build(row) -> LauncherBuild:
    released_at = row.released_at
    # SQLite drops tzinfo; every timestamp in this table is UTC.
    if released_at.tzinfo is None:
        released_at = released_at.replace(tzinfo=timezone.utc)
    return LauncherBuild(
        id=row.id,
        hash=row.hash,
        version=row.version,
        active=bool(row.active),
        released_at=released_at,
    )
