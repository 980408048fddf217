"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the launcher auth service happen here. No
module should call os.getenv() or os.environ.get() directly -- import
get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_key -> JWT_KEY, pghost -> PGHOST).

  @model_validator(mode="after"): DEBUG-conditional JWT_KEY handling. Dev mode
      generates a key with a warning, production mode refuses to start.

Security notes:
  JWT_KEY shorter than 32 chars is rejected outright. HS256 session tokens rely
  on key entropy -- a short key makes offline brute-force of the key feasible.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or launcher/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from urllib.parse import quote_plus

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("launcherauth.config")

_DEFAULT_SQLITE_URL = f"sqlite:///{Path(__file__).parent.parent / 'launcherauth.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_key: str = ""
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Session tokens
    # ------------------------------------------------------------------

    token_issuer: str = "Launcher Auth API"
    token_expire_seconds: int = 600

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    # Floor applied to every credential check so "no such user" and
    # "wrong password" take the same wall-clock time.
    login_min_duration_seconds: float = 1.0
    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True

    # Product token the launcher sends in its User-Agent, e.g.
    # "PSF Launcher v1.2.3.4".
    launcher_agent_name: str = "PSF Launcher"

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    # DATABASE_URL wins when set. Otherwise the PG* variables build a
    # PostgreSQL URL; with no PGHOST a local SQLite file is used.
    database_url: str = ""
    pguser: str = ""
    pgpass: str = ""
    pghost: str = ""
    pgport: str = "5432"
    pgdb: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_jwt_key(self) -> "Settings":
        """Enforce the JWT_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Issued tokens will not survive a restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if JWT_KEY
            is missing. Every launcher would be logged out on each restart.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.jwt_key:
            if self.debug:
                self.jwt_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated JWT_KEY. " "Tokens will not survive restarts.")
            else:
                raise ValueError(
                    "JWT_KEY is required in production mode. "
                    "Set JWT_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_key) < 32:
            raise ValueError("JWT_KEY must be at least 32 characters.")
        return self

    @property
    def sqlalchemy_url(self) -> str:
        """Return the SQLAlchemy URL for the configured database."""
        if self.database_url:
            return self.database_url
        if self.pghost:
            user = quote_plus(self.pguser)
            password = quote_plus(self.pgpass)
            return f"postgresql+psycopg2://{user}:{password}@{self.pghost}:{self.pgport}/{self.pgdb}"
        return _DEFAULT_SQLITE_URL


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
