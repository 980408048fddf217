"""
API request and response models for the launcher REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
launcher/models.py, which own the internal domain representation. Route
handlers map between the two.

Wire format: the launcher reads camelCase keys (errorText, releaseDate,
versionString, gameToken). Fields are declared in snake_case and serialized
through a camelCase alias generator; FastAPI serializes response_model
output by alias.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.errors import StatusCode

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /live/login."""

    username: str = Field(min_length=1, max_length=255)
    # bcrypt only looks at the first 72 bytes; longer passwords are truncated.
    password: str = Field(min_length=1, max_length=255)
    launcher: str = Field(min_length=1, max_length=128, description="Content hash of the launcher binary.")
    mode: int = Field(default=0, ge=0, le=2**31 - 1, description="Game mode the player is logging in for.")


class ValidateRequest(BaseModel):
    """Request body for POST /live/validate."""

    launcher: str = Field(min_length=1, max_length=128)
    files: str = Field(min_length=1, max_length=128, description="Aggregate hash of the mode's game files.")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LauncherResponse(BaseModel):
    """Envelope shared by every launcher response: a numeric status code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: int = StatusCode.SUCCESS.value


class ErrorResponse(LauncherResponse):
    error_text: str = ""


class TokenResponse(LauncherResponse):
    token: str


class VersionResponse(LauncherResponse):
    release_date: int  # unix seconds
    version_string: str


class ValidateResponse(LauncherResponse):
    files: list[str]


class GameTokenResponse(LauncherResponse):
    game_token: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = {}
