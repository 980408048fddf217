"""
api/main.py -- FastAPI application entry point for the launcher auth service.

Run with:  uvicorn api.main:app --host localhost --port 9001
           python main.py serve

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan builds every shared object exactly once -- engine, stores, token
codec, timing guard, User-Agent pattern -- and hangs them on app.state.
Route handlers and dependencies read them from there; nothing is lazily
re-derived from globals at request time.

Response contract:
  Domain outcomes (bad password, corrupt files, expired session, database
  down, ...) are HTTP 200 with {"status": <code>, "errorText": <text>}.
  Malformed requests (bad body, missing or invalid bearer token) are a bare
  HTTP 400. Nothing else about a failure is disclosed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.live.gametoken import router as gametoken_router
from api.routes.live.login import router as login_router
from api.routes.live.validate import router as validate_router
from api.routes.live.version import router as version_router
from auth.credentials import CredentialVerifier
from auth.gametoken import GameTokenIssuer
from auth.store import AccountStore
from auth.timing import TimingGuard
from auth.tokens import SessionTokenCodec
from core.config import Settings, get_settings
from core.db import create_db_engine
from core.errors import LauncherAuthError
from launcher.gate import LauncherGate, compile_agent_pattern
from launcher.integrity import IntegrityValidator
from launcher.store import LauncherStore

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("launcherauth.api")

# ---------------------------------------------------------------------------
# Application state
# ---------------------------------------------------------------------------


def configure_app_state(app: FastAPI, engine: Engine, settings: Settings) -> None:
    """Build the service graph on top of engine and attach it to app.state.

    Shared by the real lifespan and the test lifespan so both wire the same
    objects the same way.
    """
    account_store = AccountStore(engine)
    launcher_store = LauncherStore(engine)
    codec = SessionTokenCodec(
        secret=settings.jwt_key,
        issuer=settings.token_issuer,
        lifetime=timedelta(seconds=settings.token_expire_seconds),
    )

    app.state.engine = engine
    app.state.account_store = account_store
    app.state.launcher_store = launcher_store
    app.state.token_codec = codec
    app.state.agent_pattern = compile_agent_pattern(settings.launcher_agent_name)
    app.state.credential_verifier = CredentialVerifier(
        account_store,
        TimingGuard(settings.login_min_duration_seconds),
    )
    app.state.launcher_gate = LauncherGate(launcher_store)
    app.state.integrity_validator = IntegrityValidator(launcher_store, codec)
    app.state.game_token_issuer = GameTokenIssuer(account_store)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. create_db_engine() touches the database (schema check), so an
    unreachable database fails startup instead of failing every request.
    """
    settings = get_settings()
    logger.info("Launcher auth API starting up")
    engine = create_db_engine(settings.sqlalchemy_url)
    configure_app_state(app, engine, settings)
    logger.info(
        "Services initialized (token lifetime=%ds, login floor=%.2fs)",
        settings.token_expire_seconds,
        settings.login_min_duration_seconds,
    )

    yield

    engine.dispose()
    logger.info("Launcher auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Launcher Auth API",
    description="Login, game file validation and game token issuance for the launcher.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=get_settings().allowed_hosts,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(version_router, prefix="/live", tags=["Launcher"])
app.include_router(login_router, prefix="/live", tags=["Launcher"])
app.include_router(validate_router, prefix="/live", tags=["Launcher"])
app.include_router(gametoken_router, prefix="/live", tags=["Launcher"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(LauncherAuthError)
async def launcher_auth_error_handler(request: Request, exc: LauncherAuthError) -> JSONResponse:
    """Report a domain failure as HTTP 200 with its status code.

    The launcher treats every 200 body the same way and branches on status.
    """
    response = JSONResponse(
        status_code=200,
        content=ErrorResponse(status=exc.status.value, error_text=exc.error_text).model_dump(by_alias=True),
    )
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    return Response(status_code=429, headers={"Retry-After": str(retry_after)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    """Unparseable or incomplete request body: bare 400."""
    logger.info("Could not parse request body for %s %s", request.method, request.url.path)
    return Response(status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Transport-level errors carry no body."""
    return Response(status_code=exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged, never sent to the client.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return Response(status_code=500)


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit and no auth -- load balancers must be able to poll it.
# ---------------------------------------------------------------------------


@app.get("/live/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness plus a database round-trip check."""
    database = "ok"
    try:
        with request.app.state.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check database round-trip failed: %s", exc)
        database = "error"
    return HealthResponse(version=__version__, components={"app": "ok", "database": database})
