"""
api/main.py -- FastAPI application entry point for SmartPlatform.

Run with:  python main.py serve
           uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware                 -- any origin, header and method; answers
                                       preflights before auth runs
  2. log_requests                   -- one access-log line per request
  3. TokenAuthenticationMiddleware  -- bearer token filter + allow-list
  4. SlowAPIMiddleware              -- rate-limit bookkeeping

Starlette wraps each add_middleware() call around everything registered
before it, so the calls below appear innermost-first.

Lifespan opens the user and user-role stores on startup and disposes them
on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from api.limiter import limiter
from api.models import HealthResponse
from api.routes.auth import router as auth_router
from api.routes.user_roles import router as user_roles_router
from auth.middleware import TokenAuthenticationMiddleware
from auth.store import UserStore
from auth.user_roles import UserRoleStore
from core.config import get_settings
from core.errors import PlatformError, error_response
from core.results import PlatformResult, ResultCode

__version__ = "0.1.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("smartplatform.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open both stores before the first request; dispose them on shutdown."""
    logger.info("SmartPlatform API starting up")
    app.state.user_store = UserStore()
    app.state.user_role_store = UserRoleStore()
    if not app.state.user_store.has_users():
        logger.warning("No users exist yet -- create one with: python main.py create-user")
    logger.info("Stores initialized")

    yield

    app.state.user_role_store.close()
    app.state.user_store.close()
    logger.info("SmartPlatform API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="SmartPlatform API",
    description="Token-authenticated platform API: login, logout and user-role administration.",
    version=__version__,
    lifespan=lifespan,
)

app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Middleware stack (innermost first -- see module docstring)
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(TokenAuthenticationMiddleware)


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


# Registered last so it is outermost: rejections from the token filter
# still carry CORS headers, and preflights never reach the filter.
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[_settings.token_header],
    max_age=3600,
)

# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(user_roles_router, prefix="/api", tags=["User Roles"])

# ---------------------------------------------------------------------------
# Exception handlers
#
# Every handler returns the same PlatformResult envelope so API clients can
# parse errors uniformly.
# ---------------------------------------------------------------------------


@app.exception_handler(PlatformError)
async def platform_error_handler(request: Request, exc: PlatformError) -> JSONResponse:
    return error_response(exc)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 INTERFACE_EXCEED_LOAD when a rate limit is exceeded."""
    response = JSONResponse(
        status_code=429,
        content=PlatformResult.failure(ResultCode.INTERFACE_EXCEED_LOAD, data=str(exc.detail)).model_dump(),
    )
    response.headers["Retry-After"] = "60"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=PlatformResult.failure(ResultCode.PARAM_IS_INVALID, data=str(exc.errors())).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and wrong methods keep their status with a data-none or param code."""
    result_code = ResultCode.RESULT_DATA_NONE if exc.status_code == 404 else ResultCode.PARAM_IS_INVALID
    return JSONResponse(
        status_code=exc.status_code,
        content=PlatformResult.failure(result_code, data=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for errors raised outside the token filter.

    Starlette runs this in its outermost error middleware, past the CORS and
    no-cache layers. Route errors are rendered by the token filter instead.
    The traceback goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=PlatformResult.failure(ResultCode.SYSTEM_INNER_ERROR).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Allow-listed in the token filter so load balancers can check it without
# credentials.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health() -> PlatformResult:
    """Return API liveness and current version."""
    return PlatformResult.success(HealthResponse(version=__version__).model_dump())
