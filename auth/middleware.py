"""
auth/middleware.py -- Bearer token filter that guards every request.

Runs ahead of routing for every HTTP request:

  1. Resolve the Authorization header into a Principal (or None) and put it
     on request.state.principal. Invalid, expired and forged tokens all
     resolve to None -- there is no distinct "bad token" response.
  2. If the path is not on the allow-list and there is no Principal, answer
     403 USER_NOT_LOGGED_IN right here. The route never runs.
  3. Render any exception the app let escape as 500 SYSTEM_INNER_ERROR, so
     server errors still pass back out through the no-cache and CORS layers.
  4. Stamp no-cache headers on whatever response comes back.

No session, no cookies: each request is judged only by the token it carries.

Errors raised inside BaseHTTPMiddleware.dispatch() bypass FastAPI's
exception handlers, so the rejection is rendered with core.errors.error_response().
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from auth.tokens import principal_from_header
from core.config import get_settings
from core.errors import NotLoggedInError, PlatformError, error_response

logger = logging.getLogger("smartplatform.auth")

# Exact paths reachable without a token.
DEFAULT_PUBLIC_PATHS: frozenset[str] = frozenset(
    {
        "/api/login",
        "/api/logout",
        "/api/health",
        "/docs",
        "/docs/oauth2-redirect",
        "/redoc",
        "/openapi.json",
    }
)

# Path prefixes reachable without a token (static documentation assets).
DEFAULT_PUBLIC_PREFIXES: tuple[str, ...] = ("/static/",)

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, max-age=0, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class TokenAuthenticationMiddleware(BaseHTTPMiddleware):
    """Reject requests without a valid bearer token outside the allow-list."""

    def __init__(
        self,
        app: ASGIApp,
        public_paths: Iterable[str] = DEFAULT_PUBLIC_PATHS,
        public_prefixes: Iterable[str] = DEFAULT_PUBLIC_PREFIXES,
    ) -> None:
        super().__init__(app)
        self.public_paths = frozenset(public_paths)
        self.public_prefixes = tuple(public_prefixes)
        self.token_header = get_settings().token_header

    def is_public(self, path: str) -> bool:
        return path in self.public_paths or path.startswith(self.public_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        principal = principal_from_header(request.headers.get(self.token_header))
        request.state.principal = principal

        if principal is None and not self.is_public(request.url.path):
            logger.info("Rejected unauthenticated %s %s", request.method, request.url.path)
            response = error_response(NotLoggedInError())
        else:
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
                response = error_response(PlatformError())

        for name, value in _NO_CACHE_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
