"""
core/errors.py -- Exception taxonomy surfaced to callers as PlatformResult JSON.

Each exception class binds one ResultCode to one HTTP status. Route handlers
and dependencies raise them; the exception handlers in api/main.py render
them. The token filter in auth/middleware.py runs outside FastAPI's exception
handling, so it renders them itself through error_response().

None of these are retried and none are fatal to the process.
"""

from __future__ import annotations

from starlette.responses import JSONResponse

from core.results import PlatformResult, ResultCode


class PlatformError(Exception):
    """Base class: an error with a stable result code and an HTTP status."""

    result_code: ResultCode = ResultCode.SYSTEM_INNER_ERROR
    status_code: int = 500

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.result_code.message)
        self.detail = detail


# ---------------------------------------------------------------------------
# Authentication / authorization
# ---------------------------------------------------------------------------


class NotLoggedInError(PlatformError):
    """No usable bearer token on a path outside the allow-list."""

    result_code = ResultCode.USER_NOT_LOGGED_IN
    status_code = 403


class LoginFailedError(PlatformError):
    """Login broke for a reason other than the caller's credentials."""

    result_code = ResultCode.LOGIN_FAILED
    status_code = 401


class UserLoginError(PlatformError):
    """Unknown username or wrong password. Deliberately indistinguishable."""

    result_code = ResultCode.USER_LOGIN_ERROR
    status_code = 401


class AccountForbiddenError(PlatformError):
    """The account is disabled. Checked before the password."""

    result_code = ResultCode.USER_ACCOUNT_FORBIDDEN
    status_code = 401


class PermissionDeniedError(PlatformError):
    """Authenticated, but missing every role the route accepts."""

    result_code = ResultCode.PERMISSION_NO_ACCESS
    status_code = 403


# ---------------------------------------------------------------------------
# Data access
# ---------------------------------------------------------------------------


class DataNotFoundError(PlatformError):
    result_code = ResultCode.RESULT_DATA_NONE
    status_code = 404


class DataAlreadyExistedError(PlatformError):
    result_code = ResultCode.DATA_ALREADY_EXISTED
    status_code = 409


def error_response(exc: PlatformError) -> JSONResponse:
    """Render a PlatformError as its JSON envelope and HTTP status."""
    return JSONResponse(
        status_code=exc.status_code,
        content=PlatformResult.failure(exc.result_code).model_dump(),
    )
