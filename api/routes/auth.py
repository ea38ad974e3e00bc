"""
api/routes/auth.py -- Login, logout and identity endpoints.

Routes:
  POST /api/login    -- form login; returns the bearer token in header and body
  POST /api/logout   -- always succeeds
  GET  /api/me       -- the principal rebuilt from the caller's token

Auth policy:
  /api/login and /api/logout are on the token filter's allow-list.
  /api/me is not; the filter rejects it without a token before it runs.

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT, read on each
  request).
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_username() + verify_password().
  Unknown username and wrong password both answer USER_LOGIN_ERROR.
"""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse
from jose import JWTError

from api.limiter import limiter
from api.models import PrincipalResponse
from auth.dependencies import get_current_principal
from auth.models import Principal, UserLookup
from auth.tokens import authenticate_user, bearer_value, create_access_token
from core.config import get_settings
from core.errors import LoginFailedError, PlatformError
from core.results import PlatformResult

logger = logging.getLogger("smartplatform.auth")

_settings = get_settings()

router = APIRouter()


@router.post("/login")
@limiter.limit(lambda: get_settings().login_rate_limit)
def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    remember_me: bool = Form(False),
) -> JSONResponse:
    """Authenticate with username and password; return a signed bearer token.

    Missing form fields are treated as empty strings, so they fail the same
    way an unknown account does.
    """
    lookup: UserLookup = request.app.state.user_store
    try:
        user = authenticate_user(lookup, username, password)
    except PlatformError as exc:
        logger.info("Login rejected for %r: %s", username, exc.result_code.name)
        raise

    try:
        token = bearer_value(create_access_token(user.username, user.roles, remember_me=remember_me))
    except JWTError as exc:
        logger.exception("Token issuance failed for %r", username)
        raise LoginFailedError("token issuance failed") from exc

    logger.info("Login succeeded for %r (remember_me=%s)", username, remember_me)
    resp = JSONResponse(status_code=200, content=PlatformResult.success(token).model_dump())
    resp.headers[_settings.token_header] = token
    return resp


@router.post("/logout")
async def logout() -> PlatformResult:
    """Acknowledge logout. Tokens are stateless, so there is nothing to revoke."""
    return PlatformResult.success("Logged out.")


@router.get("/me")
async def me(principal: Principal = Depends(get_current_principal)) -> PlatformResult:
    """Return identity information for the currently authenticated caller."""
    return PlatformResult.success(PrincipalResponse.from_principal(principal).model_dump())
