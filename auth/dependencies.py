"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The token filter (auth/middleware.py) has already verified the bearer token
and left the result on request.state.principal. These helpers only read it:

  get_current_principal() raises NotLoggedInError if there is no principal
      (only reachable on allow-listed paths, where the filter let the
      request through without a token).
  require_roles(*roles) wraps get_current_principal() and raises
      PermissionDeniedError if the principal holds none of the roles.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from auth.models import Principal
from core.errors import NotLoggedInError, PermissionDeniedError


def get_current_principal(request: Request) -> Principal:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(principal: Principal = Depends(get_current_principal)): ...
    """
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise NotLoggedInError()
    return principal


def require_roles(*roles: str) -> Callable[[Request], Principal]:
    """Build a dependency that admits principals holding any of roles.

    Use as a FastAPI dependency:
        @router.post("/admin-only")
        async def route(principal: Principal = Depends(require_roles("ADMIN"))): ...
    """

    def dependency(request: Request) -> Principal:
        principal = get_current_principal(request)
        if not principal.has_any_role(*roles):
            raise PermissionDeniedError(f"requires one of {roles!r}")
        return principal

    return dependency
