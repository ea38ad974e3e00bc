"""
API request and response models for SmartPlatform REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Every response body is wrapped in core.results.PlatformResult; the models
below describe what goes in its `data` field.
"""

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Principal, UserRole

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class PrincipalResponse(BaseModel):
    """data for GET /api/me."""

    model_config = ConfigDict(frozen=True)

    username: str
    roles: list[str]

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalResponse":
        return cls(username=principal.username, roles=list(principal.roles))


# ---------------------------------------------------------------------------
# User roles -- requests
# ---------------------------------------------------------------------------


class UserRoleCreate(BaseModel):
    """Request body for POST /api/user-roles and PUT /api/user-roles/{id}."""

    user_id: int = Field(ge=1)
    role_id: int = Field(ge=1)

    def to_domain(self, record_id: int | None = None) -> UserRole:
        return UserRole(user_id=self.user_id, role_id=self.role_id, id=record_id)


class UserRoleBatchCreate(BaseModel):
    """Request body for POST /api/user-roles/batch."""

    items: list[UserRoleCreate] = Field(min_length=1, max_length=100)


# ---------------------------------------------------------------------------
# User roles -- responses
# ---------------------------------------------------------------------------


class UserRoleResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    role_id: int

    @classmethod
    def from_domain(cls, user_role: UserRole) -> "UserRoleResponse":
        return cls(id=user_role.id, user_id=user_role.user_id, role_id=user_role.role_id)


class UserRolePage(BaseModel):
    """data for GET /api/user-roles."""

    model_config = ConfigDict(frozen=True)

    records: list[UserRoleResponse]
    total: int
    page: int
    size: int


class RemovedCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    removed: int


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
