"""
api/routes/user_roles.py -- Generic CRUD endpoints over user/role grants.

Routes:
  GET    /api/user-roles             -- paged list, optional user_id / role_id filter
  GET    /api/user-roles/{id}        -- one record
  POST   /api/user-roles             -- create (admin)
  POST   /api/user-roles/batch       -- create many, all-or-nothing (admin)
  PUT    /api/user-roles/{id}        -- replace user_id / role_id (admin)
  DELETE /api/user-roles/{id}        -- remove one (admin)
  DELETE /api/user-roles?ids=1&ids=2 -- remove many (admin)

Every route sits behind the token filter. Writes additionally require
ADMIN_ROLE. A duplicate (user_id, role_id) pair answers DATA_ALREADY_EXISTED.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import IntegrityError

from api.models import RemovedCount, UserRoleBatchCreate, UserRoleCreate, UserRolePage, UserRoleResponse
from auth.dependencies import get_current_principal, require_roles
from auth.models import Principal
from auth.user_roles import UserRoleStore
from core.config import get_settings
from core.errors import DataAlreadyExistedError, DataNotFoundError
from core.results import PlatformResult

router = APIRouter()

require_admin = require_roles(get_settings().admin_role)


def _store(request: Request) -> UserRoleStore:
    return request.app.state.user_role_store


@router.get("/user-roles")
async def list_user_roles(
    request: Request,
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    user_id: int | None = Query(None, ge=1),
    role_id: int | None = Query(None, ge=1),
    principal: Principal = Depends(get_current_principal),
) -> PlatformResult:
    filters = {k: v for k, v in (("user_id", user_id), ("role_id", role_id)) if v is not None}
    records, total = _store(request).page(page, size, **filters)
    body = UserRolePage(
        records=[UserRoleResponse.from_domain(r) for r in records],
        total=total,
        page=page,
        size=size,
    )
    return PlatformResult.success(body.model_dump())


@router.get("/user-roles/{record_id}")
async def get_user_role(
    request: Request,
    record_id: int,
    principal: Principal = Depends(get_current_principal),
) -> PlatformResult:
    record = _store(request).get_by_id(record_id)
    if record is None:
        raise DataNotFoundError(f"user-role {record_id} not found")
    return PlatformResult.success(UserRoleResponse.from_domain(record).model_dump())


@router.post("/user-roles", status_code=201)
async def create_user_role(
    request: Request,
    body: UserRoleCreate,
    principal: Principal = Depends(require_admin),
) -> PlatformResult:
    store = _store(request)
    try:
        record_id = store.save(body.to_domain())
    except IntegrityError as exc:
        raise DataAlreadyExistedError("user-role pair already granted") from exc
    return PlatformResult.success(
        UserRoleResponse(id=record_id, user_id=body.user_id, role_id=body.role_id).model_dump()
    )


@router.post("/user-roles/batch", status_code=201)
async def create_user_roles(
    request: Request,
    body: UserRoleBatchCreate,
    principal: Principal = Depends(require_admin),
) -> PlatformResult:
    try:
        ids = _store(request).save_batch([item.to_domain() for item in body.items])
    except IntegrityError as exc:
        raise DataAlreadyExistedError("batch contains an existing user-role pair") from exc
    records = [
        UserRoleResponse(id=record_id, user_id=item.user_id, role_id=item.role_id).model_dump()
        for record_id, item in zip(ids, body.items)
    ]
    return PlatformResult.success(records)


@router.put("/user-roles/{record_id}")
async def update_user_role(
    request: Request,
    record_id: int,
    body: UserRoleCreate,
    principal: Principal = Depends(require_admin),
) -> PlatformResult:
    try:
        updated = _store(request).update_by_id(body.to_domain(record_id))
    except IntegrityError as exc:
        raise DataAlreadyExistedError("user-role pair already granted") from exc
    if not updated:
        raise DataNotFoundError(f"user-role {record_id} not found")
    return PlatformResult.success(
        UserRoleResponse(id=record_id, user_id=body.user_id, role_id=body.role_id).model_dump()
    )


@router.delete("/user-roles/{record_id}")
async def delete_user_role(
    request: Request,
    record_id: int,
    principal: Principal = Depends(require_admin),
) -> PlatformResult:
    if not _store(request).remove_by_id(record_id):
        raise DataNotFoundError(f"user-role {record_id} not found")
    return PlatformResult.success(RemovedCount(removed=1).model_dump())


@router.delete("/user-roles")
async def delete_user_roles(
    request: Request,
    ids: list[int] = Query(..., min_length=1),
    principal: Principal = Depends(require_admin),
) -> PlatformResult:
    removed = _store(request).remove_by_ids(ids)
    return PlatformResult.success(RemovedCount(removed=removed).model_dump())
