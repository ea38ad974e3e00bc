"""
auth/user_roles.py -- Generic repository over the user_roles association table.

UserRoleStore offers the usual generic service surface (save, batch save,
get, list, page, count, update, remove) and nothing else: no ordering rules
beyond primary key, no validation beyond the (user_id, role_id) UNIQUE
constraint, which surfaces as sqlalchemy.exc.IntegrityError.

Criteria-based lookups (get_one, list_by, count) accept column names as
keyword arguments. Keys are checked against _CRITERIA_COLUMNS before any SQL
is built, so a caller cannot smuggle arbitrary column expressions in. A None
value compares as IS NULL and so matches no row; callers with optional
filters leave the key out instead.
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, func, select, true
from sqlalchemy.engine import Engine

from auth.models import UserRole
from auth.schema import make_engine, user_roles
from core.config import get_settings

logger = logging.getLogger("smartplatform.store")

_CRITERIA_COLUMNS: set = {"id", "user_id", "role_id"}


class UserRoleStore:
    """Repository for UserRole entities."""

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def save(self, user_role: UserRole) -> int:
        """Insert one record and return its ID. Raises IntegrityError on a duplicate pair."""
        with self.engine.connect() as conn:
            result = conn.execute(user_roles.insert().values(user_id=user_role.user_id, role_id=user_role.role_id))
            conn.commit()
            return result.inserted_primary_key[0]

    def save_batch(self, records: list[UserRole]) -> list[int]:
        """Insert many records in one transaction. All-or-nothing on IntegrityError."""
        ids: list[int] = []
        with self.engine.begin() as conn:
            for ur in records:
                result = conn.execute(user_roles.insert().values(user_id=ur.user_id, role_id=ur.role_id))
                ids.append(result.inserted_primary_key[0])
        return ids

    def save_or_update(self, user_role: UserRole) -> int:
        """Update when user_role.id names an existing row, otherwise insert."""
        if user_role.id is not None and self.update_by_id(user_role):
            return user_role.id
        return self.save(user_role)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, record_id: int) -> UserRole | None:
        with self.engine.connect() as conn:
            row = conn.execute(user_roles.select().where(user_roles.c.id == record_id)).fetchone()
        return _row_to_user_role(row) if row is not None else None

    def get_one(self, **criteria) -> UserRole | None:
        """Return the first record matching every criterion, or None."""
        with self.engine.connect() as conn:
            row = conn.execute(
                user_roles.select().where(_where(criteria)).order_by(user_roles.c.id).limit(1)
            ).fetchone()
        return _row_to_user_role(row) if row is not None else None

    def list_all(self) -> list[UserRole]:
        return self.list_by()

    def list_by(self, **criteria) -> list[UserRole]:
        with self.engine.connect() as conn:
            rows = conn.execute(user_roles.select().where(_where(criteria)).order_by(user_roles.c.id)).fetchall()
        return [_row_to_user_role(r) for r in rows]

    def count(self, **criteria) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(user_roles).where(_where(criteria))).scalar()
        return result or 0

    def page(self, page: int = 1, size: int = 10, **criteria) -> tuple[list[UserRole], int]:
        """Return (records on the 1-based page, total matching records)."""
        if page < 1 or size < 1:
            raise ValueError("page and size must be positive")
        with self.engine.connect() as conn:
            rows = conn.execute(
                user_roles.select()
                .where(_where(criteria))
                .order_by(user_roles.c.id)
                .limit(size)
                .offset((page - 1) * size)
            ).fetchall()
        return [_row_to_user_role(r) for r in rows], self.count(**criteria)

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    def update_by_id(self, user_role: UserRole) -> bool:
        """Overwrite user_id and role_id on the row with user_role.id.

        Returns False if no such row. Raises IntegrityError if the new pair
        collides with another record.
        """
        if user_role.id is None:
            raise ValueError("update_by_id requires user_role.id")
        with self.engine.connect() as conn:
            result = conn.execute(
                user_roles.update()
                .where(user_roles.c.id == user_role.id)
                .values(user_id=user_role.user_id, role_id=user_role.role_id)
            )
            conn.commit()
        return result.rowcount > 0

    def remove_by_id(self, record_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(user_roles.delete().where(user_roles.c.id == record_id))
            conn.commit()
        return result.rowcount > 0

    def remove_by_ids(self, record_ids: list[int]) -> int:
        """Delete every listed record and return how many rows went away."""
        if not record_ids:
            return 0
        with self.engine.connect() as conn:
            result = conn.execute(user_roles.delete().where(user_roles.c.id.in_(record_ids)))
            conn.commit()
        logger.info("Removed %d user-role record(s)", result.rowcount)
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _where(criteria: dict):
    unknown = set(criteria) - _CRITERIA_COLUMNS
    if unknown:
        raise ValueError(f"Unknown user_roles criteria: {unknown!r}")
    clauses = [user_roles.c[k] == v for k, v in criteria.items()]
    return and_(true(), *clauses)


def _row_to_user_role(row) -> UserRole:
    return UserRole(id=row.id, user_id=row.user_id, role_id=row.role_id)
