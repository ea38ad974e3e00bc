"""
auth/store.py -- SQLAlchemy Core persistence layer for users and roles.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
and _row_to_role are the mappers. Route and dependency code never touches SQL
directly.

UserStore satisfies the UserLookup protocol (auth/models.py), which is all
the login flow needs from it. The remaining methods back the command-line
admin tool in main.py.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from auth.models import Role, User
from auth.schema import make_engine, roles, user_roles, users
from core.config import get_settings


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserStore:
    """Repository for User and Role entities.

    Usage:
        store = UserStore()
        store.create_user(User(username="admin", hashed_password=hash_password("secret")))
        user = store.get_by_username("admin")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(users)).scalar()
        return (result or 0) > 0

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        user.roles is ignored here; grants go through UserRoleStore.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                users.insert().values(
                    username=user.username,
                    hashed_password=user.hashed_password,
                    enabled=1 if user.enabled else 0,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive), roles included."""
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.username == username)).fetchone()
            if row is None:
                return None
            role_names = self._role_names(conn, row.id)
        return _row_to_user(row, role_names)

    def set_enabled(self, username: str, enabled: bool) -> bool:
        """Enable or disable an account. Returns False if the username is unknown."""
        with self.engine.connect() as conn:
            result = conn.execute(
                users.update().where(users.c.username == username).values(enabled=1 if enabled else 0)
            )
            conn.commit()
        return result.rowcount > 0

    @staticmethod
    def _role_names(conn, user_id: int) -> list[str]:
        rows = conn.execute(
            select(roles.c.name)
            .select_from(user_roles.join(roles, user_roles.c.role_id == roles.c.id))
            .where(user_roles.c.user_id == user_id)
            .order_by(roles.c.name)
        ).fetchall()
        return [r.name for r in rows]

    # ------------------------------------------------------------------
    # Role queries
    # ------------------------------------------------------------------

    def create_role(self, role: Role) -> int:
        """Insert a role and return its ID. Raises IntegrityError on a duplicate name."""
        with self.engine.connect() as conn:
            result = conn.execute(roles.insert().values(name=role.name))
            conn.commit()
            return result.inserted_primary_key[0]

    def get_role_by_name(self, name: str) -> Role | None:
        with self.engine.connect() as conn:
            row = conn.execute(roles.select().where(roles.c.name == name)).fetchone()
        return _row_to_role(row) if row is not None else None

    def list_roles(self) -> list[Role]:
        with self.engine.connect() as conn:
            rows = conn.execute(roles.select().order_by(roles.c.name)).fetchall()
        return [_row_to_role(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row, role_names: list[str]) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        enabled=bool(row.enabled),
        roles=role_names,
        created_at=row.created_at,
    )


def _row_to_role(row) -> Role:
    return Role(id=row.id, name=row.name)
