"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class User:
    """A local account that can log in with username and password.

    roles holds role *names* resolved through the user_roles association
    table. It is read-only from the User's point of view -- grants are
    managed through UserRoleStore.
    """

    username: str
    hashed_password: str
    id: int | None = None
    enabled: bool = True
    roles: list[str] = field(default_factory=list)
    created_at: str | None = None


@dataclass
class Role:
    name: str  # e.g. "ADMIN", "USER"
    id: int | None = None


@dataclass
class UserRole:
    """Association record: one role granted to one user.

    (user_id, role_id) is unique. id is None before the record is written.
    """

    user_id: int
    role_id: int
    id: int | None = None


@dataclass(frozen=True)
class Principal:
    """Identity rebuilt from a verified bearer token -- no DB read involved."""

    username: str
    roles: tuple[str, ...] = ()

    def has_any_role(self, *roles: str) -> bool:
        return any(r in self.roles for r in roles)


class UserLookup(Protocol):
    """Anything that can resolve a username to a User (or None).

    authenticate_user() depends on this protocol rather than on UserStore so
    a directory service or test double can be plugged in.
    """

    def get_by_username(self, username: str) -> User | None: ...
