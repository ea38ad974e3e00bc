"""Unit tests for auth/user_roles.py and auth/store.py -- repository behaviour.

Covers:
- save / get_by_id / save_batch / save_or_update
- (user_id, role_id) uniqueness surfaces as IntegrityError, batch is all-or-nothing
- list_by / get_one / count / page with criteria, unknown criteria rejected
- update_by_id / remove_by_id / remove_by_ids
- UserStore.get_by_username resolves role names through the association table
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import Role, User, UserRole
from auth.store import UserStore
from auth.user_roles import UserRoleStore

# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'accounts.db'}"


@pytest.fixture
def store(db_url):
    s = UserRoleStore(db_url)
    yield s
    s.close()


@pytest.fixture
def user_store(db_url):
    s = UserStore(db_url)
    yield s
    s.close()


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------


def test_save_and_get_by_id(store):
    rid = store.save(UserRole(user_id=1, role_id=2))
    got = store.get_by_id(rid)
    assert got == UserRole(user_id=1, role_id=2, id=rid)


def test_get_by_id_missing(store):
    assert store.get_by_id(999) is None


def test_duplicate_pair_rejected(store):
    store.save(UserRole(user_id=1, role_id=1))
    with pytest.raises(IntegrityError):
        store.save(UserRole(user_id=1, role_id=1))


def test_same_role_for_different_users_allowed(store):
    store.save(UserRole(user_id=1, role_id=1))
    store.save(UserRole(user_id=2, role_id=1))
    assert store.count(role_id=1) == 2


def test_save_batch(store):
    ids = store.save_batch([UserRole(user_id=1, role_id=1), UserRole(user_id=1, role_id=2)])
    assert len(ids) == 2
    assert [ur.role_id for ur in store.list_by(user_id=1)] == [1, 2]


def test_save_batch_is_all_or_nothing(store):
    store.save(UserRole(user_id=5, role_id=5))
    with pytest.raises(IntegrityError):
        store.save_batch([UserRole(user_id=6, role_id=1), UserRole(user_id=5, role_id=5)])
    assert store.count(user_id=6) == 0


def test_save_or_update_inserts_without_id(store):
    rid = store.save_or_update(UserRole(user_id=3, role_id=3))
    assert store.get_by_id(rid).user_id == 3


def test_save_or_update_updates_existing(store):
    rid = store.save(UserRole(user_id=3, role_id=3))
    assert store.save_or_update(UserRole(user_id=3, role_id=4, id=rid)) == rid
    assert store.get_by_id(rid).role_id == 4
    assert store.count() == 1


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def test_list_all_ordered_by_id(store):
    for uid in (3, 1, 2):
        store.save(UserRole(user_id=uid, role_id=1))
    assert [ur.user_id for ur in store.list_all()] == [3, 1, 2]


def test_get_one(store):
    store.save(UserRole(user_id=1, role_id=1))
    rid = store.save(UserRole(user_id=1, role_id=2))
    assert store.get_one(user_id=1, role_id=2).id == rid
    assert store.get_one(user_id=9) is None


def test_none_criteria_match_nothing(store):
    store.save(UserRole(user_id=1, role_id=1))
    store.save(UserRole(user_id=2, role_id=1))
    assert store.get_one(id=None) is None
    assert store.count(user_id=None, role_id=1) == 0
    assert store.list_by(role_id=None) == []


def test_unknown_criteria_rejected(store):
    with pytest.raises(ValueError):
        store.list_by(username="alice")


def test_page(store):
    store.save_batch([UserRole(user_id=uid, role_id=1) for uid in range(1, 8)])
    records, total = store.page(page=2, size=3)
    assert total == 7
    assert [r.user_id for r in records] == [4, 5, 6]

    records, total = store.page(page=3, size=3)
    assert [r.user_id for r in records] == [7]


def test_page_with_criteria(store):
    store.save_batch([UserRole(user_id=1, role_id=r) for r in (1, 2, 3)] + [UserRole(user_id=2, role_id=1)])
    records, total = store.page(page=1, size=10, user_id=1)
    assert total == 3
    assert {r.role_id for r in records} == {1, 2, 3}


def test_page_rejects_non_positive(store):
    with pytest.raises(ValueError):
        store.page(page=0, size=10)


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------


def test_update_by_id(store):
    rid = store.save(UserRole(user_id=1, role_id=1))
    assert store.update_by_id(UserRole(user_id=1, role_id=9, id=rid))
    assert store.get_by_id(rid).role_id == 9


def test_update_missing_returns_false(store):
    assert store.update_by_id(UserRole(user_id=1, role_id=1, id=404)) is False


def test_update_into_existing_pair_rejected(store):
    store.save(UserRole(user_id=1, role_id=1))
    rid = store.save(UserRole(user_id=1, role_id=2))
    with pytest.raises(IntegrityError):
        store.update_by_id(UserRole(user_id=1, role_id=1, id=rid))


def test_update_requires_id(store):
    with pytest.raises(ValueError):
        store.update_by_id(UserRole(user_id=1, role_id=1))


def test_remove_by_id(store):
    rid = store.save(UserRole(user_id=1, role_id=1))
    assert store.remove_by_id(rid) is True
    assert store.remove_by_id(rid) is False
    assert store.get_by_id(rid) is None


def test_remove_by_ids(store):
    ids = store.save_batch([UserRole(user_id=u, role_id=1) for u in (1, 2, 3)])
    assert store.remove_by_ids([ids[0], ids[2], 12345]) == 2
    assert [ur.user_id for ur in store.list_all()] == [2]
    assert store.remove_by_ids([]) == 0


# ---------------------------------------------------------------------------
# UserStore role resolution
# ---------------------------------------------------------------------------


def test_user_roles_resolved_by_name(user_store, store):
    admin = user_store.create_role(Role(name="ADMIN"))
    user_role = user_store.create_role(Role(name="USER"))
    uid = user_store.create_user(User(username="alice", hashed_password="x"))
    store.save(UserRole(user_id=uid, role_id=user_role))
    store.save(UserRole(user_id=uid, role_id=admin))

    alice = user_store.get_by_username("alice")
    assert alice.roles == ["ADMIN", "USER"]
    assert alice.enabled is True
    assert alice.id == uid


def test_user_lookup_is_case_sensitive(user_store):
    user_store.create_user(User(username="alice", hashed_password="x"))
    assert user_store.get_by_username("Alice") is None


def test_duplicate_username_rejected(user_store):
    user_store.create_user(User(username="alice", hashed_password="x"))
    with pytest.raises(IntegrityError):
        user_store.create_user(User(username="alice", hashed_password="y"))


def test_set_enabled(user_store):
    user_store.create_user(User(username="bob", hashed_password="x"))
    assert user_store.set_enabled("bob", False)
    assert user_store.get_by_username("bob").enabled is False
    assert user_store.set_enabled("nobody", True) is False


def test_roles_lookup(user_store):
    assert not user_store.has_users()
    rid = user_store.create_role(Role(name="USER"))
    assert user_store.get_role_by_name("USER") == Role(name="USER", id=rid)
    assert user_store.get_role_by_name("MISSING") is None
    assert [r.name for r in user_store.list_roles()] == ["USER"]
