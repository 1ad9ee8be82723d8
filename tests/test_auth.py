from __future__ import annotations

import pytest

from fleetlog.auth import SessionManager
from fleetlog.errors import AuthenticationError, NotAuthenticated, PermissionDenied
from fleetlog.schemas import UserRole
from fleetlog.storage import LocalStorage
from fleetlog.store import Collection, EntityStore


def _restart(storage: LocalStorage) -> SessionManager:
    return SessionManager(EntityStore(storage))


def test_login_with_matching_pin(sessions: SessionManager, storage: LocalStorage) -> None:
    user = sessions.login("1234")
    assert user.id == "u1"
    assert user.role == UserRole.ADMIN
    assert sessions.is_authenticated
    assert storage.get_item("fleetlog_current_user") is not None


def test_wrong_pin_stays_logged_out(sessions: SessionManager, storage: LocalStorage) -> None:
    with pytest.raises(AuthenticationError):
        sessions.login("9999")
    assert sessions.current_user is None
    assert storage.get_item("fleetlog_current_user") is None


def test_repeated_failures_are_not_locked_out(sessions: SessionManager) -> None:
    for _ in range(10):
        with pytest.raises(AuthenticationError):
            sessions.login("0000")
    assert sessions.login("0001").id == "u2"


def test_session_survives_restart(sessions: SessionManager, storage: LocalStorage) -> None:
    user = sessions.login("0002")
    restored = _restart(storage)
    assert restored.current_user == user


def test_deleted_user_session_is_still_restored(
    sessions: SessionManager, store: EntityStore, storage: LocalStorage
) -> None:
    sessions.login("0001")
    store.remove_by_id(Collection.USERS, "u2")

    restored = _restart(storage)
    assert restored.current_user is not None
    assert restored.current_user.id == "u2"
    assert EntityStore(storage).find(Collection.USERS, "u2") is None


def test_logout_clears_pointer(sessions: SessionManager, storage: LocalStorage) -> None:
    sessions.login("1234")
    sessions.logout()
    assert sessions.current_user is None
    assert storage.get_item("fleetlog_current_user") is None
    assert _restart(storage).current_user is None


def test_role_gates(sessions: SessionManager) -> None:
    with pytest.raises(NotAuthenticated):
        sessions.require_user()
    sessions.login("0001")
    assert sessions.require_role(UserRole.OPERATOR).id == "u2"
    with pytest.raises(PermissionDenied):
        sessions.require_role(UserRole.ADMIN)
