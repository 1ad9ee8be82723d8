from __future__ import annotations

import logging
from typing import Optional

from .errors import AuthenticationError, NotAuthenticated, PermissionDenied
from .schemas import User, UserRole
from .store import SESSION_SLOT, Collection, EntityStore

logger = logging.getLogger(__name__)


class SessionManager:
    """Tracks the signed-in user and keeps the pointer across restarts.

    A restored pointer is trusted as-is: the PIN is not checked again and the
    user may no longer exist in the store. It stays signed in until
    :meth:`logout` runs.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store
        self._key = store.key_for(SESSION_SLOT)
        self._current: Optional[User] = self._restore()

    def _restore(self) -> Optional[User]:
        raw = self._store.storage.get_item(self._key)
        if raw is None:
            return None
        user = User.model_validate_json(raw)
        logger.info("Restored session for user %s", user.id)
        return user

    @property
    def current_user(self) -> Optional[User]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    def login(self, pin: str) -> User:
        match = next((user for user in self._store.get(Collection.USERS) if user.pin == pin), None)
        if match is None:
            logger.warning("Login rejected: PIN did not match any user")
            raise AuthenticationError("Incorrect PIN. Please try again.")
        self._current = match
        self._store.storage.set_item(self._key, match.model_dump_json(by_alias=True))
        logger.info("User %s (%s) logged in", match.id, match.role.value)
        return match

    def logout(self) -> None:
        if self._current is not None:
            logger.info("User %s logged out", self._current.id)
        self._current = None
        self._store.storage.remove_item(self._key)

    def require_user(self) -> User:
        if self._current is None:
            raise NotAuthenticated("Login required")
        return self._current

    def require_role(self, role: UserRole) -> User:
        user = self.require_user()
        if user.role != role:
            raise PermissionDenied(f"This action requires the {role.value} role")
        return user


__all__ = ["SessionManager"]
