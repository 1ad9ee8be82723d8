from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import sessionmaker

from .database import db_session
from .models import StorageSlot, utcnow


class LocalStorage:
    """Persistent string slots keyed by name, in the manner of browser local storage.

    Every call runs in its own committed transaction so a successful write is
    durable when the method returns.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        with db_session(self._session_factory) as session:
            record = session.get(StorageSlot, key)
            return record.value if record else None

    def set_item(self, key: str, value: str) -> None:
        with db_session(self._session_factory) as session:
            record = session.get(StorageSlot, key)
            if record:
                record.value = value
                record.updated_at = utcnow()
            else:
                session.add(StorageSlot(key=key, value=value))

    def remove_item(self, key: str) -> None:
        with db_session(self._session_factory) as session:
            record = session.get(StorageSlot, key)
            if record:
                session.delete(record)

    def keys(self) -> List[str]:
        with db_session(self._session_factory) as session:
            return [row.key for row in session.query(StorageSlot.key).order_by(StorageSlot.key).all()]
