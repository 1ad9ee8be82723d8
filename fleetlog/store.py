from __future__ import annotations

import json
import logging
from enum import Enum
from threading import RLock
from typing import Dict, Iterable, List, Optional, Type

from .errors import DuplicateEntity, EntityNotFound
from .schemas import EntityModel, ServiceType, SyncConfig, Tractor, User, WorkLog
from .seed import initial_services, initial_tractors, initial_users
from .storage import LocalStorage

logger = logging.getLogger(__name__)


class Collection(str, Enum):
    USERS = "users"
    TRACTORS = "tractors"
    LOGS = "logs"
    SERVICES = "services"


COLLECTION_MODELS: Dict[Collection, Type[EntityModel]] = {
    Collection.USERS: User,
    Collection.TRACTORS: Tractor,
    Collection.LOGS: WorkLog,
    Collection.SERVICES: ServiceType,
}

# Work-log ids come from the submission timestamp and are never checked.
UNIQUE_ID_COLLECTIONS = frozenset({Collection.USERS, Collection.TRACTORS, Collection.SERVICES})

CONFIG_SLOT = "config"
SESSION_SLOT = "current_user"


def slot_key(prefix: str, name: str) -> str:
    return f"{prefix}_{name}"


class EntityStore:
    """In-memory entity collections mirrored whole-collection into local storage."""

    def __init__(
        self,
        storage: LocalStorage,
        *,
        prefix: str = "fleetlog",
        default_config: Optional[SyncConfig] = None,
    ) -> None:
        self._lock = RLock()
        self._storage = storage
        self._prefix = prefix
        self._default_config = default_config or SyncConfig()
        self._collections: Dict[Collection, List[EntityModel]] = {}
        self._config: SyncConfig = self._default_config
        self.hydrate()

    @property
    def storage(self) -> LocalStorage:
        return self._storage

    def key_for(self, name: str) -> str:
        return slot_key(self._prefix, name)

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------
    def hydrate(self) -> None:
        with self._lock:
            for collection in Collection:
                raw = self._storage.get_item(self.key_for(collection.value))
                if raw is None:
                    items = self._seed_for(collection)
                    logger.info("Seeding %s with %d record(s)", collection.value, len(items))
                    self._collections[collection] = items
                    self._persist(collection)
                else:
                    model = COLLECTION_MODELS[collection]
                    self._collections[collection] = [model.model_validate(entry) for entry in json.loads(raw)]
            raw_config = self._storage.get_item(self.key_for(CONFIG_SLOT))
            if raw_config is None:
                self._config = self._default_config
                self._persist_config()
            else:
                self._config = SyncConfig.model_validate_json(raw_config)

    @staticmethod
    def _seed_for(collection: Collection) -> List[EntityModel]:
        if collection is Collection.USERS:
            return list(initial_users())
        if collection is Collection.TRACTORS:
            return list(initial_tractors())
        if collection is Collection.SERVICES:
            return list(initial_services())
        return []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, collection: Collection) -> List[EntityModel]:
        with self._lock:
            return list(self._collections[collection])

    def find(self, collection: Collection, entity_id: str) -> Optional[EntityModel]:
        with self._lock:
            for item in self._collections[collection]:
                if item.id == entity_id:
                    return item
        return None

    def get_config(self) -> SyncConfig:
        with self._lock:
            return self._config

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def replace_all(self, collection: Collection, items: Iterable[EntityModel]) -> List[EntityModel]:
        model = COLLECTION_MODELS[collection]
        replacement = [self._ensure_model(model, item) for item in items]
        with self._lock:
            self._collections[collection] = replacement
            self._persist(collection)
            return list(replacement)

    def append(self, collection: Collection, item: EntityModel) -> EntityModel:
        item = self._ensure_model(COLLECTION_MODELS[collection], item)
        with self._lock:
            current = self._collections[collection]
            if collection in UNIQUE_ID_COLLECTIONS and any(entry.id == item.id for entry in current):
                raise DuplicateEntity(f"{collection.value} record '{item.id}' already exists")
            self._collections[collection] = current + [item]
            self._persist(collection)
        return item

    def update_by_id(self, collection: Collection, entity_id: str, item: EntityModel) -> EntityModel:
        item = self._ensure_model(COLLECTION_MODELS[collection], item)
        if item.id != entity_id:
            item = item.model_copy(update={"id": entity_id})
        with self._lock:
            current = self._collections[collection]
            index = self._index_of(collection, entity_id)
            updated = list(current)
            updated[index] = item
            self._collections[collection] = updated
            self._persist(collection)
        return item

    def patch_by_id(self, collection: Collection, entity_id: str, **changes) -> EntityModel:
        """Apply ``changes`` to the stored record as it is now, under the store lock."""
        with self._lock:
            index = self._index_of(collection, entity_id)
            current = self._collections[collection]
            item = current[index].model_copy(update=changes)
            updated = list(current)
            updated[index] = item
            self._collections[collection] = updated
            self._persist(collection)
        return item

    def remove_by_id(self, collection: Collection, entity_id: str) -> EntityModel:
        with self._lock:
            current = self._collections[collection]
            index = self._index_of(collection, entity_id)
            removed = current[index]
            self._collections[collection] = current[:index] + current[index + 1 :]
            self._persist(collection)
        return removed

    def save_config(self, config: SyncConfig) -> SyncConfig:
        with self._lock:
            self._config = config
            self._persist_config()
        return config

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _index_of(self, collection: Collection, entity_id: str) -> int:
        for index, entry in enumerate(self._collections[collection]):
            if entry.id == entity_id:
                return index
        raise EntityNotFound(f"{collection.value} record '{entity_id}' not found")

    @staticmethod
    def _ensure_model(model: Type[EntityModel], item: EntityModel) -> EntityModel:
        if isinstance(item, model):
            return item
        raise TypeError(f"Expected {model.__name__}, got {type(item).__name__}")

    def _persist(self, collection: Collection) -> None:
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in self._collections[collection]]
        self._storage.set_item(self.key_for(collection.value), json.dumps(payload, ensure_ascii=False))

    def _persist_config(self) -> None:
        self._storage.set_item(self.key_for(CONFIG_SLOT), self._config.model_dump_json(by_alias=True))


__all__ = ["Collection", "EntityStore", "COLLECTION_MODELS", "CONFIG_SLOT", "SESSION_SLOT", "slot_key"]
