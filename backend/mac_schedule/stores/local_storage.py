from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from mac_schedule.errors import StorageCorrupt
from mac_schedule.models import StorageEntry

logger = logging.getLogger(__name__)


class LocalStorage(ABC):
    """Device-local string key/value storage, the server-side stand-in for localStorage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    def read_json(self, key: str) -> Any:
        """Decode the JSON stored under ``key``; ``None`` when the key is unset."""

        raw = self.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise StorageCorrupt(key, str(exc)) from exc

    def write_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))

    def read_dict(self, key: str) -> Dict[str, Any]:
        """Like ``read_json`` but fail-open: corrupt or non-object data reads as ``{}``."""

        try:
            value = self.read_json(key)
        except StorageCorrupt as exc:
            logger.warning("Discarding corrupt local storage entry", extra={"key": key, "error": str(exc)})
            return {}
        if value is None:
            return {}
        if not isinstance(value, dict):
            logger.warning("Discarding non-object local storage entry", extra={"key": key})
            return {}
        return value


class MemoryStorage(LocalStorage):
    """Thread-safe in-memory storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})
        self._lock = RLock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)


class SqlStorage(LocalStorage):
    """Storage persisted in the ``local_storage`` table."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            entry = session.get(StorageEntry, key)
            return entry.value if entry else None

    def set_item(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            entry = session.get(StorageEntry, key)
            if entry:
                entry.value = value
            else:
                session.add(StorageEntry(key=key, value=value))
            session.commit()

    def remove_item(self, key: str) -> None:
        with self._session_factory() as session:
            entry = session.get(StorageEntry, key)
            if entry:
                session.delete(entry)
                session.commit()


_local_storage: LocalStorage | None = None


def get_local_storage() -> LocalStorage:
    global _local_storage
    if not _local_storage:
        from mac_schedule.db.database import init_db, session_factory

        init_db()
        _local_storage = SqlStorage(session_factory)
    return _local_storage
