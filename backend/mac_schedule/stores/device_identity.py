from __future__ import annotations

import logging
import secrets
import time
from typing import Optional

from mac_schedule.stores.local_storage import LocalStorage

logger = logging.getLogger(__name__)

DEVICE_ID_KEY = "mac-device-id"


class DeviceIdentity:
    """Random, persistent identifier of this device, created on first use."""

    def __init__(self, storage: LocalStorage, key: str = DEVICE_ID_KEY) -> None:
        self._storage = storage
        self._key = key
        self._cached: Optional[str] = None

    @property
    def device_id(self) -> str:
        if self._cached:
            return self._cached
        stored = self._storage.get_item(self._key)
        if not stored:
            stored = f"device-{secrets.token_urlsafe(6)}-{int(time.time() * 1000)}"
            self._storage.set_item(self._key, stored)
            logger.info("Issued device identifier", extra={"device_id": stored})
        self._cached = stored
        return stored
