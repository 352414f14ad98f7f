from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from mac_schedule.stores.device_identity import DeviceIdentity
from mac_schedule.stores.local_storage import LocalStorage

logger = logging.getLogger(__name__)

SESSION_BOOKINGS_KEY = "mac-session-bookings"


@dataclass
class LocalBookingRecord:
    device_id: str
    names: List[str] = field(default_factory=list)
    timestamp: int = 0  # epoch milliseconds

    @property
    def count(self) -> int:
        return len(self.names)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "deviceId": self.device_id,
            "names": list(self.names),
            "count": self.count,
        }

    @classmethod
    def from_dict(cls, device_id: str, payload: Dict[str, Any]) -> "LocalBookingRecord":
        names = payload.get("names") or []
        if not isinstance(names, list):
            raise ValueError("names must be a list")
        timestamp = payload.get("timestamp") or 0
        return cls(
            device_id=str(payload.get("deviceId") or device_id),
            names=[str(name) for name in names],
            timestamp=int(timestamp),
        )


class LocalBookingStore:
    """This device's capacity bookings, keyed by session and device identifier.

    Persisted as ``{session_id: {device_id: {timestamp, deviceId, names, count}}}``
    under a single storage key. Unreadable state is treated as an empty store.
    """

    def __init__(self, storage: LocalStorage, identity: DeviceIdentity, key: str = SESSION_BOOKINGS_KEY) -> None:
        self._storage = storage
        self._identity = identity
        self._key = key

    @property
    def device_id(self) -> str:
        return self._identity.device_id

    def _load(self) -> Dict[str, Dict[str, Any]]:
        return self._storage.read_dict(self._key)

    def _save(self, bookings: Dict[str, Dict[str, Any]]) -> None:
        self._storage.write_json(self._key, bookings)

    def _decode(self, device_id: str, payload: Any) -> Optional[LocalBookingRecord]:
        if not isinstance(payload, dict):
            return None
        try:
            return LocalBookingRecord.from_dict(device_id, payload)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Ignoring unreadable local booking",
                extra={"device_id": device_id, "error": str(exc)},
            )
            return None

    def get(self, session_id: str) -> Optional[LocalBookingRecord]:
        session_bookings = self._load().get(session_id)
        if not isinstance(session_bookings, dict):
            return None
        return self._decode(self.device_id, session_bookings.get(self.device_id))

    def set(self, session_id: str, names: Sequence[str]) -> None:
        if not names:
            self.remove(session_id)
            return

        bookings = self._load()
        session_bookings = bookings.get(session_id)
        if not isinstance(session_bookings, dict):
            session_bookings = {}
        record = LocalBookingRecord(
            device_id=self.device_id,
            names=list(names),
            timestamp=int(time.time() * 1000),
        )
        session_bookings[self.device_id] = record.to_dict()
        bookings[session_id] = session_bookings
        self._save(bookings)
        logger.info(
            "Stored local booking",
            extra={"session_id": session_id, "device_id": self.device_id, "count": record.count},
        )

    def remove(self, session_id: str) -> None:
        bookings = self._load()
        session_bookings = bookings.get(session_id)
        if not isinstance(session_bookings, dict) or self.device_id not in session_bookings:
            return
        del session_bookings[self.device_id]
        if not session_bookings:
            del bookings[session_id]
        self._save(bookings)
        logger.info("Removed local booking", extra={"session_id": session_id, "device_id": self.device_id})

    def list_all(self) -> Dict[str, LocalBookingRecord]:
        records: Dict[str, LocalBookingRecord] = {}
        for session_id, session_bookings in self._load().items():
            if not isinstance(session_bookings, dict):
                continue
            record = self._decode(self.device_id, session_bookings.get(self.device_id))
            if record and record.names:
                records[session_id] = record
        return records

    def names_for(self, session_id: str) -> List[str]:
        """Every name booked locally for a session, across all stored device entries."""

        session_bookings = self._load().get(session_id)
        if not isinstance(session_bookings, dict):
            return []
        names: List[str] = []
        for device_id, payload in session_bookings.items():
            record = self._decode(device_id, payload)
            if record:
                names.extend(record.names)
        return names

    def clear_all(self) -> None:
        self._storage.remove_item(self._key)
        logger.info("Cleared all local bookings")
