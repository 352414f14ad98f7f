from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from mac_schedule.stores.device_identity import DeviceIdentity
from mac_schedule.stores.local_storage import LocalStorage

logger = logging.getLogger(__name__)

SLOT_BOOKINGS_KEY = "mac-photoshoot-bookings"
OWNED_SLOTS_KEY = "mac-photoshoot-my-slots"


class PhotoshootStore:
    """Photoshoot slot bookings known to this device and the slots it owns.

    Only the owning device may change or cancel a slot.
    """

    def __init__(self, storage: LocalStorage, identity: DeviceIdentity) -> None:
        self._storage = storage
        self._identity = identity

    @property
    def device_id(self) -> str:
        return self._identity.device_id

    def bookings(self) -> Dict[str, List[str]]:
        raw = self._storage.read_dict(SLOT_BOOKINGS_KEY)
        return {
            slot: [str(name) for name in names]
            for slot, names in raw.items()
            if isinstance(names, list) and names
        }

    def names_for(self, slot: str) -> List[str]:
        return self.bookings().get(slot, [])

    def set_slot(self, slot: str, names: Sequence[str]) -> None:
        bookings = self.bookings()
        if names:
            bookings[slot] = list(names)
        else:
            bookings.pop(slot, None)
        self._storage.write_json(SLOT_BOOKINGS_KEY, bookings)

    def owned_slots(self) -> List[str]:
        owned = self._storage.read_dict(OWNED_SLOTS_KEY).get(self.device_id)
        if not isinstance(owned, list):
            return []
        return [str(slot) for slot in owned]

    def is_owned(self, slot: str) -> bool:
        return slot in self.owned_slots()

    def _write_owned(self, slots: List[str]) -> None:
        owned = self._storage.read_dict(OWNED_SLOTS_KEY)
        if slots:
            owned[self.device_id] = slots
        else:
            owned.pop(self.device_id, None)
        self._storage.write_json(OWNED_SLOTS_KEY, owned)

    def claim(self, slot: str) -> None:
        slots = self.owned_slots()
        if slot not in slots:
            slots.append(slot)
            self._write_owned(slots)

    def release(self, slot: str) -> None:
        slots = self.owned_slots()
        if slot in slots:
            slots.remove(slot)
            self._write_owned(slots)
