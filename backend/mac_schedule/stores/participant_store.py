from __future__ import annotations

from typing import Dict, List

from mac_schedule.stores.device_identity import DeviceIdentity
from mac_schedule.stores.local_storage import LocalStorage, get_local_storage

PARTICIPANTS_KEY = "mac_participants"
TRACKED_KEYWORDS = ("cacao", "ceremony")


def has_participant_tracking(session_title: str | None) -> bool:
    if not session_title:
        return False
    title = session_title.lower()
    return any(keyword in title for keyword in TRACKED_KEYWORDS)


class ParticipantTracker:
    """Local-only headcount for special sessions, keyed by session title."""

    def __init__(self, storage: LocalStorage, identity: DeviceIdentity) -> None:
        self._storage = storage
        self._identity = identity

    def all(self) -> Dict[str, List[str]]:
        raw = self._storage.read_dict(PARTICIPANTS_KEY)
        return {title: list(ids) for title, ids in raw.items() if isinstance(ids, list)}

    def participants(self, session_title: str) -> List[str]:
        return self.all().get(session_title, [])

    def count(self, session_title: str) -> int:
        return len(self.participants(session_title))

    def is_participating(self, session_title: str) -> bool:
        return self._identity.device_id in self.participants(session_title)

    def join(self, session_title: str) -> bool:
        participants = self.all()
        device_id = self._identity.device_id
        current = participants.setdefault(session_title, [])
        if device_id in current:
            return False
        current.append(device_id)
        self._storage.write_json(PARTICIPANTS_KEY, participants)
        return True

    def leave(self, session_title: str) -> bool:
        participants = self.all()
        if session_title not in participants:
            return False
        participants[session_title] = [
            device_id for device_id in participants[session_title] if device_id != self._identity.device_id
        ]
        if not participants[session_title]:
            del participants[session_title]
        self._storage.write_json(PARTICIPANTS_KEY, participants)
        return True

    def toggle(self, session_title: str) -> bool:
        """Flip participation; returns whether this device now participates."""

        if self.is_participating(session_title):
            self.leave(session_title)
            return False
        self.join(session_title)
        return True


def get_participant_tracker() -> ParticipantTracker:
    storage = get_local_storage()
    return ParticipantTracker(storage, DeviceIdentity(storage))
