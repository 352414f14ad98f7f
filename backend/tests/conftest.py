from typing import Any, Dict, List, Optional, Tuple

import pytest

from mac_schedule.services.snapshot_reader import RemoteBookingSnapshot, RemoteSessionBooking
from mac_schedule.stores.booking_store import LocalBookingStore
from mac_schedule.stores.device_identity import DeviceIdentity
from mac_schedule.stores.local_storage import MemoryStorage


class FakeReader:
    """Snapshot reader returning a canned snapshot (``None`` means unreachable)."""

    def __init__(self, snapshot: Optional[RemoteBookingSnapshot] = None) -> None:
        self.snapshot = snapshot
        self.calls = 0

    async def fetch(self) -> Optional[RemoteBookingSnapshot]:
        self.calls += 1
        return self.snapshot


class FakeSink:
    """Write sink recording every push instead of sending it."""

    def __init__(self, dispatched: bool = True) -> None:
        self.dispatched = dispatched
        self.pushes: List[Tuple[str, List[str]]] = []
        self.payloads: List[Dict[str, Any]] = []

    async def push(self, session_id: str, merged_names) -> bool:
        self.pushes.append((session_id, list(merged_names)))
        return self.dispatched

    async def dispatch(self, payload: Dict[str, Any]) -> bool:
        self.payloads.append(payload)
        return self.dispatched


def make_snapshot(**sessions: Tuple[int, List[str]]) -> RemoteBookingSnapshot:
    return RemoteBookingSnapshot(
        sessions={
            session_id: RemoteSessionBooking(
                session_id=session_id,
                session_name=session_id.title(),
                capacity=capacity,
                booked_names=list(names),
            )
            for session_id, (capacity, names) in sessions.items()
        }
    )


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def identity(storage: MemoryStorage) -> DeviceIdentity:
    return DeviceIdentity(storage)


@pytest.fixture
def store(storage: MemoryStorage, identity: DeviceIdentity) -> LocalBookingStore:
    return LocalBookingStore(storage, identity)
