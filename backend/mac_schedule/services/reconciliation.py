from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence

from mac_schedule.services.background import BackgroundSyncs
from mac_schedule.services.snapshot_reader import (
    RemoteBookingSnapshot,
    RemoteSnapshotReader,
    get_snapshot_reader,
)
from mac_schedule.services.view_model import CapacityState, derive_capacity_state, union_names
from mac_schedule.services.write_sink import WebhookWriteSink, get_write_sink
from mac_schedule.stores.booking_store import LocalBookingStore
from mac_schedule.stores.device_identity import DeviceIdentity
from mac_schedule.stores.event_bus import BookingEventBus, event_bus
from mac_schedule.stores.local_storage import get_local_storage

logger = logging.getLogger(__name__)


class BookingState(str, Enum):
    UNBOOKED = "unbooked"
    PENDING_VALIDATE = "pending_validate"
    BOOKED = "booked"
    REJECTED_FULL = "rejected_full"
    REJECTED_CONFLICT = "rejected_conflict"
    INVALID_INPUT = "invalid_input"


@dataclass
class BookingOutcome:
    session_id: str
    state: BookingState
    names: List[str] = field(default_factory=list)
    capacity: Optional[int] = None
    booking_count: Optional[int] = None
    spots_left: Optional[int] = None
    degraded: bool = False  # no fresh snapshot was available for the decision
    message: str = ""

    @property
    def accepted(self) -> bool:
        return self.state == BookingState.BOOKED


def clean_names(names: Iterable[str]) -> List[str]:
    return [name.strip() for name in names if name and name.strip()]


class BookingEngine:
    """Reconciles this device's bookings with the shared spreadsheet.

    Bookings commit to the local store first. The spreadsheet is updated
    afterwards by a background push of the merged name list, so a slow or
    unreachable webhook never delays or undoes a local commit. There is no
    locking across devices: two devices passing the capacity check at the same
    time will both commit and the session ends up overbooked.
    """

    def __init__(
        self,
        store: LocalBookingStore,
        reader: RemoteSnapshotReader,
        sink: WebhookWriteSink,
        bus: BookingEventBus | None = None,
    ) -> None:
        self.store = store
        self.reader = reader
        self.sink = sink
        self.bus = bus
        self._snapshot: Optional[RemoteBookingSnapshot] = None
        self._syncs = BackgroundSyncs("session-bookings")

    @property
    def last_snapshot(self) -> Optional[RemoteBookingSnapshot]:
        return self._snapshot

    async def refresh_snapshot(self) -> Optional[RemoteBookingSnapshot]:
        snapshot = await self.reader.fetch()
        if snapshot is None:
            logger.warning("Booking snapshot unavailable, using local view")
            return None
        self._snapshot = snapshot
        return snapshot

    def get_status(
        self,
        session_id: str,
        snapshot: Optional[RemoteBookingSnapshot] = None,
        capacity: Optional[int] = None,
    ) -> CapacityState:
        source = snapshot if snapshot is not None else self._snapshot
        return derive_capacity_state(session_id, source, self.store, capacity=capacity)

    async def attempt_book(
        self,
        session_id: str,
        candidate_names: Sequence[str],
        capacity: Optional[int] = None,
    ) -> BookingOutcome:
        names = clean_names(candidate_names)
        if not names:
            return BookingOutcome(
                session_id=session_id,
                state=BookingState.INVALID_INPUT,
                message="Please enter at least one name.",
            )

        logger.info(
            "Validating booking",
            extra={"session_id": session_id, "state": BookingState.PENDING_VALIDATE.value, "count": len(names)},
        )
        fresh = await self.refresh_snapshot()
        source = fresh if fresh is not None else self._snapshot
        entry = source.get(session_id) if source is not None else None

        previous = self.store.get(session_id)
        own_previous = set(previous.names) if previous else set()

        if entry:
            effective_capacity: Optional[int] = entry.capacity
            others = [name for name in entry.booked_names if name not in own_previous]
            unnamed = max(0, (entry.booking_count or 0) - len(entry.booked_names))
        else:
            effective_capacity = capacity if capacity and capacity > 0 else None
            others = [name for name in union_names(self.store.names_for(session_id)) if name not in own_previous]
            unnamed = 0
        current_count = len(others) + unnamed

        if effective_capacity is not None and current_count + len(names) > effective_capacity:
            spots_left = max(effective_capacity - current_count, 0)
            logger.info(
                "Booking rejected, session full",
                extra={"session_id": session_id, "requested": len(names), "spots_left": spots_left},
            )
            await self._publish(session_id, {"type": "booking.rejected", "spots_left": spots_left})
            return BookingOutcome(
                session_id=session_id,
                state=BookingState.REJECTED_FULL,
                names=names,
                capacity=effective_capacity,
                booking_count=current_count,
                spots_left=spots_left,
                degraded=fresh is None,
                message=f"Only {spots_left} spot(s) left.",
            )

        self.store.set(session_id, names)
        committed = union_names(others, names)
        self._apply_to_snapshot(session_id, committed, effective_capacity)
        removed = [name for name in own_previous if name not in names]
        self._syncs.schedule(self._sync(session_id, removed=removed, capacity=effective_capacity))

        booking_count = len(committed) + unnamed
        await self._publish(session_id, {"type": "booking.committed", "count": booking_count})
        return BookingOutcome(
            session_id=session_id,
            state=BookingState.BOOKED,
            names=names,
            capacity=effective_capacity,
            booking_count=booking_count,
            spots_left=max(effective_capacity - booking_count, 0) if effective_capacity is not None else None,
            degraded=fresh is None,
        )

    async def cancel_booking(self, session_id: str, capacity: Optional[int] = None) -> BookingOutcome:
        previous = self.store.get(session_id)
        if previous is None:
            return BookingOutcome(
                session_id=session_id,
                state=BookingState.UNBOOKED,
                message="No booking to cancel.",
            )

        self.store.remove(session_id)
        if self._snapshot is not None:
            remaining = [name for name in self._snapshot.names_for(session_id) if name not in previous.names]
            self._apply_to_snapshot(session_id, remaining, capacity)
        self._syncs.schedule(self._sync(session_id, removed=previous.names, capacity=capacity))

        status = self.get_status(session_id, capacity=capacity)
        await self._publish(session_id, {"type": "booking.cancelled", "count": status.booking_count})
        return BookingOutcome(
            session_id=session_id,
            state=BookingState.UNBOOKED,
            names=list(previous.names),
            capacity=status.capacity,
            booking_count=status.booking_count,
            spots_left=status.spots_left,
        )

    async def wait_for_pending_syncs(self) -> None:
        await self._syncs.wait()

    def _apply_to_snapshot(self, session_id: str, names: List[str], capacity: Optional[int]) -> None:
        base = self._snapshot if self._snapshot is not None else RemoteBookingSnapshot()
        self._snapshot = base.with_names(session_id, names, capacity=capacity)

    async def _sync(self, session_id: str, removed: Sequence[str], capacity: Optional[int]) -> bool:
        # The spreadsheet may have changed between this read and the push; the
        # last push to land wins the row.
        fresh = await self.reader.fetch()
        base = fresh if fresh is not None else self._snapshot
        remote_names = base.names_for(session_id) if base is not None else []
        merged = union_names(
            [name for name in remote_names if name not in removed],
            self.store.names_for(session_id),
        )
        logger.info(
            "Merging bookings",
            extra={"session_id": session_id, "remote": remote_names, "merged": merged},
        )

        dispatched = await self.sink.push(session_id, merged)
        if fresh is not None:
            self._snapshot = fresh.with_names(session_id, merged, capacity=capacity)
        if not dispatched:
            logger.warning("Booking saved locally only", extra={"session_id": session_id, "count": len(merged)})
        await self._publish(session_id, {"type": "booking.synced", "dispatched": dispatched, "count": len(merged)})
        return dispatched

    async def _publish(self, session_id: str, event: dict[str, Any]) -> None:
        if self.bus is not None:
            await self.bus.publish(session_id, {"session_id": session_id, **event})


_booking_engine: BookingEngine | None = None


def get_booking_store() -> LocalBookingStore:
    storage = get_local_storage()
    return LocalBookingStore(storage, DeviceIdentity(storage))


def get_booking_engine() -> BookingEngine:
    global _booking_engine
    if not _booking_engine:
        _booking_engine = BookingEngine(
            store=get_booking_store(),
            reader=get_snapshot_reader(),
            sink=get_write_sink(),
            bus=event_bus,
        )
    return _booking_engine
