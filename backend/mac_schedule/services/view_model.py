from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Iterable, List, Optional

from mac_schedule.schemas.session import CapacityStateOut, Session, SessionView
from mac_schedule.services.snapshot_reader import RemoteBookingSnapshot
from mac_schedule.stores.booking_store import LocalBookingStore


@dataclass
class CapacityState:
    session_id: str
    capacity: Optional[int]
    booking_count: int
    spots_left: Optional[int]
    is_full: bool
    is_booked_by_this_device: bool
    booked_names: List[str] = field(default_factory=list)

    def to_schema(self) -> CapacityStateOut:
        return CapacityStateOut(**asdict(self))


def union_names(*groups: Iterable[str]) -> List[str]:
    """Order-preserving, case-sensitive set union."""

    merged: dict[str, None] = {}
    for group in groups:
        for name in group:
            merged.setdefault(name, None)
    return list(merged)


def derive_capacity_state(
    session_id: str,
    snapshot: Optional[RemoteBookingSnapshot],
    store: LocalBookingStore,
    capacity: Optional[int] = None,
) -> CapacityState:
    """Display state for one session from the snapshot (if any) and the local store.

    The count is the cardinality of the union of remote and local names, plus any
    remote bookings counted without names. Capacity from the snapshot wins over
    the ``capacity`` passed in from session metadata.
    """

    entry = snapshot.get(session_id) if snapshot is not None else None
    record = store.get(session_id)
    remote_names = entry.booked_names if entry else []
    names = union_names(remote_names, store.names_for(session_id))
    unnamed = max(0, (entry.booking_count or 0) - len(entry.booked_names)) if entry else 0
    booking_count = len(names) + unnamed

    if entry:
        effective_capacity: Optional[int] = entry.capacity
    else:
        effective_capacity = capacity if capacity and capacity > 0 else None

    spots_left = None
    is_full = False
    if effective_capacity is not None:
        spots_left = max(effective_capacity - booking_count, 0)
        is_full = booking_count >= effective_capacity

    return CapacityState(
        session_id=session_id,
        capacity=effective_capacity,
        booking_count=booking_count,
        spots_left=spots_left,
        is_full=is_full,
        is_booked_by_this_device=bool(record and record.names),
        booked_names=names,
    )


def build_session_view(
    session: Session,
    snapshot: Optional[RemoteBookingSnapshot],
    store: LocalBookingStore,
) -> SessionView:
    state = derive_capacity_state(session.id, snapshot, store, capacity=session.capacity)
    if state.capacity is None:
        return SessionView(session=session)
    return SessionView(session=session, booking=state.to_schema())
