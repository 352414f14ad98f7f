from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import httpx

from mac_schedule.services.background import BackgroundSyncs
from mac_schedule.services.feed_client import CsvFeedReader
from mac_schedule.services.reconciliation import BookingOutcome, BookingState, clean_names
from mac_schedule.services.write_sink import WebhookWriteSink
from mac_schedule.stores.device_identity import DeviceIdentity
from mac_schedule.stores.local_storage import get_local_storage
from mac_schedule.stores.photoshoot_store import PhotoshootStore
from mac_schedule.utils.config import get_settings
from mac_schedule.utils.csv_records import iter_rows, join_names, split_names

logger = logging.getLogger(__name__)


def generate_time_slots(first: str = "14:00", minutes: int = 3, count: int = 40) -> List[str]:
    start = datetime.strptime(first, "%H:%M")
    return [(start + timedelta(minutes=minutes * index)).strftime("%H:%M") for index in range(count)]


def time_slots_csv(slots: Sequence[str], bookings: Optional[Dict[str, List[str]]] = None) -> str:
    """Sheet template (or export) with one quoted row per slot."""

    bookings = bookings or {}
    lines = ["Time Slot,Names"]
    for slot in slots:
        names = join_names(bookings.get(slot, [])).replace('"', '""')
        lines.append(f'"{slot}","{names}"')
    return "\n".join(lines) + "\n"


def parse_slots_csv(text: str) -> Dict[str, List[str]]:
    rows = iter_rows(text)
    next(rows, None)
    bookings: Dict[str, List[str]] = {}
    for row_number, values in enumerate(rows, start=2):
        if len(values) < 2:
            logger.warning("Skipping slot row", extra={"row": row_number, "fields": len(values)})
            continue
        slot, names = values[0], split_names(values[1])
        if slot and names:
            bookings[slot] = names
    logger.info("Parsed photoshoot bookings", extra={"slots_booked": len(bookings)})
    return bookings


class PhotoshootSlotReader(CsvFeedReader):
    async def fetch(self) -> Optional[Dict[str, List[str]]]:
        text = await self.fetch_text()
        if text is None:
            return None
        try:
            return parse_slots_csv(text)
        except csv.Error as exc:
            logger.warning("Unparseable photoshoot feed", extra={"url": self.url, "error": str(exc)})
            return None


@dataclass
class SlotState:
    slot: str
    names: List[str] = field(default_factory=list)
    is_booked: bool = False
    is_mine: bool = False


class PhotoshootService:
    """Books fixed photoshoot slots, one party per slot.

    Same commit-locally-then-push flow as session bookings, with the whole slot
    table sent to the webhook on every change.
    """

    def __init__(
        self,
        store: PhotoshootStore,
        reader: PhotoshootSlotReader,
        sink: WebhookWriteSink,
        slots: Sequence[str],
    ) -> None:
        self.store = store
        self.reader = reader
        self.sink = sink
        self.slots = list(slots)
        self._syncs = BackgroundSyncs("photoshoot")

    def _holder_names(self, slot: str, remote: Optional[Dict[str, List[str]]]) -> List[str]:
        if self.store.is_owned(slot):
            return self.store.names_for(slot)
        if remote is not None:
            return remote.get(slot, [])
        return self.store.names_for(slot)

    async def list_slots(self) -> List[SlotState]:
        remote = await self.reader.fetch()
        states = []
        for slot in self.slots:
            names = self._holder_names(slot, remote)
            states.append(
                SlotState(slot=slot, names=names, is_booked=bool(names), is_mine=self.store.is_owned(slot))
            )
        return states

    async def book_slot(self, slot: str, names: Sequence[str]) -> BookingOutcome:
        cleaned = clean_names(names)
        if not cleaned or slot not in self.slots:
            return BookingOutcome(
                session_id=slot,
                state=BookingState.INVALID_INPUT,
                message="Pick a valid time slot and enter at least one name.",
            )

        remote = await self.reader.fetch()
        holders = self._holder_names(slot, remote)
        if holders and not self.store.is_owned(slot):
            return BookingOutcome(
                session_id=slot,
                state=BookingState.REJECTED_CONFLICT,
                names=cleaned,
                degraded=remote is None,
                message=f"Slot {slot} is already booked.",
            )

        self.store.set_slot(slot, cleaned)
        self.store.claim(slot)
        logger.info("Photoshoot slot booked", extra={"slot": slot, "count": len(cleaned)})
        self._syncs.schedule(self._sync())
        return BookingOutcome(
            session_id=slot,
            state=BookingState.BOOKED,
            names=cleaned,
            capacity=1,
            booking_count=1,
            spots_left=0,
            degraded=remote is None,
        )

    async def cancel_slot(self, slot: str) -> BookingOutcome:
        if not self.store.is_owned(slot):
            remote = await self.reader.fetch()
            holders = self._holder_names(slot, remote)
            if not holders:
                return BookingOutcome(session_id=slot, state=BookingState.UNBOOKED, degraded=remote is None)
            return BookingOutcome(
                session_id=slot,
                state=BookingState.REJECTED_CONFLICT,
                names=holders,
                degraded=remote is None,
                message="Only the device that booked this slot can cancel it.",
            )

        previous = self.store.names_for(slot)
        self.store.set_slot(slot, [])
        self.store.release(slot)
        logger.info("Photoshoot slot cancelled", extra={"slot": slot})
        self._syncs.schedule(self._sync(released=slot))
        return BookingOutcome(
            session_id=slot,
            state=BookingState.UNBOOKED,
            names=previous,
            capacity=1,
            booking_count=0,
            spots_left=1,
        )

    async def wait_for_pending_syncs(self) -> None:
        await self._syncs.wait()

    async def _sync(self, released: Optional[str] = None) -> bool:
        remote = await self.reader.fetch()
        table: Dict[str, List[str]] = dict(remote or {})
        if released:
            table.pop(released, None)
        for slot in self.store.owned_slots():
            table[slot] = self.store.names_for(slot)

        payload = {
            "bookings": [
                {"timeSlot": slot, "names": join_names(names)}
                for slot, names in sorted(table.items())
                if names
            ]
        }
        return await self.sink.dispatch(payload)


_photoshoot_service: PhotoshootService | None = None


def get_photoshoot_service() -> PhotoshootService:
    global _photoshoot_service
    if not _photoshoot_service:
        settings = get_settings()
        storage = get_local_storage()
        _photoshoot_service = PhotoshootService(
            store=PhotoshootStore(storage, DeviceIdentity(storage)),
            reader=PhotoshootSlotReader(
                settings.photoshoot_csv_url,
                client=httpx.AsyncClient(timeout=settings.fetch_timeout_seconds, follow_redirects=True),
            ),
            sink=WebhookWriteSink(settings.photoshoot_webhook_url, timeout=settings.webhook_timeout_seconds),
            slots=generate_time_slots(
                settings.photoshoot_first_slot,
                settings.photoshoot_slot_minutes,
                settings.photoshoot_slot_count,
            ),
        )
    return _photoshoot_service
