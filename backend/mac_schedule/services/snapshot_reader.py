from __future__ import annotations

import csv
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

import httpx

from mac_schedule.errors import MalformedRemoteRecord
from mac_schedule.services.feed_client import CsvFeedReader
from mac_schedule.utils.config import get_settings
from mac_schedule.utils.csv_records import iter_rows, split_names

logger = logging.getLogger(__name__)

REQUIRED_HEADERS = ("Session ID", "Booked Names")
EXPECTED_COLUMNS = 4


@dataclass
class RemoteSessionBooking:
    session_id: str
    session_name: str
    capacity: int
    booked_names: List[str] = field(default_factory=list)
    booking_count: Optional[int] = None

    def __post_init__(self) -> None:
        if self.booking_count is None:
            self.booking_count = len(self.booked_names)


@dataclass
class RemoteBookingSnapshot:
    """Last-read booking state of the shared spreadsheet, keyed by session id.

    Sessions without a capacity are unlimited and never appear here.
    """

    sessions: Dict[str, RemoteSessionBooking] = field(default_factory=dict)
    fetched_at: float = field(default_factory=time.time)

    def get(self, session_id: str) -> Optional[RemoteSessionBooking]:
        return self.sessions.get(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self.sessions

    def __len__(self) -> int:
        return len(self.sessions)

    def names_for(self, session_id: str) -> List[str]:
        entry = self.sessions.get(session_id)
        return list(entry.booked_names) if entry else []

    def with_names(self, session_id: str, names: Iterable[str], capacity: Optional[int] = None) -> "RemoteBookingSnapshot":
        """Copy of the snapshot with one session's names replaced.

        Bookings the sheet counts without names are kept on top of ``names``. A
        session missing from the snapshot is only added when ``capacity`` is known.
        """

        names = list(names)
        sessions = dict(self.sessions)
        entry = sessions.get(session_id)
        if entry:
            unnamed = max(0, (entry.booking_count or 0) - len(entry.booked_names))
            sessions[session_id] = replace(entry, booked_names=names, booking_count=len(names) + unnamed)
        elif capacity:
            sessions[session_id] = RemoteSessionBooking(
                session_id=session_id,
                session_name="",
                capacity=capacity,
                booked_names=names,
            )
        return RemoteBookingSnapshot(sessions=sessions, fetched_at=self.fetched_at)


def _parse_capacity(raw: str) -> Optional[int]:
    try:
        capacity = int(raw.strip())
    except ValueError:
        return None
    return capacity if capacity > 0 else None


def parse_booking_row(values: List[str], row_number: int) -> Optional[RemoteSessionBooking]:
    if len(values) < EXPECTED_COLUMNS:
        raise MalformedRemoteRecord(row_number, f"expected {EXPECTED_COLUMNS} fields, got {len(values)}")

    session_id, session_name, raw_capacity, raw_names = values[:EXPECTED_COLUMNS]
    capacity = _parse_capacity(raw_capacity)
    if not session_id or capacity is None:
        return None
    return RemoteSessionBooking(
        session_id=session_id,
        session_name=session_name,
        capacity=capacity,
        booked_names=split_names(raw_names),
    )


def parse_bookings_csv(text: str) -> Optional[RemoteBookingSnapshot]:
    """Parse the Bookings tab export; ``None`` when it lacks the expected headers."""

    rows = iter_rows(text)
    header = next(rows, None)
    if header is None:
        return RemoteBookingSnapshot()
    if not all(name in header for name in REQUIRED_HEADERS):
        logger.warning("Bookings sheet missing expected headers", extra={"header": header})
        return None

    snapshot = RemoteBookingSnapshot()
    for row_number, values in enumerate(rows, start=2):
        try:
            entry = parse_booking_row(values, row_number)
        except MalformedRemoteRecord as exc:
            logger.warning("Skipping booking row", extra={"row": exc.row_number, "reason": exc.reason})
            continue
        if entry:
            snapshot.sessions[entry.session_id] = entry

    logger.info("Parsed session bookings", extra={"sessions": len(snapshot)})
    return snapshot


class RemoteSnapshotReader(CsvFeedReader):
    """Reads the booking snapshot from the spreadsheet's Bookings tab export."""

    async def fetch(self) -> Optional[RemoteBookingSnapshot]:
        text = await self.fetch_text()
        if text is None:
            return None
        if not text.strip():
            return RemoteBookingSnapshot()
        try:
            return parse_bookings_csv(text)
        except csv.Error as exc:
            logger.warning("Unparseable bookings feed", extra={"url": self.url, "error": str(exc)})
            return None


_snapshot_reader: RemoteSnapshotReader | None = None


def get_snapshot_reader() -> RemoteSnapshotReader:
    global _snapshot_reader
    if not _snapshot_reader:
        settings = get_settings()
        _snapshot_reader = RemoteSnapshotReader(
            settings.bookings_csv_url,
            client=httpx.AsyncClient(timeout=settings.fetch_timeout_seconds, follow_redirects=True),
        )
    return _snapshot_reader
