from __future__ import annotations

import csv
import logging
from typing import Dict, List, Optional

import httpx

from mac_schedule.schemas.session import Session
from mac_schedule.services.feed_client import CsvFeedReader
from mac_schedule.services.snapshot_reader import RemoteBookingSnapshot
from mac_schedule.utils.config import get_settings
from mac_schedule.utils.csv_records import iter_rows

logger = logging.getLogger(__name__)

PREREQ_HEADERS = {
    "prerequisites",
    "prerequisite",
    "pre-requisites",
    "pre-requisite",
    "pre-requesites",
    "pre-req",
    "pre-reqs",
}
TEXT_HEADERS = {"id", "day", "start", "end", "title", "level", "location", "description"}


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_capacity(value: str) -> Optional[int]:
    try:
        capacity = int(value.strip())
    except ValueError:
        return None
    return capacity if capacity > 0 else None


def parse_session_row(headers: List[str], values: List[str]) -> Optional[Session]:
    """Map one schedule row onto a ``Session`` by header name; ``None`` without an id."""

    values = values + [""] * (len(headers) - len(values))
    fields: Dict[str, object] = {}
    extra: Dict[str, str] = {}
    for header, value in zip(headers, values):
        key = header.lower().strip()
        if key in TEXT_HEADERS:
            fields[key] = value
        elif key == "types":
            fields["styles"] = _split_list(value)
        elif key == "teachers":
            fields["teachers"] = _split_list(value)
        elif key in PREREQ_HEADERS:
            fields["prereqs"] = value
        elif key == "capacity":
            fields["capacity"] = _parse_capacity(value)
        elif header:
            extra[header] = value

    if not fields.get("id"):
        return None
    return Session(extra=extra, **fields)


def parse_sessions_csv(text: str) -> List[Session]:
    rows = iter_rows(text)
    header = next(rows, None)
    if header is None:
        logger.error("No rows found in schedule CSV")
        return []

    headers = [value.replace('"', "").strip() for value in header]
    sessions: List[Session] = []
    for row_number, values in enumerate(rows, start=2):
        session = parse_session_row(headers, values)
        if session is None:
            logger.info("Skipping schedule row without id", extra={"row": row_number})
            continue
        sessions.append(session)

    logger.info("Loaded sessions from schedule", extra={"sessions": len(sessions)})
    return sessions


class SessionFeedReader(CsvFeedReader):
    """Reads session metadata from the schedule sheet export."""

    async def fetch(self) -> Optional[List[Session]]:
        text = await self.fetch_text()
        if text is None:
            return None
        if text.lstrip().startswith("<"):
            logger.error("Received HTML instead of CSV, the sheet might not be public", extra={"url": self.url})
            return None
        try:
            return parse_sessions_csv(text)
        except csv.Error as exc:
            logger.warning("Unparseable schedule feed", extra={"url": self.url, "error": str(exc)})
            return None


def merge_sessions_with_bookings(
    sessions: List[Session],
    snapshot: Optional[RemoteBookingSnapshot],
) -> List[Session]:
    """Annotate sessions with capacity and booked names from the snapshot.

    Sessions missing from the snapshot stay unlimited and are returned as they are.
    """

    if snapshot is None:
        logger.info("No booking data available, sessions remain unlimited")
        return sessions

    merged: List[Session] = []
    for session in sessions:
        entry = snapshot.get(session.id)
        if entry:
            session = session.model_copy(
                update={
                    "capacity": entry.capacity,
                    "booked_names": list(entry.booked_names),
                    "booking_count": entry.booking_count,
                }
            )
        merged.append(session)
    return merged


_session_feed: SessionFeedReader | None = None


def get_session_feed() -> SessionFeedReader:
    global _session_feed
    if not _session_feed:
        settings = get_settings()
        _session_feed = SessionFeedReader(
            settings.sessions_csv_url,
            client=httpx.AsyncClient(timeout=settings.fetch_timeout_seconds, follow_redirects=True),
        )
    return _session_feed
