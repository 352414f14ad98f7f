from __future__ import annotations

import json
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sse_starlette.sse import EventSourceResponse

from mac_schedule.services.reconciliation import BookingEngine, get_booking_engine
from mac_schedule.stores.event_bus import BookingEventBus, event_bus

router = APIRouter(prefix="/events", tags=["events"])

HEARTBEAT_SECONDS = 15
BOOKING_EVENT_PREFIX = "booking."


async def _booking_stream(
    session_id: str,
    engine: BookingEngine,
    capacity: Optional[int] = None,
    bus: BookingEventBus = event_bus,
) -> AsyncGenerator[Dict[str, Any], None]:
    """Current capacity state of the session, then its booking changes as they happen."""

    status = engine.get_status(session_id, capacity=capacity).to_schema()
    yield {"event": "booking.status", "data": status.model_dump_json()}

    async for event in bus.stream(session_id):
        kind = str(event.get("type", ""))
        if not kind.startswith(BOOKING_EVENT_PREFIX):
            continue
        yield {"event": kind, "data": json.dumps(event)}


@router.get("/{session_id}")
async def listen(
    session_id: str,
    capacity: Optional[int] = Query(default=None, ge=0),
    engine: BookingEngine = Depends(get_booking_engine),
) -> EventSourceResponse:
    # Keep-alives go out as SSE comment lines, never through the bus.
    return EventSourceResponse(_booking_stream(session_id, engine, capacity), ping=HEARTBEAT_SECONDS)
