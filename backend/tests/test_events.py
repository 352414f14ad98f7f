import asyncio
import json

import pytest

from conftest import FakeReader, FakeSink, make_snapshot
from mac_schedule.routes.events import _booking_stream
from mac_schedule.services.reconciliation import BookingEngine
from mac_schedule.stores.event_bus import BookingEventBus


@pytest.mark.asyncio
async def test_stream_starts_with_status_and_forwards_booking_events(store):
    bus = BookingEventBus()
    engine = BookingEngine(store=store, reader=FakeReader(make_snapshot(s1=(5, ["Carol"]))), sink=FakeSink(), bus=bus)
    await engine.refresh_snapshot()
    stream = _booking_stream("s1", engine, bus=bus)

    first = await stream.__anext__()
    assert first["event"] == "booking.status"
    status = json.loads(first["data"])
    assert (status["booking_count"], status["spots_left"]) == (1, 4)

    pending = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)
    assert bus.listener_count("s1") == 1

    await bus.publish("s1", {"type": "heartbeat", "session_id": "s1"})
    await bus.publish("s1", {"type": "booking.committed", "session_id": "s1", "count": 2})

    forwarded = await pending
    assert forwarded["event"] == "booking.committed"
    assert json.loads(forwarded["data"])["count"] == 2
    await stream.aclose()
