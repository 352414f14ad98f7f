from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends

from mac_schedule.schemas import LocalBookingOut
from mac_schedule.services.reconciliation import BookingEngine, get_booking_engine


router = APIRouter(prefix="/metadata", tags=["metadata"])


@router.get("/device")
def get_device(engine: BookingEngine = Depends(get_booking_engine)) -> dict:
    return {"device_id": engine.store.device_id}


@router.get("/bookings", response_model=Dict[str, LocalBookingOut])
def list_local_bookings(engine: BookingEngine = Depends(get_booking_engine)) -> Dict[str, LocalBookingOut]:
    return {
        session_id: LocalBookingOut(
            device_id=record.device_id,
            names=record.names,
            count=record.count,
            timestamp=record.timestamp,
        )
        for session_id, record in engine.store.list_all().items()
    }


@router.delete("/bookings")
def clear_local_bookings(engine: BookingEngine = Depends(get_booking_engine)) -> dict:
    engine.store.clear_all()
    return {"status": "cleared"}


@router.post("/snapshot/refresh")
async def refresh_snapshot(engine: BookingEngine = Depends(get_booking_engine)) -> dict:
    snapshot = await engine.refresh_snapshot()
    if snapshot is None:
        return {"status": "unavailable", "sessions": None}
    return {"status": "refreshed", "sessions": len(snapshot)}
