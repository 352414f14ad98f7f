from __future__ import annotations

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from mac_schedule.schemas import BookingOutcomeOut, BookingRequest, CapacityStateOut, SessionView
from mac_schedule.services.reconciliation import BookingEngine, BookingOutcome, BookingState, get_booking_engine
from mac_schedule.services.session_feed import SessionFeedReader, get_session_feed, merge_sessions_with_bookings
from mac_schedule.services.view_model import build_session_view


router = APIRouter(prefix="/sessions", tags=["sessions"])


def serialize_outcome(outcome: BookingOutcome) -> BookingOutcomeOut:
    payload = asdict(outcome)
    payload["state"] = outcome.state.value
    return BookingOutcomeOut(**payload)


@router.get("", response_model=List[SessionView])
async def list_sessions(
    feed: SessionFeedReader = Depends(get_session_feed),
    engine: BookingEngine = Depends(get_booking_engine),
) -> List[SessionView]:
    sessions = await feed.fetch()
    if sessions is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Schedule feed unavailable")

    await engine.refresh_snapshot()
    snapshot = engine.last_snapshot
    merged = merge_sessions_with_bookings(sessions, snapshot)
    return [build_session_view(session, snapshot, engine.store) for session in merged]


@router.get("/{session_id}/status", response_model=CapacityStateOut)
def get_booking_status(
    session_id: str,
    capacity: Optional[int] = None,
    engine: BookingEngine = Depends(get_booking_engine),
) -> CapacityStateOut:
    """Current booking state from the last-known snapshot; never calls the network."""

    return engine.get_status(session_id, capacity=capacity).to_schema()


@router.post("/{session_id}/bookings", response_model=BookingOutcomeOut)
async def book_session(
    session_id: str,
    payload: BookingRequest,
    engine: BookingEngine = Depends(get_booking_engine),
) -> BookingOutcomeOut:
    outcome = await engine.attempt_book(session_id, payload.names, capacity=payload.capacity)
    if outcome.state == BookingState.INVALID_INPUT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=outcome.message)
    if outcome.state == BookingState.REJECTED_FULL:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=serialize_outcome(outcome).model_dump(),
        )
    return serialize_outcome(outcome)


@router.delete("/{session_id}/bookings", response_model=BookingOutcomeOut)
async def cancel_session_booking(
    session_id: str,
    capacity: Optional[int] = None,
    engine: BookingEngine = Depends(get_booking_engine),
) -> BookingOutcomeOut:
    outcome = await engine.cancel_booking(session_id, capacity=capacity)
    return serialize_outcome(outcome)
