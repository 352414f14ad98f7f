from __future__ import annotations

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse

from mac_schedule.routes.sessions import serialize_outcome
from mac_schedule.schemas import BookingOutcomeOut, SlotBookingRequest, SlotStateOut
from mac_schedule.services.photoshoot import PhotoshootService, get_photoshoot_service, time_slots_csv
from mac_schedule.services.reconciliation import BookingState


router = APIRouter(prefix="/photoshoot", tags=["photoshoot"])


@router.get("/slots", response_model=List[SlotStateOut])
async def list_slots(service: PhotoshootService = Depends(get_photoshoot_service)) -> List[SlotStateOut]:
    return [SlotStateOut(**asdict(state)) for state in await service.list_slots()]


@router.get("/template.csv", response_class=PlainTextResponse)
def slots_template(service: PhotoshootService = Depends(get_photoshoot_service)) -> str:
    return time_slots_csv(service.slots)


@router.post("/slots/{slot}", response_model=BookingOutcomeOut)
async def book_slot(
    slot: str,
    payload: SlotBookingRequest,
    service: PhotoshootService = Depends(get_photoshoot_service),
) -> BookingOutcomeOut:
    outcome = await service.book_slot(slot, payload.names)
    if outcome.state == BookingState.INVALID_INPUT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=outcome.message)
    if outcome.state == BookingState.REJECTED_CONFLICT:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=outcome.message)
    return serialize_outcome(outcome)


@router.delete("/slots/{slot}", response_model=BookingOutcomeOut)
async def cancel_slot(
    slot: str,
    service: PhotoshootService = Depends(get_photoshoot_service),
) -> BookingOutcomeOut:
    outcome = await service.cancel_slot(slot)
    if outcome.state == BookingState.REJECTED_CONFLICT:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=outcome.message)
    return serialize_outcome(outcome)
