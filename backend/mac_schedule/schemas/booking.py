from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class BookingRequest(BaseModel):
    names: List[str] = Field(default_factory=list)
    capacity: Optional[int] = Field(None, ge=0, description="Capacity from session metadata, used when the sheet has none")


class BookingOutcomeOut(BaseModel):
    session_id: str
    state: str
    names: List[str] = Field(default_factory=list)
    capacity: Optional[int] = None
    booking_count: Optional[int] = None
    spots_left: Optional[int] = None
    degraded: bool = False
    message: str = ""


class LocalBookingOut(BaseModel):
    device_id: str
    names: List[str]
    count: int
    timestamp: int


class SlotBookingRequest(BaseModel):
    names: List[str] = Field(default_factory=list)


class SlotStateOut(BaseModel):
    slot: str
    names: List[str] = Field(default_factory=list)
    is_booked: bool
    is_mine: bool


class ParticipationOut(BaseModel):
    session_title: str
    tracked: bool
    count: int
    is_participating: bool
