from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Session(BaseModel):
    id: str
    title: str = ""
    day: str = ""
    start: str = ""
    end: str = ""
    level: str = ""
    styles: List[str] = Field(default_factory=list)
    teachers: List[str] = Field(default_factory=list)
    location: str = ""
    description: str = ""
    prereqs: str = ""
    capacity: Optional[int] = None
    booked_names: List[str] = Field(default_factory=list)
    booking_count: Optional[int] = None
    extra: Dict[str, str] = Field(default_factory=dict)

    def has_capacity_booking(self) -> bool:
        return bool(self.capacity and self.capacity > 0)


class CapacityStateOut(BaseModel):
    session_id: str
    capacity: Optional[int] = None
    booking_count: int
    spots_left: Optional[int] = None
    is_full: bool
    is_booked_by_this_device: bool
    booked_names: List[str] = Field(default_factory=list)


class SessionView(BaseModel):
    session: Session
    booking: Optional[CapacityStateOut] = None
