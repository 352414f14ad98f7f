from .booking import (
    BookingOutcomeOut,
    BookingRequest,
    LocalBookingOut,
    ParticipationOut,
    SlotBookingRequest,
    SlotStateOut,
)
from .session import CapacityStateOut, Session, SessionView

__all__ = [
    "BookingRequest",
    "BookingOutcomeOut",
    "LocalBookingOut",
    "SlotBookingRequest",
    "SlotStateOut",
    "ParticipationOut",
    "Session",
    "SessionView",
    "CapacityStateOut",
]
