from __future__ import annotations

from fastapi import APIRouter, Depends

from mac_schedule.schemas import ParticipationOut
from mac_schedule.stores.participant_store import (
    ParticipantTracker,
    get_participant_tracker,
    has_participant_tracking,
)


router = APIRouter(prefix="/participants", tags=["participants"])


def _participation(tracker: ParticipantTracker, session_title: str) -> ParticipationOut:
    return ParticipationOut(
        session_title=session_title,
        tracked=has_participant_tracking(session_title),
        count=tracker.count(session_title),
        is_participating=tracker.is_participating(session_title),
    )


@router.get("/{session_title}", response_model=ParticipationOut)
def get_participation(
    session_title: str,
    tracker: ParticipantTracker = Depends(get_participant_tracker),
) -> ParticipationOut:
    return _participation(tracker, session_title)


@router.post("/{session_title}/toggle", response_model=ParticipationOut)
def toggle_participation(
    session_title: str,
    tracker: ParticipantTracker = Depends(get_participant_tracker),
) -> ParticipationOut:
    tracker.toggle(session_title)
    return _participation(tracker, session_title)
