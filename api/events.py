"""
Events API Router
Endpoints for the occurrence ledger
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_profile_id, services
from api.schemas.event import (
    OccurrenceCreate,
    StatusUpdate,
    OccurrenceResponse,
    OccurrenceList,
)


router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=OccurrenceResponse, status_code=status.HTTP_200_OK)
async def get_or_create_event(
    payload: OccurrenceCreate,
    db: Session = Depends(get_db)
):
    """
    Get the occurrence of an item on a day, creating it when absent
    """
    ledger_service = services.get_ledger_service()

    event = await ledger_service.get_or_create(
        profile_id=payload.profile_id,
        item_type=payload.item_type,
        item_id=payload.item_id,
        occurrence_date=payload.occurrence_date,
        scheduled_at=payload.scheduled_at,
        db=db
    )

    return event


@router.patch("/{event_id}/status", response_model=OccurrenceResponse)
async def set_event_status(
    event_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db)
):
    """
    Move an occurrence to a new status
    """
    ledger_service = services.get_ledger_service()

    event = await ledger_service.set_status(
        event_id=event_id,
        new_status=payload.status.value,
        confirmed_at=payload.confirmed_at,
        db=db
    )

    return event


@router.get("/{profile_id}/day", response_model=OccurrenceList)
async def list_events_for_day(
    target_date: date,
    profile_id: int = Depends(get_current_profile_id),
    db: Session = Depends(get_db)
):
    """
    Get the occurrences of a local calendar day
    """
    ledger_service = services.get_ledger_service()

    events = await ledger_service.list_for_day(profile_id, target_date, db=db)

    return OccurrenceList(
        profile_id=profile_id,
        events=[OccurrenceResponse.model_validate(e) for e in events],
        total=len(events)
    )


@router.get("/{profile_id}/range", response_model=OccurrenceList)
async def list_events_for_range(
    start_date: date,
    end_date: date,
    item_type: Optional[str] = Query(None),
    profile_id: int = Depends(get_current_profile_id),
    db: Session = Depends(get_db)
):
    """
    Get the occurrences of an inclusive day range
    """
    ledger_service = services.get_ledger_service()

    events = await ledger_service.list_for_range(
        profile_id, start_date, end_date, item_type=item_type, db=db
    )

    return OccurrenceList(
        profile_id=profile_id,
        events=[OccurrenceResponse.model_validate(e) for e in events],
        total=len(events)
    )
