"""
Schedules API Router
Endpoints for due-today evaluation
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_profile_id, services
from api.schemas.schedule import (
    RuleEvaluationRequest,
    RuleEvaluation,
    DueItem,
    DueItemList,
)
from api.schemas.event import OccurrenceList, OccurrenceResponse


router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.post("/evaluate", response_model=RuleEvaluation)
async def evaluate_rule(payload: RuleEvaluationRequest):
    """
    Evaluate a recurrence rule for one day
    """
    schedule_service = services.get_schedule_service()

    result = await schedule_service.evaluate(payload.rule, payload.date)

    return RuleEvaluation(**result)


@router.get("/{profile_id}/due", response_model=DueItemList)
async def get_due_items(
    profile_id: int = Depends(get_current_profile_id),
    target_date: Optional[date] = Query(None),
    db: Session = Depends(get_db)
):
    """
    Get the items due on a day with the status of their occurrence
    """
    schedule_service = services.get_schedule_service()

    result = await schedule_service.get_due_items(
        profile_id=profile_id,
        target_date=target_date,
        db=db
    )

    return DueItemList(
        profile_id=result["profile_id"],
        date=result["date"],
        items=[DueItem(**i) for i in result["items"]],
        total=result["total"]
    )


@router.post(
    "/{profile_id}/materialize",
    response_model=OccurrenceList,
    status_code=status.HTTP_201_CREATED
)
async def materialize_day(
    profile_id: int = Depends(get_current_profile_id),
    target_date: Optional[date] = Query(None),
    db: Session = Depends(get_db)
):
    """
    Create the ledger rows of every item due on a day
    """
    schedule_service = services.get_schedule_service()

    events = await schedule_service.materialize_day(
        profile_id=profile_id,
        target_date=target_date,
        db=db
    )

    return OccurrenceList(
        profile_id=profile_id,
        events=[OccurrenceResponse.model_validate(e) for e in events],
        total=len(events)
    )
