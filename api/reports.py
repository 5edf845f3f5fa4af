"""
Reports API Router
Endpoints for adherence reporting
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_profile_id, services
from api.schemas.report import (
    AdherenceReport,
    HistoryEntry,
    HistoryResponse,
)


router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/{profile_id}/adherence", response_model=AdherenceReport)
async def get_adherence_report(
    start_date: date,
    end_date: date,
    item_type: Optional[str] = Query(None),
    profile_id: int = Depends(get_current_profile_id),
    db: Session = Depends(get_db)
):
    """
    Adherence KPIs and breakdowns for an inclusive day range
    """
    analytics_service = services.get_analytics_service()

    report = await analytics_service.build_report(
        profile_id=profile_id,
        start_date=start_date,
        end_date=end_date,
        item_type=item_type,
        db=db
    )

    return AdherenceReport(**report)


@router.get("/{profile_id}/history", response_model=HistoryResponse)
async def get_history(
    start_date: date,
    end_date: date,
    profile_id: int = Depends(get_current_profile_id),
    db: Session = Depends(get_db)
):
    """
    Ledger rows of an inclusive day range
    """
    analytics_service = services.get_analytics_service()

    entries = await analytics_service.list_history(
        profile_id=profile_id,
        start_date=start_date,
        end_date=end_date,
        db=db
    )

    return HistoryResponse(
        profile_id=profile_id,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        entries=[HistoryEntry(**e) for e in entries],
        total_entries=len(entries)
    )
