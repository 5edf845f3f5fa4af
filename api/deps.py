"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

# Single session dependency shared by every router
from database import get_db


async def get_current_profile_id(
    profile_id: int,
    db: Session = Depends(get_db)
) -> int:
    """
    Validate profile exists and return profile ID

    Ownership and family links are checked upstream; this only rejects
    unknown or inactive profiles.
    """
    from models import Profile

    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Profile {profile_id} not found"
        )

    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Profile {profile_id} is not active"
        )

    return profile_id


class ServiceDependency:
    """
    Dependency injection for services
    """

    @staticmethod
    def get_ledger_service():
        from services.ledger_service import ledger_service
        return ledger_service

    @staticmethod
    def get_schedule_service():
        from services.schedule_service import schedule_service
        return schedule_service

    @staticmethod
    def get_analytics_service():
        from services.analytics_service import analytics_service
        return analytics_service


# Service dependency instances
services = ServiceDependency()
