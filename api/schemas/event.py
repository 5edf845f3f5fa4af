"""
Event Schemas
Pydantic models for ledger requests and responses
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class EventStatusEnum(str, Enum):
    """Occurrence status values"""
    PENDING = "pendente"
    CONFIRMED = "confirmado"
    LATE = "atrasado"
    MISSED = "perdido"


# ==================== REQUEST SCHEMAS ====================

class OccurrenceCreate(BaseModel):
    """Schema for get-or-create of an occurrence"""
    profile_id: int
    item_type: str = Field(..., min_length=1, max_length=30)
    item_id: int
    occurrence_date: date
    scheduled_at: Optional[datetime] = Field(
        None,
        description="Due instant; values without offset are profile-local wall time"
    )


class StatusUpdate(BaseModel):
    """Schema for a status transition"""
    status: EventStatusEnum
    confirmed_at: Optional[datetime] = None


# ==================== RESPONSE SCHEMAS ====================

class OccurrenceResponse(BaseModel):
    """Schema for occurrence response"""
    id: int
    profile_id: int
    item_type: str
    item_id: int
    occurrence_date: date
    scheduled_at: datetime
    status: str
    confirmed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OccurrenceList(BaseModel):
    """List of occurrences"""
    profile_id: int
    events: List[OccurrenceResponse]
    total: int
