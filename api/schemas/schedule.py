"""
Schedule Schemas
Pydantic models for due-today evaluation requests and responses
"""

from typing import Optional, List, Dict, Any
from datetime import date
from pydantic import BaseModel, Field


# ==================== REQUEST SCHEMAS ====================

class RuleEvaluationRequest(BaseModel):
    """A recurrence rule and the day to evaluate it on"""
    rule: Dict[str, Any] = Field(
        ...,
        description="Recurrence rule with a 'kind' (or legacy 'tipo') discriminant"
    )
    date: date


# ==================== RESPONSE SCHEMAS ====================

class RuleEvaluation(BaseModel):
    """Whether a rule is due on a day, and at which times"""
    due: bool
    times: List[str]


class DueItem(BaseModel):
    """An item due on a day, with the status of its occurrence"""
    item_id: int
    item_type: str
    title: str
    dosage: Optional[str] = None
    times: List[str]
    scheduled_at: str
    event_id: Optional[int] = None
    status: str
    confirmed_at: Optional[str] = None


class DueItemList(BaseModel):
    """Due items of a profile for one day"""
    profile_id: int
    date: date
    items: List[DueItem]
    total: int
