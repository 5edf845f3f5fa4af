"""
Services Module
Business logic layer for the CareLedger engine
"""

from services.ledger_service import LedgerService, ledger_service
from services.schedule_service import ScheduleService, schedule_service
from services.analytics_service import AnalyticsService, analytics_service


__all__ = [
    # Service classes
    "LedgerService",
    "ScheduleService",
    "AnalyticsService",
    # Singleton instances
    "ledger_service",
    "schedule_service",
    "analytics_service",
]
