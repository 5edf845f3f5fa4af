"""
Schedule Service
Decides which of a profile's medications and routines are due on a day
"""

import logging
from typing import Dict, List, Optional, Any
from datetime import datetime, date, timedelta
from zoneinfo import ZoneInfo
from sqlalchemy.orm import Session
from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from database import get_db_context
from exceptions import DataAccessError, NotFound
import models
from services.ledger_service import ledger_service, effective_status
from tools.clock import local_today, parse_hhmm, to_local, to_utc_naive, utc_now
from tools.recurrence import (
    RecurrenceRule,
    due_times_on,
    evaluate_due_today,
    next_due_after,
    rule_from_dict,
)


logger = logging.getLogger(__name__)


def item_start_date(item: models.ScheduledItem, zone: ZoneInfo) -> Optional[date]:
    """Local calendar day the item was created on"""
    if item.created_at is None:
        return None
    return to_local(item.created_at, zone).date()


def item_rule(item: models.ScheduledItem, zone: ZoneInfo) -> RecurrenceRule:
    """Parse an item's stored rule; alternate-day rules default to the start day"""
    return rule_from_dict(item.rule, default_reference_date=item_start_date(item, zone))


def item_due_times(item: models.ScheduledItem, target_date: date, zone: ZoneInfo) -> List[str]:
    """Due times of an item on a day, empty before the item's start day"""
    start = item_start_date(item, zone)
    if start and target_date < start:
        return []
    return due_times_on(item_rule(item, zone), target_date)


def is_item_due_on(item: models.ScheduledItem, target_date: date, zone: ZoneInfo) -> bool:
    return bool(item_due_times(item, target_date, zone))


class ScheduleService:
    """
    Service for due-today evaluation
    """

    async def evaluate(
        self,
        rule_data: Dict[str, Any],
        target_date: date
    ) -> Dict[str, Any]:
        """
        Evaluate a rule in its JSON form for one day

        Raises:
            ValidationError: the rule is malformed
        """
        rule = rule_from_dict(rule_data)
        return evaluate_due_today(rule, target_date)

    def _active_items(self, session: Session, profile_id: int) -> List[models.ScheduledItem]:
        try:
            return session.query(models.ScheduledItem).filter(
                and_(
                    models.ScheduledItem.profile_id == profile_id,
                    models.ScheduledItem.active == True  # noqa: E712
                )
            ).order_by(models.ScheduledItem.id).all()
        except SQLAlchemyError as e:
            raise DataAccessError(f"Could not load items of profile {profile_id}: {e}") from e

    async def get_due_items(
        self,
        profile_id: int,
        target_date: Optional[date] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """
        Items due on a day, cross-referenced with that day's ledger rows

        Args:
            profile_id: Profile ID
            target_date: Local calendar day (default: today in the profile's timezone)
            now: Reference instant for late display (naive UTC, default: now)
            db: Database session

        Returns:
            The resolved day and one entry per due item, ordered by first due time
        """
        def _get(session: Session) -> Dict[str, Any]:
            zone = ledger_service._profile_zone(session, profile_id)
            target = target_date or local_today(zone)
            reference = now or utc_now()

            events = {
                (e.item_type, e.item_id): e
                for e in ledger_service._list_for_day(session, profile_id, target)
            }

            due_items = []
            for item in self._active_items(session, profile_id):
                times = item_due_times(item, target, zone)
                if not times:
                    continue

                first_due = datetime.combine(target, parse_hhmm(times[0]))
                event = events.get((item.item_type, item.id))
                if event:
                    status = effective_status(event, now=reference)
                else:
                    # No row yet: judge lateness on the first due time
                    status = models.EventStatus.PENDING.value
                    grace = timedelta(minutes=settings.LATE_GRACE_MINUTES)
                    if to_utc_naive(first_due, zone) + grace < reference:
                        status = models.EventStatus.LATE.value

                due_items.append({
                    "item_id": item.id,
                    "item_type": item.item_type,
                    "title": item.title,
                    "dosage": item.dosage,
                    "times": times,
                    "scheduled_at": first_due.isoformat(),
                    "event_id": event.id if event else None,
                    "status": status,
                    "confirmed_at": event.confirmed_at.isoformat() if event and event.confirmed_at else None,
                })

            due_items.sort(key=lambda d: (d["times"][0], d["title"]))
            return {
                "profile_id": profile_id,
                "date": target,
                "items": due_items,
                "total": len(due_items),
            }

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def materialize_day(
        self,
        profile_id: int,
        target_date: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[models.OccurrenceEvent]:
        """
        Get-or-create the ledger row of every item due on a day

        The row's due instant is the item's first due time of that day.
        """
        def _run(session: Session) -> List[models.OccurrenceEvent]:
            zone = ledger_service._profile_zone(session, profile_id)
            target = target_date or local_today(zone)

            events = []
            for item in self._active_items(session, profile_id):
                times = item_due_times(item, target, zone)
                if not times:
                    continue
                events.append(ledger_service._get_or_create(
                    session,
                    profile_id=profile_id,
                    item_type=item.item_type,
                    item_id=item.id,
                    occurrence_date=target,
                    scheduled_at=datetime.combine(target, parse_hhmm(times[0])),
                ))

            logger.info(
                f"Materialized {len(events)} occurrences for profile {profile_id} "
                f"on {target.isoformat()}"
            )
            return events

        if db:
            return _run(db)

        with get_db_context() as session:
            return _run(session)

    async def get_next_due(
        self,
        item_id: int,
        after: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Optional[datetime]:
        """
        Next due instant of an item, as profile-local wall time

        Args:
            item_id: Scheduled item ID
            after: Naive local wall time to search from (default: now)
        """
        def _get(session: Session) -> Optional[datetime]:
            item = session.query(models.ScheduledItem).filter(
                models.ScheduledItem.id == item_id
            ).first()
            if not item:
                raise NotFound(f"Item {item_id} not found")

            zone = ledger_service._profile_zone(session, item.profile_id)
            moment = after or datetime.now(zone).replace(tzinfo=None)

            start = item_start_date(item, zone)
            if start and moment.date() < start:
                # just before midnight so a 00:00 dose on the start day counts
                moment = datetime.combine(start, datetime.min.time()) - timedelta(seconds=1)
            return next_due_after(item_rule(item, zone), moment)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)


# Singleton instance
schedule_service = ScheduleService()
