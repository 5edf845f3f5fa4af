"""
Ledger Service
Occurrence records (historico_eventos) and their status state machine
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Union
from datetime import datetime, date, time, timedelta
from zoneinfo import ZoneInfo
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from config import engine_config, settings
from database import get_db_context
from exceptions import DataAccessError, InvalidTransition, NotFound, ValidationError
import models
from models import EventStatus, ItemType
from tools.clock import get_zone, local_day_bounds, local_range_bounds, to_utc_naive, utc_now


logger = logging.getLogger(__name__)


# Allowed status changes; MISSED is terminal
ALLOWED_TRANSITIONS: Dict[EventStatus, FrozenSet[EventStatus]] = {
    EventStatus.PENDING: frozenset({EventStatus.CONFIRMED, EventStatus.LATE, EventStatus.MISSED}),
    EventStatus.LATE: frozenset({EventStatus.CONFIRMED, EventStatus.MISSED}),
    EventStatus.CONFIRMED: frozenset({EventStatus.PENDING}),
    EventStatus.MISSED: frozenset(),
}

_UTC = ZoneInfo("UTC")


def coerce_status(value: Union[str, EventStatus]) -> EventStatus:
    """Parse a status value, raising ValidationError for unknown ones"""
    if isinstance(value, EventStatus):
        return value
    try:
        return EventStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown occurrence status: {value!r}")


def normalize_item_type(value: Union[str, ItemType]) -> str:
    raw = value.value if isinstance(value, ItemType) else str(value or "")
    raw = raw.strip().lower()
    if not raw:
        raise ValidationError("item_type is required")
    return raw


def can_transition(current: EventStatus, requested: EventStatus) -> bool:
    return requested == current or requested in ALLOWED_TRANSITIONS[current]


def effective_status(
    event: models.OccurrenceEvent,
    now: Optional[datetime] = None,
    grace_minutes: Optional[int] = None
) -> str:
    """
    Status to display for an occurrence.

    A pending occurrence whose due instant (plus the grace period) has passed
    shows as late. Nothing is written; the stored status is unchanged.
    """
    if event.status != EventStatus.PENDING.value:
        return event.status
    now = now or utc_now()
    if grace_minutes is None:
        grace_minutes = settings.LATE_GRACE_MINUTES
    if event.scheduled_at + timedelta(minutes=grace_minutes) < now:
        return EventStatus.LATE.value
    return event.status


class LedgerService:
    """
    Service for occurrence records

    Public methods are async and accept an optional session, like the other
    services; the ``_``-prefixed helpers take a session and are shared with
    the schedule and analytics services.
    """

    # ==================== HELPERS ====================

    def _profile_zone(self, session: Session, profile_id: int) -> ZoneInfo:
        try:
            profile = session.query(models.Profile).filter(
                models.Profile.id == profile_id
            ).first()
        except SQLAlchemyError as e:
            raise DataAccessError(f"Could not load profile {profile_id}: {e}") from e
        if not profile:
            raise NotFound(f"Profile {profile_id} not found")
        return get_zone(profile.timezone)

    def _key_filter(self, profile_id: int, item_type: str, item_id: int, occurrence_date: date):
        return and_(
            models.OccurrenceEvent.profile_id == profile_id,
            models.OccurrenceEvent.item_type == item_type,
            models.OccurrenceEvent.item_id == item_id,
            models.OccurrenceEvent.occurrence_date == occurrence_date,
        )

    def _insert_if_absent(self, session: Session, values: dict) -> bool:
        """
        Single-statement insert guarded by the per-day unique key.

        Returns True when a row was written, False when one already existed.
        """
        table = models.OccurrenceEvent.__table__
        dialect = session.get_bind().dialect.name

        if dialect in ("sqlite", "postgresql"):
            if dialect == "sqlite":
                from sqlalchemy.dialects.sqlite import insert
            else:
                from sqlalchemy.dialects.postgresql import insert
            stmt = insert(table).values(**values).on_conflict_do_nothing(
                index_elements=["profile_id", "item_type", "item_id", "occurrence_date"]
            )
            result = session.execute(stmt)
            return bool(result.rowcount)

        # Other backends: let the unique constraint reject the duplicate
        try:
            with session.begin_nested():
                session.execute(table.insert().values(**values))
            return True
        except IntegrityError:
            return False

    # ==================== SESSION-LEVEL OPERATIONS ====================

    def _get_or_create(
        self,
        session: Session,
        profile_id: int,
        item_type: Union[str, ItemType],
        item_id: int,
        occurrence_date: date,
        scheduled_at: Optional[datetime] = None
    ) -> models.OccurrenceEvent:
        item_type = normalize_item_type(item_type)
        zone = self._profile_zone(session, profile_id)

        # Naive values are wall time in the profile's timezone
        local_due = scheduled_at or datetime.combine(occurrence_date, time.min)
        due_date = local_due.astimezone(zone).date() if local_due.tzinfo else local_due.date()
        if due_date != occurrence_date:
            raise ValidationError(
                f"scheduled_at falls on {due_date.isoformat()}, "
                f"not on occurrence day {occurrence_date.isoformat()}"
            )
        now = utc_now()

        try:
            created = self._insert_if_absent(session, {
                "profile_id": profile_id,
                "item_type": item_type,
                "item_id": item_id,
                "occurrence_date": occurrence_date,
                "scheduled_at": to_utc_naive(local_due, zone),
                "status": EventStatus.PENDING.value,
                "confirmed_at": None,
                "created_at": now,
                "updated_at": now,
            })
            session.commit()

            event = session.query(models.OccurrenceEvent).filter(
                self._key_filter(profile_id, item_type, item_id, occurrence_date)
            ).one()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to get or create occurrence for profile {profile_id}: {e}")
            raise DataAccessError(f"Could not record occurrence: {e}") from e

        if created:
            logger.info(
                f"Created occurrence {event.id} for profile {profile_id}, "
                f"{item_type} {item_id} on {occurrence_date.isoformat()}"
            )
        return event

    def _consume_stock(self, session: Session, event: models.OccurrenceEvent) -> None:
        """Take one unit out of a medication's stock when a dose is confirmed"""
        if event.item_type != ItemType.MEDICATION.value:
            return
        item = session.query(models.ScheduledItem).filter(
            and_(
                models.ScheduledItem.id == event.item_id,
                models.ScheduledItem.profile_id == event.profile_id
            )
        ).first()
        if item and item.stock_quantity is not None and item.stock_quantity > 0:
            item.stock_quantity -= 1
            session.add(item)

    def _set_status(
        self,
        session: Session,
        event_id: int,
        new_status: Union[str, EventStatus],
        confirmed_at: Optional[datetime] = None
    ) -> models.OccurrenceEvent:
        requested = coerce_status(new_status)

        try:
            event = session.query(models.OccurrenceEvent).filter(
                models.OccurrenceEvent.id == event_id
            ).first()
        except SQLAlchemyError as e:
            raise DataAccessError(f"Could not load occurrence {event_id}: {e}") from e

        if not event:
            raise NotFound(f"Occurrence {event_id} not found")

        try:
            current = EventStatus(event.status)
        except ValueError:
            # Rows imported with a foreign status cannot be moved by the engine
            raise InvalidTransition(event.status, requested.value)

        if requested == current:
            return event
        if not can_transition(current, requested):
            raise InvalidTransition(current.value, requested.value)

        event.status = requested.value
        if requested == EventStatus.CONFIRMED:
            stamp = confirmed_at or utc_now()
            event.confirmed_at = to_utc_naive(stamp, _UTC)
            self._consume_stock(session, event)
        elif requested == EventStatus.PENDING:
            event.confirmed_at = None

        try:
            session.add(event)
            session.commit()
            session.refresh(event)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to update occurrence {event_id}: {e}")
            raise DataAccessError(f"Could not update occurrence {event_id}: {e}") from e

        logger.info(f"Occurrence {event_id}: {current.value} -> {requested.value}")
        return event

    def _list_for_day(
        self,
        session: Session,
        profile_id: int,
        target_date: date
    ) -> List[models.OccurrenceEvent]:
        zone = self._profile_zone(session, profile_id)
        start, end = local_day_bounds(target_date, zone)
        try:
            return session.query(models.OccurrenceEvent).filter(
                and_(
                    models.OccurrenceEvent.profile_id == profile_id,
                    models.OccurrenceEvent.scheduled_at >= start,
                    models.OccurrenceEvent.scheduled_at < end
                )
            ).order_by(
                models.OccurrenceEvent.scheduled_at,
                models.OccurrenceEvent.id
            ).all()
        except SQLAlchemyError as e:
            raise DataAccessError(f"Could not list occurrences: {e}") from e

    def _list_for_range(
        self,
        session: Session,
        profile_ids: Union[int, Iterable[int]],
        start_date: date,
        end_date: date,
        item_type: Optional[Union[str, ItemType]] = None
    ) -> List[models.OccurrenceEvent]:
        if start_date > end_date:
            raise ValidationError(
                f"start_date {start_date.isoformat()} is after end_date {end_date.isoformat()}"
            )
        if isinstance(profile_ids, int):
            profile_ids = [profile_ids]

        # Each profile is windowed on its own local calendar
        windows = []
        for profile_id in dict.fromkeys(profile_ids):
            zone = self._profile_zone(session, profile_id)
            start, end = local_range_bounds(start_date, end_date, zone)
            windows.append(and_(
                models.OccurrenceEvent.profile_id == profile_id,
                models.OccurrenceEvent.scheduled_at >= start,
                models.OccurrenceEvent.scheduled_at < end
            ))
        if not windows:
            return []

        try:
            query = session.query(models.OccurrenceEvent).filter(or_(*windows))
            if item_type:
                item_type = normalize_item_type(item_type)
                if item_type == engine_config.OTHER_ITEM_TYPE:
                    # Same bucket as the report: anything but medications and routines
                    query = query.filter(models.OccurrenceEvent.item_type.notin_(
                        [ItemType.MEDICATION.value, ItemType.ROUTINE.value]
                    ))
                else:
                    query = query.filter(models.OccurrenceEvent.item_type == item_type)
            return query.order_by(
                models.OccurrenceEvent.scheduled_at,
                models.OccurrenceEvent.id
            ).all()
        except SQLAlchemyError as e:
            raise DataAccessError(f"Could not list occurrences: {e}") from e

    # ==================== PUBLIC API ====================

    async def get_or_create(
        self,
        profile_id: int,
        item_type: Union[str, ItemType],
        item_id: int,
        occurrence_date: date,
        scheduled_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> models.OccurrenceEvent:
        """
        Return the occurrence for (profile, item, day), creating it if absent

        Args:
            profile_id: Profile ID
            item_type: medicamento, rotina, ...
            item_id: Item ID
            occurrence_date: Local calendar day of the occurrence
            scheduled_at: Due instant; naive values are profile-local wall
                time. Ignored when the row already exists.
            db: Database session

        Returns:
            The single OccurrenceEvent of that key
        """
        def _run(session: Session) -> models.OccurrenceEvent:
            return self._get_or_create(
                session, profile_id, item_type, item_id, occurrence_date, scheduled_at
            )

        if db:
            return _run(db)

        with get_db_context() as session:
            return _run(session)

    async def set_status(
        self,
        event_id: int,
        new_status: Union[str, EventStatus],
        confirmed_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> models.OccurrenceEvent:
        """
        Move an occurrence to a new status

        Raises:
            NotFound: no occurrence with that id
            InvalidTransition: the change is not allowed from the current status
        """
        def _run(session: Session) -> models.OccurrenceEvent:
            return self._set_status(session, event_id, new_status, confirmed_at)

        if db:
            return _run(db)

        with get_db_context() as session:
            return _run(session)

    async def get_event(
        self,
        event_id: int,
        db: Optional[Session] = None
    ) -> models.OccurrenceEvent:
        """Get an occurrence by ID"""
        def _get(session: Session) -> models.OccurrenceEvent:
            event = session.query(models.OccurrenceEvent).filter(
                models.OccurrenceEvent.id == event_id
            ).first()
            if not event:
                raise NotFound(f"Occurrence {event_id} not found")
            return event

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def list_for_day(
        self,
        profile_id: int,
        target_date: date,
        db: Optional[Session] = None
    ) -> List[models.OccurrenceEvent]:
        """Occurrences due within the profile's local calendar day"""
        def _run(session: Session) -> List[models.OccurrenceEvent]:
            return self._list_for_day(session, profile_id, target_date)

        if db:
            return _run(db)

        with get_db_context() as session:
            return _run(session)

    async def list_for_range(
        self,
        profile_ids: Union[int, Iterable[int]],
        start_date: date,
        end_date: date,
        item_type: Optional[Union[str, ItemType]] = None,
        db: Optional[Session] = None
    ) -> List[models.OccurrenceEvent]:
        """Occurrences of one or more profiles in an inclusive day range, oldest first"""
        def _run(session: Session) -> List[models.OccurrenceEvent]:
            return self._list_for_range(session, profile_ids, start_date, end_date, item_type)

        if db:
            return _run(db)

        with get_db_context() as session:
            return _run(session)


# Singleton instance
ledger_service = LedgerService()
