#!/usr/bin/env python
"""
Seed Data
Script to seed the database with a demo profile, its items and a ledger history
"""

import sys
import os
import argparse
import logging
import random
from datetime import datetime, timedelta, date
from typing import List

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import SessionLocal, engine, Base
from models import Profile, ScheduledItem, OccurrenceEvent, EventStatus, ItemType
from services.ledger_service import ledger_service
from services.schedule_service import item_due_times
from tools.clock import get_zone, local_today, parse_hhmm, to_utc_naive


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


DEMO_PROFILE_NAME = "Maria Demo"


def create_tables():
    """Create all database tables"""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created successfully")


def seed_demo_profile(db, days: int) -> Profile:
    """Create the demo profile, backdated so its history fits the window"""
    existing = db.query(Profile).filter(Profile.name == DEMO_PROFILE_NAME).first()
    if existing:
        logger.info("Demo profile already exists")
        return existing

    profile = Profile(
        name=DEMO_PROFILE_NAME,
        timezone="America/Sao_Paulo",
        is_active=True,
        created_at=datetime.utcnow() - timedelta(days=days + 1)
    )
    db.add(profile)
    db.flush()

    logger.info(f"Created profile: {profile.name} (ID: {profile.id})")
    return profile


def seed_items(db, profile: Profile, days: int) -> List[ScheduledItem]:
    """Add one item per recurrence kind"""
    created_at = datetime.utcnow() - timedelta(days=days + 1)

    items_data = [
        {
            "item_type": ItemType.MEDICATION.value,
            "title": "Losartana",
            "dosage": "50mg",
            "rule": {"kind": "daily", "times": ["08:00", "20:00"]},
            "stock_quantity": 60,
        },
        {
            "item_type": ItemType.MEDICATION.value,
            "title": "Dipirona",
            "dosage": "500mg",
            "rule": {"kind": "interval", "every_hours": 8, "anchor": "06:00"},
            "stock_quantity": 30,
        },
        {
            "item_type": ItemType.MEDICATION.value,
            "title": "Vitamina D",
            "dosage": "2000UI",
            # Legacy dashboard format; reference day defaults to the creation day
            "rule": {"tipo": "dias_alternados", "intervalo_dias": 2, "horario": "09:00"},
            "stock_quantity": 15,
        },
        {
            "item_type": ItemType.ROUTINE.value,
            "title": "Caminhada",
            "dosage": None,
            "rule": {"kind": "weekly", "days_of_week": [1, 3, 5], "time": "17:30"},
            "stock_quantity": None,
        },
    ]

    items = []
    for data in items_data:
        item = ScheduledItem(profile_id=profile.id, created_at=created_at, active=True, **data)
        db.add(item)
        db.flush()
        items.append(item)
        logger.info(f"  Added: {item.title} ({item.item_type})")

    return items


def seed_history(db, profile: Profile, items: List[ScheduledItem], days: int, adherence: float):
    """Write one ledger row per due item and past day, confirmed or missed at random"""
    random.seed(42)  # For reproducibility

    zone = get_zone(profile.timezone)
    today = local_today(zone)
    records = 0

    for day_offset in range(days, 0, -1):
        day = today - timedelta(days=day_offset)

        for item in items:
            times = item_due_times(item, day, zone)
            if not times:
                continue

            local_due = datetime.combine(day, parse_hhmm(times[0]))
            event = ledger_service._get_or_create(
                db,
                profile_id=profile.id,
                item_type=item.item_type,
                item_id=item.id,
                occurrence_date=day,
                scheduled_at=local_due
            )
            records += 1

            if event.status != EventStatus.PENDING.value:
                continue

            if random.random() < adherence:
                delay = random.randint(-10, 45)
                confirmed_at = to_utc_naive(local_due + timedelta(minutes=delay), zone)
                ledger_service._set_status(db, event.id, EventStatus.CONFIRMED, confirmed_at)
            else:
                ledger_service._set_status(db, event.id, EventStatus.MISSED)

    logger.info(f"Seeded {records} occurrences over {days} days")


def seed_all(days: int = 30, adherence: float = 0.85, clear_existing: bool = False):
    """Run all seed operations"""

    print("\n" + "=" * 60)
    print("Database Seeding")
    print("=" * 60)

    create_tables()

    db = SessionLocal()

    try:
        if clear_existing:
            logger.info("Clearing existing data...")
            db.query(OccurrenceEvent).delete()
            db.query(ScheduledItem).delete()
            db.query(Profile).delete()
            db.commit()
            logger.info("Existing data cleared")

        profile = seed_demo_profile(db, days)
        db.commit()

        items = seed_items(db, profile, days) if not profile.items else list(profile.items)
        db.commit()

        seed_history(db, profile, items, days, adherence)

        confirmed = db.query(OccurrenceEvent).filter(
            OccurrenceEvent.profile_id == profile.id,
            OccurrenceEvent.status == EventStatus.CONFIRMED.value
        ).count()
        total = db.query(OccurrenceEvent).filter(
            OccurrenceEvent.profile_id == profile.id
        ).count()

        print("\n" + "=" * 60)
        print("Seeding Complete!")
        print("=" * 60)
        print(f"  Items: {len(items)}")
        print(f"  Occurrences: {total}")
        if total > 0:
            print(f"\nDemo Profile Adherence Rate: {(confirmed / total) * 100:.1f}%")
        print(f"\nDemo Profile ID: {profile.id}")
        print(f"Period: {(date.today() - timedelta(days=days)).isoformat()} to {date.today().isoformat()}")

    except Exception as e:
        db.rollback()
        logger.error(f"Error during seeding: {e}")
        raise
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(
        description="Seed the database with a demo profile and ledger history"
    )
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Number of past days of history to generate"
    )
    parser.add_argument(
        "--adherence",
        type=float,
        default=0.85,
        help="Probability that a due occurrence is confirmed"
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear existing data before seeding"
    )

    args = parser.parse_args()

    seed_all(days=args.days, adherence=args.adherence, clear_existing=args.clear)


if __name__ == "__main__":
    main()
