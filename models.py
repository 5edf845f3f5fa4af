"""
Database Models
SQLAlchemy ORM models for CareLedger
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, ForeignKey, Index, UniqueConstraint, JSON
from sqlalchemy.orm import relationship, validates
from datetime import datetime, date
from enum import Enum as PyEnum

from database import Base
from config import TableNames
from tools.recurrence import AlternateDaysRule, rule_from_dict, rule_to_dict


# ==================== ENUMS ====================

class ItemType(str, PyEnum):
    """Kinds of schedulable items"""
    MEDICATION = "medicamento"
    ROUTINE = "rotina"
    APPOINTMENT = "compromisso"


class EventStatus(str, PyEnum):
    """Lifecycle status of a single occurrence"""
    PENDING = "pendente"
    CONFIRMED = "confirmado"
    LATE = "atrasado"
    MISSED = "perdido"


# ==================== MODELS ====================

class Profile(Base):
    """A cared-for person; owns items and ledger rows"""
    __tablename__ = TableNames.PROFILES

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)

    # Local calendar used for every day-granular operation
    timezone = Column(String(50), default="America/Sao_Paulo", nullable=False)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    items = relationship("ScheduledItem", back_populates="profile", cascade="all, delete-orphan")
    events = relationship("OccurrenceEvent", back_populates="profile")


class ScheduledItem(Base):
    """Medication or routine with its recurrence rule"""
    __tablename__ = TableNames.SCHEDULED_ITEMS

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey(f"{TableNames.PROFILES}.id"), nullable=False)

    item_type = Column(String(30), nullable=False, default=ItemType.MEDICATION.value)
    title = Column(String(255), nullable=False)
    dosage = Column(String(100))

    # Canonical (or legacy "frequencia") recurrence JSON
    rule = Column(JSON, nullable=False)

    # Remaining units; decremented when a dose is confirmed
    stock_quantity = Column(Integer)

    active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    profile = relationship("Profile", back_populates="items")

    __table_args__ = (
        Index("ix_scheduled_items_profile_active", "profile_id", "active"),
    )

    @validates("rule")
    def validate_rule(self, key, value):
        """Reject malformed rules before they reach the table; store the canonical form"""
        rule = rule_from_dict(value, default_reference_date=date.today())
        # Without a reference day, alternate-day rules count from the item's start day
        if isinstance(rule, AlternateDaysRule) and not (
            value.get("reference_date") or value.get("data_referencia")
        ):
            return value
        return rule_to_dict(rule)


class OccurrenceEvent(Base):
    """One occurrence of an item on one local calendar day"""
    __tablename__ = TableNames.OCCURRENCE_EVENTS

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey(f"{TableNames.PROFILES}.id"), nullable=False)

    # Identifies the scheduled item; kept as plain values so history survives item deletion
    item_type = Column(String(30), nullable=False)
    item_id = Column(Integer, nullable=False)

    # Local calendar day of the occurrence
    occurrence_date = Column(Date, nullable=False)

    # Timing (naive UTC)
    scheduled_at = Column(DateTime, nullable=False)
    confirmed_at = Column(DateTime)

    # Raw status string; the engine writes EventStatus values
    status = Column(String(30), nullable=False, default=EventStatus.PENDING.value)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    profile = relationship("Profile", back_populates="events")

    __table_args__ = (
        UniqueConstraint(
            "profile_id", "item_type", "item_id", "occurrence_date",
            name="uq_occurrence_per_day"
        ),
        Index("ix_historico_eventos_profile_scheduled", "profile_id", "scheduled_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "profile_id": self.profile_id,
            "item_type": self.item_type,
            "item_id": self.item_id,
            "occurrence_date": self.occurrence_date.isoformat() if self.occurrence_date else None,
            "scheduled_at": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "status": self.status,
            "confirmed_at": self.confirmed_at.isoformat() if self.confirmed_at else None,
        }
