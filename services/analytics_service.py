"""
Analytics Service
Adherence KPIs, daily trend, turno and item-type breakdowns over a date range
"""

import logging
from typing import Dict, List, Optional, Any, Iterable, Union
from datetime import date
from collections import defaultdict
from zoneinfo import ZoneInfo
from sqlalchemy.orm import Session

from config import engine_config
from database import get_db_context
import models
from models import ItemType
from services.ledger_service import ledger_service
from tools.clock import to_local


logger = logging.getLogger(__name__)


def percentage(partial: int, total: int) -> float:
    """Share of ``partial`` in ``total`` as a percentage with 2 decimals; 0 when empty"""
    if total == 0:
        return 0
    return round(partial / total * 100, 2)


def classify_status(raw_status: Optional[str]) -> Optional[str]:
    """'success', 'failure' or None for statuses outside both sets"""
    status = (raw_status or "").strip().lower()
    if status in engine_config.SUCCESS_STATUSES:
        return "success"
    if status in engine_config.FAILURE_STATUSES:
        return "failure"
    return None


def turno_for_hour(hour: int) -> str:
    for turno, (start, end) in engine_config.TURNO_BOUNDS.items():
        if start <= hour < end:
            return turno
    return engine_config.TURNO_FALLBACK


def report_item_type(raw_type: Optional[str]) -> str:
    item_type = (raw_type or "").strip().lower()
    if item_type in (ItemType.MEDICATION.value, ItemType.ROUTINE.value):
        return item_type
    return engine_config.OTHER_ITEM_TYPE


def summarize_events(
    events: Iterable[models.OccurrenceEvent],
    zone: ZoneInfo
) -> Dict[str, Any]:
    """
    Reduce ledger rows into the adherence report sections.

    Day and turno buckets use the local calendar of ``zone``. Rows are
    processed oldest first so the daily trend is stable.
    """
    ordered = sorted(events, key=lambda e: (e.scheduled_at, e.id or 0))

    total_events = len(ordered)
    total_confirmed = 0
    total_missed = 0
    punctuality_total = 0.0
    punctuality_samples = 0

    type_stats = {t: {"total": 0, "confirmados": 0} for t in engine_config.REPORT_ITEM_TYPES}
    daily_stats: Dict[date, Dict[str, int]] = defaultdict(lambda: {"total": 0, "confirmados": 0})
    turno_stats = {
        t: {"total": 0, "confirmados": 0, "esquecidos": 0} for t in engine_config.TURNOS
    }

    for event in ordered:
        outcome = classify_status(event.status)
        is_success = outcome == "success"
        is_failure = outcome == "failure"

        if is_success:
            total_confirmed += 1
        elif is_failure:
            total_missed += 1

        bucket = type_stats[report_item_type(event.item_type)]
        bucket["total"] += 1
        if is_success:
            bucket["confirmados"] += 1

        local_due = to_local(event.scheduled_at, zone)

        day = daily_stats[local_due.date()]
        day["total"] += 1
        if is_success:
            day["confirmados"] += 1

        turno = turno_stats[turno_for_hour(local_due.hour)]
        turno["total"] += 1
        if is_success:
            turno["confirmados"] += 1
        elif is_failure:
            turno["esquecidos"] += 1

        if event.confirmed_at is not None:
            delta = event.confirmed_at - event.scheduled_at
            punctuality_total += delta.total_seconds() / 60
            punctuality_samples += 1

    daily_trend = [
        {
            "data": day.isoformat(),
            "total": stats["total"],
            "confirmados": stats["confirmados"],
            "percentual": percentage(stats["confirmados"], stats["total"]),
        }
        for day, stats in sorted(daily_stats.items())
    ]

    by_time_of_day = {
        turno: {**stats, "percentual": percentage(stats["confirmados"], stats["total"])}
        for turno, stats in turno_stats.items()
    }

    by_item_type = {
        item_type: {**stats, "percentual": percentage(stats["confirmados"], stats["total"])}
        for item_type, stats in type_stats.items()
    }

    punctuality = None
    if punctuality_samples:
        punctuality = round(punctuality_total / punctuality_samples, 2)

    return {
        "kpis": {
            "taxa_adesao_total": percentage(total_confirmed, total_events),
            "total_eventos": total_events,
            "total_confirmados": total_confirmed,
            "total_esquecidos": total_missed,
            "taxa_adesao_medicamentos": by_item_type[ItemType.MEDICATION.value]["percentual"],
            "taxa_adesao_rotinas": by_item_type[ItemType.ROUTINE.value]["percentual"],
            "indice_esquecimento": total_missed,
            "pontualidade_media_minutos": punctuality,
        },
        "daily_trend": daily_trend,
        "by_time_of_day": by_time_of_day,
        "by_item_type": by_item_type,
    }


class AnalyticsService:
    """
    Service for adherence reporting
    """

    async def build_report(
        self,
        profile_id: int,
        start_date: date,
        end_date: date,
        item_type: Optional[Union[str, ItemType]] = None,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """
        Adherence report for a profile over an inclusive day range

        Args:
            profile_id: Profile ID
            start_date: First local day of the range
            end_date: Last local day of the range
            item_type: Restrict to one item type
            db: Database session

        Returns:
            Period, KPIs, daily trend, turno and item-type breakdowns
        """
        def _build(session: Session) -> Dict[str, Any]:
            zone = ledger_service._profile_zone(session, profile_id)
            events = ledger_service._list_for_range(
                session, profile_id, start_date, end_date, item_type
            )

            report = summarize_events(events, zone)
            report.update({
                "profile_id": profile_id,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "item_type": item_type.value if isinstance(item_type, ItemType) else item_type,
            })

            logger.info(
                f"Built adherence report for profile {profile_id} "
                f"({start_date.isoformat()} to {end_date.isoformat()}): "
                f"{report['kpis']['total_eventos']} events, "
                f"{report['kpis']['taxa_adesao_total']}% adherence"
            )
            return report

        if db:
            return _build(db)

        with get_db_context() as session:
            return _build(session)

    async def list_history(
        self,
        profile_id: int,
        start_date: date,
        end_date: date,
        db: Optional[Session] = None
    ) -> List[Dict[str, Any]]:
        """Ledger rows of the range with lower-cased status and type, oldest first"""
        def _get(session: Session) -> List[Dict[str, Any]]:
            zone = ledger_service._profile_zone(session, profile_id)
            events = ledger_service._list_for_range(session, profile_id, start_date, end_date)

            history = []
            for event in events:
                entry = event.to_dict()
                entry["status"] = (event.status or "").lower()
                entry["item_type"] = (event.item_type or "").lower()
                entry["scheduled_at_local"] = to_local(event.scheduled_at, zone).isoformat()
                history.append(entry)
            return history

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)


# Singleton instance
analytics_service = AnalyticsService()
