"""
Report Schemas
Pydantic models for the adherence report
"""

from typing import Optional, List, Dict
from pydantic import BaseModel


class AdherenceKpis(BaseModel):
    """Headline adherence indicators"""
    taxa_adesao_total: float
    total_eventos: int
    total_confirmados: int
    total_esquecidos: int
    taxa_adesao_medicamentos: float
    taxa_adesao_rotinas: float
    indice_esquecimento: int
    pontualidade_media_minutos: Optional[float] = None


class DailyTrendPoint(BaseModel):
    """Adherence of one local calendar day"""
    data: str
    total: int
    confirmados: int
    percentual: float


class TurnoStats(BaseModel):
    """Adherence of one time-of-day bucket"""
    total: int
    confirmados: int
    esquecidos: int
    percentual: float


class ItemTypeStats(BaseModel):
    """Adherence of one item type"""
    total: int
    confirmados: int
    percentual: float


class AdherenceReport(BaseModel):
    """Complete adherence report"""
    profile_id: int
    start_date: str
    end_date: str
    item_type: Optional[str] = None
    kpis: AdherenceKpis
    daily_trend: List[DailyTrendPoint]
    by_time_of_day: Dict[str, TurnoStats]
    by_item_type: Dict[str, ItemTypeStats]


class HistoryEntry(BaseModel):
    """Normalised ledger row"""
    id: int
    profile_id: int
    item_type: str
    item_id: int
    occurrence_date: Optional[str] = None
    scheduled_at: Optional[str] = None
    scheduled_at_local: Optional[str] = None
    status: str
    confirmed_at: Optional[str] = None


class HistoryResponse(BaseModel):
    """Ledger rows of a range"""
    profile_id: int
    start_date: str
    end_date: str
    entries: List[HistoryEntry]
    total_entries: int
