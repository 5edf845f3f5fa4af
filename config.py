"""
Configuration management for CareLedger
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "CareLedger"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./care_ledger.db"
    DATABASE_ECHO: bool = False

    # Calendar
    DEFAULT_TIMEZONE: str = "America/Sao_Paulo"
    LATE_GRACE_MINUTES: int = 0  # pending occurrences display as late after this

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class EngineConfig:
    """Constants of the recurrence and adherence engine"""

    # Raw ledger statuses, as written by the dashboard and the sweep jobs
    SUCCESS_STATUSES: frozenset = frozenset({"confirmado", "realizado", "tomado"})
    FAILURE_STATUSES: frozenset = frozenset({
        "pendente", "atrasado", "cancelado", "perdido", "nao confirmado"
    })

    # Item type buckets of the report
    REPORT_ITEM_TYPES: tuple = ("medicamento", "rotina", "outros")
    OTHER_ITEM_TYPE: str = "outros"

    # Turnos as [start_hour, end_hour); anything else is "noite"
    TURNO_BOUNDS: dict = {
        "manha": (6, 12),
        "tarde": (12, 18),
    }
    TURNO_FALLBACK: str = "noite"
    TURNOS: tuple = ("manha", "tarde", "noite")


# Database table names
class TableNames:
    PROFILES = "perfis"
    SCHEDULED_ITEMS = "scheduled_items"
    OCCURRENCE_EVENTS = "historico_eventos"


settings = get_settings()
engine_config = EngineConfig()
