# backend promo engine configuration
import json
import logging
import os
from datetime import date
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()  # Load environment variables

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/promo.db"


class ThresholdBand(BaseModel):
    """Uplift band for one elasticity class. Bounds are min-inclusive, max-exclusive."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    min_uplift: Optional[float] = Field(None, alias="minUplift")
    max_uplift: Optional[float] = Field(None, alias="maxUplift")


class ElasticityThresholds(BaseModel):
    """
    Caller supplied class boundaries, e.g.
    {"EXTREME": {"minUplift": 2.5}, "HIGH": {"minUplift": 1.8, "maxUplift": 2.5}, ...}
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    extreme: Optional[ThresholdBand] = Field(None, alias="EXTREME")
    high: Optional[ThresholdBand] = Field(None, alias="HIGH")
    medium: Optional[ThresholdBand] = Field(None, alias="MEDIUM")


class EngineConfig(BaseModel):
    """
    Explicit configuration passed into every engine entry point.
    Fields:
        - baseline_days_before_promo: length of the pre-promotion baseline window
        - elasticity_thresholds: override of the default class boundaries
        - recommendation_lookback_days: recent window used for decline detection
        - min_days_between_promos: cooldown for the recency exclusion
        - max_concurrency: bound on in-flight repository calls
        - today: reference date for recency checks (defaults to date.today())
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    baseline_days_before_promo: int = Field(14, ge=1, alias="baselineDaysBeforePromo")
    elasticity_thresholds: Optional[ElasticityThresholds] = Field(None, alias="elasticityThresholds")
    recommendation_lookback_days: int = Field(7, ge=2, alias="recommendationLookbackDays")
    min_days_between_promos: int = Field(30, ge=0, alias="minDaysBetweenPromos")
    max_concurrency: int = Field(8, ge=1)
    today: Optional[date] = None

    def reference_date(self) -> date:
        return self.today or date.today()


class Settings(BaseModel):
    """Process level settings read once at startup."""
    model_config = ConfigDict(frozen=True)

    database_url: str = DEFAULT_DATABASE_URL
    store: str = "sql"
    cors_origins: List[str] = ["http://localhost:3000"]
    log_level: str = "INFO"


def _int_env(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return int(value)


def load_engine_config() -> EngineConfig:
    """
    Build the default EngineConfig from environment variables.
    Unset variables keep the built-in defaults.
    """
    values = {}
    env_fields = {
        "baseline_days_before_promo": "PROMO_BASELINE_DAYS",
        "recommendation_lookback_days": "PROMO_LOOKBACK_DAYS",
        "min_days_between_promos": "PROMO_MIN_DAYS_BETWEEN",
        "max_concurrency": "PROMO_MAX_CONCURRENCY",
    }
    for field_name, env_name in env_fields.items():
        value = _int_env(env_name)
        if value is not None:
            values[field_name] = value

    raw_thresholds = os.getenv("PROMO_ELASTICITY_THRESHOLDS")
    if raw_thresholds:
        values["elasticity_thresholds"] = ElasticityThresholds.model_validate(json.loads(raw_thresholds))

    config = EngineConfig(**values)
    logger.info(f"Engine config loaded: {config.model_dump(exclude_none=True)}")
    return config


def load_settings() -> Settings:
    # Railway style deployments expose DATABASE_PUBLIC_URL for external access
    database_url = os.getenv("DATABASE_PUBLIC_URL") or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    return Settings(
        database_url=database_url,
        store=os.getenv("PROMO_STORE", "sql").lower(),
        cors_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def with_overrides(config: EngineConfig, **overrides) -> EngineConfig:
    """
    Copy of `config` with the given non-None fields replaced, re-validated.
    """
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return config
    return EngineConfig.model_validate({**config.model_dump(), **updates})
