"""Test configuration and fixtures."""

from datetime import date, timedelta
from typing import Callable, Iterable, List

import pytest

from promo_engine.core.config import EngineConfig
from promo_engine.repositories.memory import InMemoryPromoRepository
from promo_engine.schemas.promo import ElasticityClass, ProductPromoProfile, PromotionEvent

TODAY = date(2026, 10, 19)


def daily_rows(product_code: str, start: date, quantities: Iterable[float], amount_per_unit: float = 2.0) -> List[dict]:
    """One row per consecutive day starting at `start`."""
    return [
        {
            "date": (start + timedelta(days=i)).isoformat(),
            "product_code": product_code,
            "product_name": f"Product {product_code}",
            "quantity": qty,
            "amount": qty * amount_per_unit,
        }
        for i, qty in enumerate(quantities)
    ]


def make_profile(product_code: str, avg_uplift: float, elasticity_class: ElasticityClass, confidence: float = 0.7) -> ProductPromoProfile:
    return ProductPromoProfile(
        product_code=product_code,
        avg_uplift=avg_uplift,
        max_uplift=avg_uplift,
        uplift_std=0.0,
        confidence_score=confidence,
        elasticity_class=elasticity_class,
        sample_count=1,
    )


@pytest.fixture
def sales_rows() -> Callable[..., List[dict]]:
    """Builder for consecutive daily sales rows."""
    return daily_rows


@pytest.fixture
def engine_config() -> EngineConfig:
    """Engine config pinned to a fixed reference date."""
    return EngineConfig(today=TODAY)


@pytest.fixture
def scenario_a_sales() -> List[dict]:
    """14 baseline days at 5/day, then a 7-day promotion at 9/day (uplift 1.8)."""
    baseline = daily_rows("A", date(2025, 2, 15), [5] * 14)
    promo = daily_rows("A", date(2025, 3, 1), [9] * 7)
    return baseline + promo


@pytest.fixture
def scenario_a_event() -> PromotionEvent:
    return PromotionEvent(
        product_code="A",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 7),
        discount_percent=20,
        source_file="akcije_2025_03.xlsx",
    )


@pytest.fixture
def memory_repository() -> InMemoryPromoRepository:
    return InMemoryPromoRepository()


@pytest.fixture
def profile_factory() -> Callable[..., ProductPromoProfile]:
    """Builder for single-sample profiles."""
    return make_profile
