"""
Recommendation Service - Rank products for the next promotion.
Candidates are declining products plus every product with a learned profile. Each candidate
gets a discount/duration from its elasticity class and a projection of additional units and
revenue from its recent daily rates.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple
import logging

from promo_engine.core.config import EngineConfig
from promo_engine.repositories.base import PromoRepository
from promo_engine.schemas.promo import (
    CategoryAverage,
    DeclineResult,
    ElasticityClass,
    ProductPromoProfile,
    Recommendation,
)
from promo_engine.schemas.sales import ProductSalesTotals
from promo_engine.services.aggregation import SalesInput, aggregate_period_totals, sales_frame
from promo_engine.services.decline import detect_declining_products

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromoPolicy:
    discount_percent: float
    days: int
    rationale: str


POLICY_TABLE: Dict[ElasticityClass, PromoPolicy] = {
    ElasticityClass.EXTREME: PromoPolicy(25, 7, "Aggressive promotion - extreme elasticity"),
    ElasticityClass.HIGH: PromoPolicy(18, 7, "Aggressive promotion - high elasticity"),
    ElasticityClass.MEDIUM: PromoPolicy(12, 7, "Standard leaflet promotion"),
}
STOCK_CLEARING_POLICY = PromoPolicy(10, 5, "Stock clearing - low elasticity")

# Class assumed for products that have never been profiled
FALLBACK_CLASS = ElasticityClass.MEDIUM


def suggest_discount_and_duration(elasticity_class: ElasticityClass, has_stock_to_clear: bool) -> Optional[PromoPolicy]:
    """
    Discount and duration for a class. LOW is only promoted to clear stock; otherwise None.
    """
    policy = POLICY_TABLE.get(elasticity_class)
    if policy is not None:
        return policy
    if has_stock_to_clear:
        return STOCK_CLEARING_POLICY
    return None


def project_additional(totals: Optional[ProductSalesTotals], avg_uplift: float, days: int) -> Tuple[float, float]:
    """
    Expected additional units and revenue over a promotion of `days` days.
    Uplift below 1 projects nothing rather than a negative figure.

    Returns:
        Tuple of (additional_quantity, additional_revenue)
    """
    if totals is None:
        return 0.0, 0.0

    observed_days = max(1, totals.day_count)
    daily_qty = totals.quantity / observed_days
    daily_amount = totals.amount / observed_days
    additional_quantity = max(0.0, daily_qty * (avg_uplift - 1) * days)
    additional_revenue = max(0.0, daily_amount * (avg_uplift - 1) * days)
    return additional_quantity, additional_revenue


def score_candidate(
    product_code: str,
    profile: Optional[ProductPromoProfile],
    category: CategoryAverage,
    totals: Optional[ProductSalesTotals],
    decline: Optional[DeclineResult],
    has_stock_to_clear: bool
) -> Optional[Recommendation]:
    """
    Build the recommendation for one candidate, or None when its class is not worth promoting.
    """
    if profile is not None:
        avg_uplift = profile.avg_uplift
        confidence = profile.confidence_score
        elasticity_class = profile.elasticity_class
    else:
        avg_uplift = category.avg_uplift
        confidence = category.confidence_score
        elasticity_class = FALLBACK_CLASS

    policy = suggest_discount_and_duration(elasticity_class, has_stock_to_clear)
    if policy is None:
        logger.debug(f"Skipping {product_code}: {elasticity_class.value} elasticity and no stock to clear")
        return None

    additional_quantity, additional_revenue = project_additional(totals, avg_uplift, policy.days)

    return Recommendation(
        product_code=product_code,
        product_name=(totals.product_name if totals else "") or product_code,
        elasticity_class=elasticity_class,
        confidence_score=confidence,
        avg_uplift=avg_uplift,
        suggested_discount_percent=policy.discount_percent,
        suggested_days=policy.days,
        rationale=policy.rationale,
        is_declining=decline is not None,
        change_percent=decline.change_percent if decline else None,
        last_period_quantity=totals.quantity if totals else 0.0,
        last_period_amount=totals.amount if totals else 0.0,
        expected_uplift=avg_uplift,
        expected_additional_quantity=additional_quantity,
        expected_additional_revenue=additional_revenue,
    )


async def generate_recommendations(
    repository: PromoRepository,
    daily_sales: SalesInput,
    stock_by_product: Optional[Mapping[str, float]] = None,
    config: Optional[EngineConfig] = None
) -> List[Recommendation]:
    """
    Generate ranked promotion recommendations.

    Args:
        repository: Event/profile store (profiles, category average, recency history)
        daily_sales: Sales rows of the recent lookback period
        stock_by_product: Optional on-hand stock per product; positive stock allows LOW class promotions
        config: Engine configuration (lookback, cooldown, reference date)

    Returns:
        Recommendations sorted by expected additional revenue, highest first
    """
    config = config or EngineConfig()
    stock_by_product = stock_by_product or {}

    frame = sales_frame(daily_sales)
    totals = aggregate_period_totals(frame)
    declines = {d.product_code: d for d in detect_declining_products(frame, config.recommendation_lookback_days)}

    # Profiles may be rewritten by a concurrent learning run; recommendations use whatever is current
    profiles = {p.product_code: p for p in await repository.get_product_profiles()}
    category = await repository.get_category_average_uplift()

    today = config.reference_date()
    candidates = sorted(set(declines) | set(profiles))
    semaphore = asyncio.Semaphore(config.max_concurrency)

    async def _evaluate(product_code: str) -> Optional[Recommendation]:
        async with semaphore:
            recently = await repository.was_product_on_promo_recently(
                product_code, today, config.min_days_between_promos
            )
        if recently:
            logger.debug(f"Skipping {product_code}: promoted within the last {config.min_days_between_promos} days")
            return None
        return score_candidate(
            product_code,
            profiles.get(product_code),
            category,
            totals.get(product_code),
            declines.get(product_code),
            stock_by_product.get(product_code, 0) > 0,
        )

    results = await asyncio.gather(*(_evaluate(code) for code in candidates), return_exceptions=True)
    failures = [r for r in results if isinstance(r, Exception)]
    if failures:
        raise failures[0]
    recommendations = [r for r in results if r is not None]
    recommendations.sort(key=lambda r: (-r.expected_additional_revenue, r.product_code))

    logger.info(f"Generated {len(recommendations)} recommendations from {len(candidates)} candidates")
    return recommendations
