"""
Elasticity Service - Learn per-product promotion profiles from historical promotion periods.
For every product with promotion events: collect accepted uplift samples, aggregate them
(mean, max, sample std), score confidence, classify and upsert the profile.
"""

import asyncio
import numpy as np
import pandas as pd
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence
import logging

from promo_engine.core.config import EngineConfig, ElasticityThresholds
from promo_engine.repositories.base import PromoRepository
from promo_engine.schemas.promo import ElasticityClass, LearningResult, ProductPromoProfile, PromotionEvent
from promo_engine.services.aggregation import SalesInput, group_daily_quantities
from promo_engine.services.uplift import is_accepted_uplift, promotion_uplift

logger = logging.getLogger(__name__)

# Default class boundaries (min-inclusive)
EXTREME_MIN_UPLIFT = 2.2
HIGH_MIN_UPLIFT = 1.6
MEDIUM_MIN_UPLIFT = 1.2

# Upper bound used when a caller supplied band omits max_uplift
OPEN_MAX_UPLIFT = 999.0

# Confidence saturates at this many supporting promotions
CONFIDENCE_SAMPLE_TARGET = 5
CONFIDENCE_STD_SCALE = 2.0
SAMPLE_WEIGHT = 0.3
CONSISTENCY_WEIGHT = 0.7

ROUND_DIGITS = 3


def _upper(band) -> float:
    return band.max_uplift if band.max_uplift is not None else OPEN_MAX_UPLIFT


def classify_elasticity(avg_uplift: float, thresholds: Optional[ElasticityThresholds] = None) -> ElasticityClass:
    """
    Map an averaged uplift to an elasticity class.

    Args:
        avg_uplift: Mean of a product's accepted uplift samples
        thresholds: Optional caller supplied boundaries; defaults are 2.2 / 1.6 / 1.2

    Returns:
        ElasticityClass
    """
    if thresholds is None:
        if avg_uplift >= EXTREME_MIN_UPLIFT:
            return ElasticityClass.EXTREME
        if avg_uplift >= HIGH_MIN_UPLIFT:
            return ElasticityClass.HIGH
        if avg_uplift >= MEDIUM_MIN_UPLIFT:
            return ElasticityClass.MEDIUM
        return ElasticityClass.LOW

    extreme, high, medium = thresholds.extreme, thresholds.high, thresholds.medium
    if extreme and extreme.min_uplift is not None and avg_uplift >= extreme.min_uplift:
        return ElasticityClass.EXTREME
    if high and high.min_uplift is not None and high.min_uplift <= avg_uplift < _upper(high):
        return ElasticityClass.HIGH
    if medium and medium.min_uplift is not None and medium.min_uplift <= avg_uplift < _upper(medium):
        return ElasticityClass.MEDIUM
    return ElasticityClass.LOW


def confidence_score(sample_count: int, uplift_std: float) -> float:
    """
    Heuristic trust in a profile: 30% from sample volume (saturating at 5),
    70% from consistency (std of 2 or more scores zero).
    """
    volume = (sample_count / CONFIDENCE_SAMPLE_TARGET) * SAMPLE_WEIGHT
    consistency = (1 - min(1.0, max(0.0, uplift_std / CONFIDENCE_STD_SCALE))) * CONSISTENCY_WEIGHT
    return min(1.0, max(0.0, volume + consistency))


def _round_stat(value: float) -> float:
    return round(value, ROUND_DIGITS)


def summarize_uplifts(
    product_code: str,
    uplifts: Sequence[float],
    thresholds: Optional[ElasticityThresholds] = None
) -> Optional[ProductPromoProfile]:
    """
    Aggregate uplift samples into a profile. Samples outside (0, 100) are ignored;
    returns None when no sample is left.
    """
    accepted = [u for u in uplifts if is_accepted_uplift(u)]
    if not accepted:
        return None

    samples = np.asarray(accepted, dtype=float)
    sample_count = len(samples)
    avg_uplift = float(samples.mean())
    max_uplift = float(samples.max())
    # Sample std; a single observation carries no spread
    uplift_std = float(samples.std(ddof=1)) if sample_count > 1 else 0.0
    confidence = confidence_score(sample_count, uplift_std)
    elasticity_class = classify_elasticity(avg_uplift, thresholds)

    # Rounding is display/storage post-processing, applied once after all arithmetic
    return ProductPromoProfile(
        product_code=product_code,
        # keep the stored mean strictly positive for vanishing uplifts
        avg_uplift=max(_round_stat(avg_uplift), 10 ** -ROUND_DIGITS),
        max_uplift=_round_stat(max_uplift),
        uplift_std=_round_stat(uplift_std),
        confidence_score=_round_stat(confidence),
        elasticity_class=elasticity_class,
        sample_count=sample_count,
    )


def build_profiles(
    daily_sales: SalesInput,
    events: Sequence[PromotionEvent],
    config: Optional[EngineConfig] = None
) -> List[ProductPromoProfile]:
    """
    Compute profiles for every product that has promotion events. Pure: no persistence.

    Args:
        daily_sales: Historical daily sales rows covering the promotions and their baselines
        events: All recorded promotion events
        config: Engine configuration (baseline window, thresholds)

    Returns:
        Profiles ordered by product code; products without accepted samples are skipped
    """
    config = config or EngineConfig()
    series_by_product = group_daily_quantities(daily_sales)

    events_by_product: Dict[str, List[PromotionEvent]] = defaultdict(list)
    for event in events:
        events_by_product[event.product_code].append(event)

    empty = pd.Series(dtype=float)
    profiles = []
    for product_code in sorted(events_by_product):
        series = series_by_product.get(product_code, empty)
        uplifts = []
        for event in sorted(events_by_product[product_code], key=lambda e: e.start_date):
            uplift = promotion_uplift(series, event, config.baseline_days_before_promo)
            if uplift is not None:
                uplifts.append(uplift)

        profile = summarize_uplifts(product_code, uplifts, config.elasticity_thresholds)
        if profile is None:
            logger.debug(f"Insufficient evidence for {product_code}: no accepted uplift samples")
            continue
        profiles.append(profile)

    return profiles


async def learn_elasticity(
    repository: PromoRepository,
    daily_sales: SalesInput,
    config: Optional[EngineConfig] = None
) -> LearningResult:
    """
    Learn promotion profiles and upsert them, replacing each product's previous profile.

    Args:
        repository: Event/profile store
        daily_sales: Historical daily sales rows
        config: Engine configuration

    Returns:
        LearningResult with the persisted profiles and their count
    """
    config = config or EngineConfig()

    events = await repository.get_promotion_events()
    run_at = datetime.now(timezone.utc)
    profiles = [
        p.model_copy(update={"updated_at": run_at})
        for p in build_profiles(daily_sales, events, config)
    ]

    semaphore = asyncio.Semaphore(config.max_concurrency)

    async def _persist(profile: ProductPromoProfile) -> None:
        async with semaphore:
            await repository.upsert_product_profile(profile)

    # Let every upsert settle before surfacing the first failure
    results = await asyncio.gather(*(_persist(p) for p in profiles), return_exceptions=True)
    failures = [r for r in results if isinstance(r, Exception)]
    if failures:
        logger.error(f"{len(failures)} of {len(profiles)} profile upserts failed")
        raise failures[0]

    logger.info(f"Learned {len(profiles)} promotion profiles from {len(events)} promotion events")
    return LearningResult(profiles=profiles, count=len(profiles))
