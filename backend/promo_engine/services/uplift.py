"""
Uplift Service - Compare in-promotion daily sales to the pre-promotion baseline.
Uplift = average daily quantity during [start, end] / average daily quantity over the
N days before start. Averages only count days that have data.
"""

import pandas as pd
from datetime import date
from typing import Optional, Tuple
import logging

from promo_engine.schemas.promo import PromotionEvent

logger = logging.getLogger(__name__)

DEFAULT_BASELINE_DAYS = 14

# Accepted uplift range (exclusive); near-zero baselines produce absurd ratios
MIN_ACCEPTED_UPLIFT = 0.0
MAX_ACCEPTED_UPLIFT = 100.0


def _window_average(window: pd.Series) -> float:
    if len(window) == 0:
        return 0.0
    return float(window.sum()) / len(window)


def baseline_and_treatment(
    series: pd.Series,
    start_date: date,
    end_date: date,
    baseline_days: int = DEFAULT_BASELINE_DAYS
) -> Tuple[float, float]:
    """
    Average daily quantity before and during a promotion period.

    Args:
        series: Date-indexed quantity series for one product (one value per day)
        start_date: First promotion day
        end_date: Last promotion day (inclusive)
        baseline_days: Calendar days before start_date forming the baseline window

    Returns:
        Tuple of (baseline_average, treatment_average); 0.0 when a window has no data
    """
    if series.empty:
        return 0.0, 0.0

    start = pd.Timestamp(start_date)
    end = pd.Timestamp(end_date)
    baseline_start = start - pd.Timedelta(days=baseline_days)
    index = series.index

    baseline = series[(index >= baseline_start) & (index < start)]
    treatment = series[(index >= start) & (index <= end)]
    return _window_average(baseline), _window_average(treatment)


def compute_uplift(baseline_average: float, treatment_average: float) -> Optional[float]:
    """Ratio of treatment to baseline; None when there is no baseline to compare to."""
    if baseline_average <= 0:
        return None
    return treatment_average / baseline_average


def is_accepted_uplift(uplift: Optional[float]) -> bool:
    return uplift is not None and MIN_ACCEPTED_UPLIFT < uplift < MAX_ACCEPTED_UPLIFT


def promotion_uplift(
    series: pd.Series,
    event: PromotionEvent,
    baseline_days: int = DEFAULT_BASELINE_DAYS
) -> Optional[float]:
    """
    Accepted uplift for one product and one promotion period, or None.
    """
    baseline_avg, treatment_avg = baseline_and_treatment(
        series, event.start_date, event.end_date, baseline_days
    )
    uplift = compute_uplift(baseline_avg, treatment_avg)

    if uplift is None:
        logger.debug(f"No baseline sales for {event.product_code} before {event.start_date}")
        return None
    if not is_accepted_uplift(uplift):
        logger.debug(f"Rejected uplift {uplift:.3f} for {event.product_code} ({event.start_date}..{event.end_date})")
        return None
    return uplift
