"""
Decline Service - Flag products whose recent sales volume is falling.
Each product's recent days are split into the earliest and latest floor(lookback/2)
days with data; a drop of more than 10% between the half averages marks a decline.
"""

from typing import List
import logging

from promo_engine.schemas.promo import DeclineResult
from promo_engine.services.aggregation import SalesInput, group_daily_quantities

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 7
DECLINE_THRESHOLD = -0.10


def detect_declining_products(daily_sales: SalesInput, lookback_days: int = DEFAULT_LOOKBACK_DAYS) -> List[DeclineResult]:
    """
    Detect declining products in a recent sales window.

    Args:
        daily_sales: Recent daily sales rows
        lookback_days: Window length; each half is lookback_days // 2 days

    Returns:
        Declining products, sharpest decline first
    """
    half = lookback_days // 2
    if half < 1:
        return []

    found = []
    for product_code, series in group_daily_quantities(daily_sales).items():
        if len(series) < half:
            continue

        avg_first = float(series.iloc[:half].mean())
        avg_second = float(series.iloc[-half:].mean())
        if avg_first <= 0:
            continue

        change = (avg_second - avg_first) / avg_first
        if change < DECLINE_THRESHOLD:
            found.append((change, product_code, avg_first, avg_second))

    found.sort(key=lambda item: (item[0], item[1]))
    logger.info(f"Found {len(found)} declining products (lookback {lookback_days} days)")

    return [
        DeclineResult(
            product_code=product_code,
            change_percent=round(change, 2),
            avg_first_half=avg_first,
            avg_second_half=avg_second,
        )
        for change, product_code, avg_first, avg_second in found
    ]
