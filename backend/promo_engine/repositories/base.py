"""
Storage contract for promotion events and learned profiles.
All methods are async; implementations raise DataAccessError on storage failure.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence

from promo_engine.schemas.promo import CategoryAverage, ProductPromoProfile, PromotionEvent


class PromoRepository(ABC):

    @abstractmethod
    async def get_promotion_events(self, product_code: Optional[str] = None) -> List[PromotionEvent]:
        """Events ordered by product code then start date, optionally for one product."""

    @abstractmethod
    async def replace_promotion_events(self, events: Sequence[PromotionEvent]) -> int:
        """Clear all events and insert `events` as one unit. Returns the number inserted."""

    @abstractmethod
    async def clear_promotion_events(self) -> None:
        ...

    @abstractmethod
    async def count_promotion_events(self) -> int:
        ...

    @abstractmethod
    async def upsert_product_profile(self, profile: ProductPromoProfile) -> None:
        """Insert or fully replace the profile of profile.product_code. Keeps profile.updated_at when set, else stamps now."""

    @abstractmethod
    async def get_product_profile(self, product_code: str) -> Optional[ProductPromoProfile]:
        ...

    @abstractmethod
    async def get_product_profiles(self) -> List[ProductPromoProfile]:
        """All profiles ordered by product code."""

    @abstractmethod
    async def get_category_average_uplift(self) -> CategoryAverage:
        """Mean avg_uplift and confidence_score over all profiles; 1.2 / 0.5 when there are none."""

    @abstractmethod
    async def was_product_on_promo_recently(self, product_code: str, before_date: date, min_days: int) -> bool:
        """True when any event of the product ends on or after before_date - min_days."""

    async def close(self) -> None:
        """Release backend resources."""
