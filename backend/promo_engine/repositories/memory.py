from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from promo_engine.repositories.base import PromoRepository
from promo_engine.schemas.promo import CategoryAverage, ProductPromoProfile, PromotionEvent


class InMemoryPromoRepository(PromoRepository):
    """
    Dict-backed store for tests and demo runs.
    Profiles are frozen models swapped whole, so readers never see a partial write.
    """

    def __init__(self, events: Sequence[PromotionEvent] = (), profiles: Sequence[ProductPromoProfile] = ()):
        self._events: List[PromotionEvent] = list(events)
        self._profiles: Dict[str, ProductPromoProfile] = {p.product_code: p for p in profiles}

    async def get_promotion_events(self, product_code: Optional[str] = None) -> List[PromotionEvent]:
        events = self._events
        if product_code is not None:
            events = [e for e in events if e.product_code == product_code]
        return sorted(events, key=lambda e: (e.product_code, e.start_date))

    async def replace_promotion_events(self, events: Sequence[PromotionEvent]) -> int:
        self._events = list(events)
        return len(self._events)

    async def clear_promotion_events(self) -> None:
        self._events = []

    async def count_promotion_events(self) -> int:
        return len(self._events)

    async def upsert_product_profile(self, profile: ProductPromoProfile) -> None:
        if profile.updated_at is None:
            profile = profile.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        self._profiles[profile.product_code] = profile

    async def get_product_profile(self, product_code: str) -> Optional[ProductPromoProfile]:
        return self._profiles.get(product_code)

    async def get_product_profiles(self) -> List[ProductPromoProfile]:
        return [self._profiles[code] for code in sorted(self._profiles)]

    async def get_category_average_uplift(self) -> CategoryAverage:
        profiles = list(self._profiles.values())
        if not profiles:
            return CategoryAverage()
        return CategoryAverage(
            avg_uplift=sum(p.avg_uplift for p in profiles) / len(profiles),
            confidence_score=sum(p.confidence_score for p in profiles) / len(profiles),
        )

    async def was_product_on_promo_recently(self, product_code: str, before_date: date, min_days: int) -> bool:
        cutoff = before_date - timedelta(days=min_days)
        return any(e.product_code == product_code and e.end_date >= cutoff for e in self._events)
