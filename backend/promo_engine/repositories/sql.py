"""
SQLAlchemy async repository. Works on the local SQLite file store (aiosqlite)
and on Postgres (asyncpg); the upsert dialect is picked once from the engine.
"""

from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from promo_engine.core.errors import DataAccessError
from promo_engine.models.promo import ProductPromoProfileRecord, PromotionEventRecord
from promo_engine.repositories.base import PromoRepository
from promo_engine.schemas.promo import CategoryAverage, ProductPromoProfile, PromotionEvent

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = (
    "avg_uplift",
    "max_uplift",
    "uplift_std",
    "confidence_score",
    "elasticity_class",
    "sample_count",
)


def _to_event(record: PromotionEventRecord) -> PromotionEvent:
    return PromotionEvent(
        product_code=record.product_code,
        start_date=record.start_date,
        end_date=record.end_date,
        promo_price=record.promo_price,
        discount_percent=record.discount_percent,
        source_file=record.source_file or "",
    )


def _to_profile(record: ProductPromoProfileRecord) -> ProductPromoProfile:
    return ProductPromoProfile(
        product_code=record.product_code,
        avg_uplift=record.avg_uplift,
        max_uplift=record.max_uplift,
        uplift_std=record.uplift_std,
        confidence_score=record.confidence_score,
        elasticity_class=record.elasticity_class,
        sample_count=record.sample_count,
        updated_at=record.updated_at,
    )


def _naive_utc(moment: datetime) -> datetime:
    # updated_at is a timezone-less column; store UTC wall time
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


class SqlAlchemyPromoRepository(PromoRepository):

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        # One session per call so callers may issue calls concurrently
        self._session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
        self._insert = postgresql.insert if engine.dialect.name == "postgresql" else sqlite.insert

    @asynccontextmanager
    async def _session(self, operation: str):
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Repository operation {operation} failed: {e}")
            raise DataAccessError(operation, e) from e

    async def get_promotion_events(self, product_code: Optional[str] = None) -> List[PromotionEvent]:
        query = select(PromotionEventRecord)
        if product_code is not None:
            query = query.where(PromotionEventRecord.product_code == product_code)
        query = query.order_by(PromotionEventRecord.product_code, PromotionEventRecord.start_date)

        async with self._session("get_promotion_events") as session:
            result = await session.execute(query)
            return [_to_event(r) for r in result.scalars().all()]

    async def replace_promotion_events(self, events: Sequence[PromotionEvent]) -> int:
        async with self._session("replace_promotion_events") as session:
            async with session.begin():
                await session.execute(delete(PromotionEventRecord))
                session.add_all([
                    PromotionEventRecord(
                        product_code=e.product_code,
                        start_date=e.start_date,
                        end_date=e.end_date,
                        promo_price=e.promo_price,
                        discount_percent=e.discount_percent,
                        source_file=e.source_file,
                    )
                    for e in events
                ])
        logger.info(f"Replaced promotion history with {len(events)} events")
        return len(events)

    async def clear_promotion_events(self) -> None:
        async with self._session("clear_promotion_events") as session:
            await session.execute(delete(PromotionEventRecord))
            await session.commit()

    async def count_promotion_events(self) -> int:
        async with self._session("count_promotion_events") as session:
            result = await session.execute(select(func.count(PromotionEventRecord.id)))
            return int(result.scalar_one())

    async def upsert_product_profile(self, profile: ProductPromoProfile) -> None:
        values = {
            "product_code": profile.product_code,
            "avg_uplift": profile.avg_uplift,
            "max_uplift": profile.max_uplift,
            "uplift_std": profile.uplift_std,
            "confidence_score": profile.confidence_score,
            "elasticity_class": profile.elasticity_class.value,
            "sample_count": profile.sample_count,
            "updated_at": _naive_utc(profile.updated_at) if profile.updated_at else func.now(),
        }
        stmt = self._insert(ProductPromoProfileRecord).values(**values)
        # Single statement: every field is replaced together
        stmt = stmt.on_conflict_do_update(
            index_elements=[ProductPromoProfileRecord.product_code],
            set_={
                **{column: stmt.excluded[column] for column in PROFILE_COLUMNS},
                "updated_at": stmt.excluded.updated_at,
            },
        )
        async with self._session("upsert_product_profile") as session:
            await session.execute(stmt)
            await session.commit()

    async def get_product_profile(self, product_code: str) -> Optional[ProductPromoProfile]:
        async with self._session("get_product_profile") as session:
            result = await session.execute(
                select(ProductPromoProfileRecord).where(ProductPromoProfileRecord.product_code == product_code)
            )
            record = result.scalar_one_or_none()
            return _to_profile(record) if record else None

    async def get_product_profiles(self) -> List[ProductPromoProfile]:
        async with self._session("get_product_profiles") as session:
            result = await session.execute(
                select(ProductPromoProfileRecord).order_by(ProductPromoProfileRecord.product_code)
            )
            return [_to_profile(r) for r in result.scalars().all()]

    async def get_category_average_uplift(self) -> CategoryAverage:
        async with self._session("get_category_average_uplift") as session:
            result = await session.execute(
                select(
                    func.avg(ProductPromoProfileRecord.avg_uplift),
                    func.avg(ProductPromoProfileRecord.confidence_score),
                )
            )
            avg_uplift, confidence = result.one()

        fallback = CategoryAverage()
        return CategoryAverage(
            avg_uplift=float(avg_uplift) if avg_uplift is not None else fallback.avg_uplift,
            confidence_score=float(confidence) if confidence is not None else fallback.confidence_score,
        )

    async def was_product_on_promo_recently(self, product_code: str, before_date: date, min_days: int) -> bool:
        cutoff = before_date - timedelta(days=min_days)
        async with self._session("was_product_on_promo_recently") as session:
            result = await session.execute(
                select(PromotionEventRecord.id)
                .where(
                    PromotionEventRecord.product_code == product_code,
                    PromotionEventRecord.end_date >= cutoff
                )
                .limit(1)
            )
            return result.scalar_one_or_none() is not None

    async def close(self) -> None:
        await self._engine.dispose()
