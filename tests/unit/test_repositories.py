"""Contract tests shared by the in-memory and SQL repositories."""

from datetime import date, datetime, timezone

import pytest
import pytest_asyncio

from promo_engine.core.db import create_db_engine, init_db
from promo_engine.core.errors import DataAccessError
from promo_engine.repositories.memory import InMemoryPromoRepository
from promo_engine.repositories.sql import SqlAlchemyPromoRepository
from promo_engine.schemas.promo import ElasticityClass, PromotionEvent


@pytest_asyncio.fixture(params=["memory", "sql"])
async def repository(request, tmp_path):
    if request.param == "memory":
        yield InMemoryPromoRepository()
        return

    engine = create_db_engine(f"sqlite+aiosqlite:///{tmp_path / 'promo.db'}")
    await init_db(engine)
    sql_repository = SqlAlchemyPromoRepository(engine)
    yield sql_repository
    await sql_repository.close()


def event(product_code: str, start: date, end: date) -> PromotionEvent:
    return PromotionEvent(product_code=product_code, start_date=start, end_date=end, source_file="akcije.xlsx")


class TestPromotionEvents:
    """Test event storage."""

    @pytest.mark.asyncio
    async def test_replace_and_read_ordered(self, repository):
        await repository.replace_promotion_events([
            event("B", date(2025, 5, 1), date(2025, 5, 7)),
            event("A", date(2025, 6, 1), date(2025, 6, 7)),
            event("A", date(2025, 3, 1), date(2025, 3, 7)),
        ])

        events = await repository.get_promotion_events()
        assert [(e.product_code, e.start_date) for e in events] == [
            ("A", date(2025, 3, 1)),
            ("A", date(2025, 6, 1)),
            ("B", date(2025, 5, 1)),
        ]
        assert events[0].source_file == "akcije.xlsx"
        assert len(await repository.get_promotion_events("A")) == 2

    @pytest.mark.asyncio
    async def test_replace_discards_previous_import(self, repository):
        await repository.replace_promotion_events([event("A", date(2025, 3, 1), date(2025, 3, 7))])
        imported = await repository.replace_promotion_events([event("B", date(2025, 4, 1), date(2025, 4, 2))])

        assert imported == 1
        assert await repository.count_promotion_events() == 1
        assert (await repository.get_promotion_events())[0].product_code == "B"

    @pytest.mark.asyncio
    async def test_clear(self, repository):
        await repository.replace_promotion_events([event("A", date(2025, 3, 1), date(2025, 3, 7))])
        await repository.clear_promotion_events()
        assert await repository.count_promotion_events() == 0

    @pytest.mark.asyncio
    async def test_was_product_on_promo_recently(self, repository):
        await repository.replace_promotion_events([event("A", date(2026, 9, 1), date(2026, 9, 19))])
        today = date(2026, 10, 19)

        assert await repository.was_product_on_promo_recently("A", today, 30) is True
        assert await repository.was_product_on_promo_recently("A", today, 29) is False
        assert await repository.was_product_on_promo_recently("B", today, 30) is False


class TestProductProfiles:
    """Test profile storage."""

    @pytest.mark.asyncio
    async def test_upsert_replaces_whole_profile(self, repository, profile_factory):
        await repository.upsert_product_profile(profile_factory("A", 2.5, ElasticityClass.EXTREME, 0.9))
        await repository.upsert_product_profile(profile_factory("A", 1.3, ElasticityClass.MEDIUM, 0.4))

        profile = await repository.get_product_profile("A")
        assert profile.avg_uplift == pytest.approx(1.3)
        assert profile.elasticity_class == ElasticityClass.MEDIUM
        assert profile.confidence_score == pytest.approx(0.4)
        assert profile.updated_at is not None
        assert len(await repository.get_product_profiles()) == 1

    @pytest.mark.asyncio
    async def test_upsert_keeps_given_timestamp(self, repository, profile_factory):
        stamped_at = datetime(2026, 10, 19, 6, 30, tzinfo=timezone.utc)
        profile = profile_factory("A", 1.8, ElasticityClass.HIGH).model_copy(update={"updated_at": stamped_at})

        await repository.upsert_product_profile(profile)

        stored = await repository.get_product_profile("A")
        assert stored.updated_at.replace(tzinfo=None) == stamped_at.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_missing_profile(self, repository):
        assert await repository.get_product_profile("nope") is None

    @pytest.mark.asyncio
    async def test_profiles_ordered_by_code(self, repository, profile_factory):
        for code in ["C", "A", "B"]:
            await repository.upsert_product_profile(profile_factory(code, 1.5, ElasticityClass.MEDIUM))
        assert [p.product_code for p in await repository.get_product_profiles()] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_category_average(self, repository, profile_factory):
        default = await repository.get_category_average_uplift()
        assert (default.avg_uplift, default.confidence_score) == (1.2, 0.5)

        await repository.upsert_product_profile(profile_factory("A", 2.0, ElasticityClass.HIGH, 0.8))
        await repository.upsert_product_profile(profile_factory("B", 1.0, ElasticityClass.LOW, 0.4))

        average = await repository.get_category_average_uplift()
        assert average.avg_uplift == pytest.approx(1.5)
        assert average.confidence_score == pytest.approx(0.6)


class TestSqlFailures:
    """Storage failures surface as DataAccessError."""

    @pytest.mark.asyncio
    async def test_missing_tables(self, tmp_path):
        # no init_db: tables do not exist
        repository = SqlAlchemyPromoRepository(create_db_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}"))
        try:
            with pytest.raises(DataAccessError) as exc_info:
                await repository.get_product_profiles()
            assert exc_info.value.operation == "get_product_profiles"
        finally:
            await repository.close()
