"""Learning and recommendation runs against the SQLite-backed store."""

from datetime import date, timedelta

import pytest
import pytest_asyncio

from promo_engine.core.db import create_db_engine, init_db
from promo_engine.repositories.sql import SqlAlchemyPromoRepository
from promo_engine.schemas.promo import ElasticityClass, PromotionEvent
from promo_engine.services.elasticity import learn_elasticity
from promo_engine.services.recommendation import generate_recommendations

PRODUCT_CODES = [f"P{i:03d}" for i in range(40)]
PROMO_START = date(2025, 3, 1)


@pytest_asyncio.fixture
async def sql_repository(tmp_path):
    engine = create_db_engine(f"sqlite+aiosqlite:///{tmp_path / 'promo.db'}")
    await init_db(engine)
    repository = SqlAlchemyPromoRepository(engine)
    yield repository
    await repository.close()


@pytest.fixture
def history(sales_rows):
    """Every product: 14 days at 5/day, then a week-long promotion at 9/day."""
    rows = []
    for code in PRODUCT_CODES:
        rows += sales_rows(code, PROMO_START - timedelta(days=14), [5] * 14)
        rows += sales_rows(code, PROMO_START, [9] * 7)
    return rows


class TestSqlLearningRun:
    """Concurrent upserts and reads through per-call sessions."""

    @pytest.mark.asyncio
    async def test_learn_then_recommend(self, sql_repository, history, sales_rows, engine_config):
        events = [
            PromotionEvent(product_code=code, start_date=PROMO_START, end_date=PROMO_START + timedelta(days=6))
            for code in PRODUCT_CODES
        ]
        # P000 was promoted again last week
        events.append(PromotionEvent(
            product_code="P000",
            start_date=engine_config.today - timedelta(days=10),
            end_date=engine_config.today - timedelta(days=4),
        ))
        await sql_repository.replace_promotion_events(events)

        result = await learn_elasticity(sql_repository, history, engine_config)

        assert result.count == len(PRODUCT_CODES)
        stored = await sql_repository.get_product_profiles()
        assert [p.product_code for p in stored] == PRODUCT_CODES
        assert {p.elasticity_class for p in stored} == {ElasticityClass.HIGH}
        assert stored[0].updated_at.replace(tzinfo=None) == result.profiles[0].updated_at.replace(tzinfo=None)

        recent = []
        for code in PRODUCT_CODES:
            recent += sales_rows(code, engine_config.today - timedelta(days=7), [10] * 7)

        recs = await generate_recommendations(sql_repository, recent, config=engine_config)

        assert [r.product_code for r in recs] == PRODUCT_CODES[1:]
        assert all(r.expected_additional_revenue == pytest.approx(20 * 0.8 * 7) for r in recs)
