"""
Recommendations Router - Declining products and ranked promotion recommendations.
"""

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from datetime import date
from typing import Optional
import logging

from promo_engine.core.config import EngineConfig, with_overrides
from promo_engine.core.db import get_engine_config, get_repository
from promo_engine.core.errors import DataAccessError
from promo_engine.repositories.base import PromoRepository
from promo_engine.schemas.requests import RecommendationPayload, SalesPayload
from promo_engine.services.decline import detect_declining_products
from promo_engine.services.recommendation import generate_recommendations

logger = logging.getLogger(__name__)

router = APIRouter()

TOP_DECLINES_LIMIT = 50


@router.post("/recommendations/declines")
async def top_declines(
    payload: SalesPayload = Body(...),
    lookback_days: Optional[int] = Query(None, description="Recent window split into two halves"),
    config: EngineConfig = Depends(get_engine_config)
):
    """Products whose second-half volume dropped more than 10%, sharpest first."""
    try:
        config = with_overrides(config, recommendation_lookback_days=lookback_days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    declines = detect_declining_products(payload.daily_sales, config.recommendation_lookback_days)
    return {"declines": declines[:TOP_DECLINES_LIMIT]}


@router.post("/recommendations")
async def recommendations(
    payload: RecommendationPayload = Body(...),
    lookback_days: Optional[int] = Query(None, description="Recent window for decline detection"),
    min_days_between_promos: Optional[int] = Query(None, description="Cooldown after a product's last promotion"),
    today: Optional[date] = Query(None, description="Reference date (YYYY-MM-DD), defaults to today"),
    repository: PromoRepository = Depends(get_repository),
    config: EngineConfig = Depends(get_engine_config)
):
    """Generate promotion recommendations ranked by expected additional revenue."""
    try:
        config = with_overrides(
            config,
            recommendation_lookback_days=lookback_days,
            min_days_between_promos=min_days_between_promos,
            today=today,
        )
        recs = await generate_recommendations(repository, payload.daily_sales, payload.stock_by_product, config)
        return {"recommendations": recs, "count": len(recs)}
    except DataAccessError as e:
        logger.error(f"Data access failure in recommendation generation: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        logger.warning(f"Validation error in recommendation generation: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error in recommendation generation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Recommendation generation failed: {str(e)}")
