"""
Elasticity Router - Learn and inspect product promotion profiles.
"""

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from typing import Optional
import logging

from promo_engine.core.config import EngineConfig, with_overrides
from promo_engine.core.db import get_engine_config, get_repository
from promo_engine.core.errors import DataAccessError
from promo_engine.repositories.base import PromoRepository
from promo_engine.schemas.requests import SalesPayload
from promo_engine.services.elasticity import learn_elasticity

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/elasticity/learn")
async def learn_elasticity_endpoint(
    payload: SalesPayload = Body(...),
    baseline_days: Optional[int] = Query(None, description="Days before a promotion used as baseline"),
    repository: PromoRepository = Depends(get_repository),
    config: EngineConfig = Depends(get_engine_config)
):
    """Learn promotion profiles from historical daily sales and the stored promotion events."""
    try:
        config = with_overrides(config, baseline_days_before_promo=baseline_days)
        result = await learn_elasticity(repository, payload.daily_sales, config)
        return {"profiles_count": result.count, "profiles": result.profiles}
    except DataAccessError as e:
        logger.error(f"Data access failure in elasticity learning: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        logger.warning(f"Validation error in elasticity learning: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error in elasticity learning: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Elasticity learning failed: {str(e)}")


@router.get("/elasticity/profiles")
async def list_profiles(repository: PromoRepository = Depends(get_repository)):
    """List all learned promotion profiles."""
    try:
        profiles = await repository.get_product_profiles()
    except DataAccessError as e:
        logger.error(f"Failed to retrieve profiles: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return {"profiles": profiles, "count": len(profiles)}


@router.get("/elasticity/profiles/{product_code}")
async def get_profile(product_code: str, repository: PromoRepository = Depends(get_repository)):
    """Get the promotion profile of one product."""
    try:
        profile = await repository.get_product_profile(product_code)
    except DataAccessError as e:
        logger.error(f"Failed to retrieve profile for {product_code}: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    if profile is None:
        raise HTTPException(status_code=404, detail=f"No promotion profile for product {product_code}")
    return profile


@router.get("/elasticity/category-average")
async def get_category_average(repository: PromoRepository = Depends(get_repository)):
    """Category-wide uplift used for products without a profile."""
    try:
        return await repository.get_category_average_uplift()
    except DataAccessError as e:
        logger.error(f"Failed to compute category average: {e}")
        raise HTTPException(status_code=503, detail=str(e))
