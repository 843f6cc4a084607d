from fastapi import APIRouter, Body, Depends, HTTPException
from typing import List
import logging

from promo_engine.core.db import get_repository
from promo_engine.core.errors import DataAccessError
from promo_engine.repositories.base import PromoRepository
from promo_engine.schemas.promo import PromotionEvent

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/promotions/import")
async def import_promotion_history(
    events: List[PromotionEvent] = Body(...),
    repository: PromoRepository = Depends(get_repository)
):
    """Replace the whole promotion history with the given events."""
    try:
        imported = await repository.replace_promotion_events(events)
    except DataAccessError as e:
        logger.error(f"Promotion history import failed: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return {"imported": imported}


@router.get("/promotions/count")
async def promotion_events_count(repository: PromoRepository = Depends(get_repository)):
    try:
        count = await repository.count_promotion_events()
    except DataAccessError as e:
        logger.error(f"Failed to count promotion events: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return {"count": count}
