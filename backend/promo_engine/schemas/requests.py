from pydantic import BaseModel, Field
from typing import Any, Dict, List


class SalesPayload(BaseModel):
    """
    Raw daily sales rows as extracted upstream. Rows stay loosely typed so that
    one malformed row is coerced instead of rejecting the whole request.
    """
    daily_sales: List[Dict[str, Any]] = Field(default_factory=list)


class RecommendationPayload(SalesPayload):
    stock_by_product: Dict[str, float] = Field(default_factory=dict)
