from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date


class DailySalesRecord(BaseModel):
    """
    Schema for one extracted sales row. A row may be a product-day aggregate
    or a single transaction line; the aggregator sums either.
    """
    model_config = ConfigDict(populate_by_name=True)

    date: date
    product_code: str = Field(alias="productCode")
    product_name: Optional[str] = Field(None, alias="productName")
    quantity: float = Field(0, ge=0)
    amount: float = Field(0, ge=0)


class ProductSalesTotals(BaseModel):
    """
    Schema for per-product totals over a recent sales period.
    """
    product_code: str
    product_name: str = ""
    quantity: float = 0.0
    amount: float = 0.0
    day_count: int = 0
