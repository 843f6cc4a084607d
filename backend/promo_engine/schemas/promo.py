from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime


class ElasticityClass(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


class PromotionEvent(BaseModel):
    """
    Schema for one historical promotion period of one product.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    product_code: str = Field(alias="productCode")
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    promo_price: Optional[float] = Field(None, alias="promoPrice")
    discount_percent: Optional[float] = Field(None, alias="discountPercent")
    source_file: str = Field("", alias="sourceFile")

    @field_validator("product_code")
    def clean_product_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("product_code must not be empty")
        return v

    @model_validator(mode="after")
    def ordered_period(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class ProductPromoProfile(BaseModel):
    """
    Schema for the learned promotion profile of a product.
    """
    model_config = ConfigDict(frozen=True)

    product_code: str
    avg_uplift: float = Field(gt=0)
    max_uplift: float
    uplift_std: float = Field(ge=0)
    confidence_score: float = Field(ge=0, le=1)
    elasticity_class: ElasticityClass
    sample_count: int = Field(ge=1)
    updated_at: Optional[datetime] = None


class CategoryAverage(BaseModel):
    """
    Category-wide fallback for products that have no profile.
    """
    avg_uplift: float = 1.2
    confidence_score: float = 0.5


class LearningResult(BaseModel):
    profiles: List[ProductPromoProfile]
    count: int


class DeclineResult(BaseModel):
    """
    Schema for a product whose recent volume is falling.
    """
    product_code: str
    change_percent: float
    avg_first_half: float
    avg_second_half: float


class Recommendation(BaseModel):
    """
    Schema for one ranked promotion recommendation. Computed per request, never stored.
    """
    product_code: str
    product_name: str
    elasticity_class: ElasticityClass
    confidence_score: float
    avg_uplift: float
    suggested_discount_percent: float
    suggested_days: int
    rationale: str
    is_declining: bool
    change_percent: Optional[float] = None
    last_period_quantity: float
    last_period_amount: float
    expected_uplift: float
    expected_additional_quantity: float = Field(ge=0)
    expected_additional_revenue: float = Field(ge=0)
