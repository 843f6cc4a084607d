# Ensure all model classes are imported and registered on Base.metadata
from .promo import PromotionEventRecord, ProductPromoProfileRecord  # noqa: F401
