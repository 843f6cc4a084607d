from sqlalchemy import Column, String, Date, DateTime, Float, Integer, BigInteger, Index
from sqlalchemy.sql import func
from promo_engine.core.db import Base

# SQLite only autoincrements INTEGER primary keys
PrimaryKey = BigInteger().with_variant(Integer, "sqlite")


class PromotionEventRecord(Base):
    """
    One historical promotion period for one product.
    Fields:
        - id: BigInteger primary key
        - product_code: Product identifier
        - start_date / end_date: Inclusive promotion period
        - promo_price: Optional promotional price
        - discount_percent: Optional discount
        - source_file: File the event was imported from
        - created_at: Timestamp of import
    """
    __tablename__ = "promotion_events"
    __table_args__ = (
        Index("idx_promo_product", "product_code"),
        Index("idx_promo_dates", "start_date", "end_date"),
    )
    id = Column(PrimaryKey, primary_key=True, autoincrement=True)
    product_code = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    promo_price = Column(Float, nullable=True)
    discount_percent = Column(Float, nullable=True)
    source_file = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class ProductPromoProfileRecord(Base):
    """
    Learned promotion response of one product. Replaced whole on every learning run.
    """
    __tablename__ = "product_promo_profile"
    id = Column(PrimaryKey, primary_key=True, autoincrement=True)
    product_code = Column(String, nullable=False, unique=True)
    avg_uplift = Column(Float, nullable=False)
    max_uplift = Column(Float, nullable=False)
    uplift_std = Column(Float, nullable=False)
    confidence_score = Column(Float, nullable=False)
    elasticity_class = Column(String, nullable=False)
    sample_count = Column(Integer, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)
