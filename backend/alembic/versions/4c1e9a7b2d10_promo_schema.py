"""promotion events and product promo profiles

Revision ID: 4c1e9a7b2d10
Revises: 
Create Date: 2026-10-19 09:12:31.502114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '4c1e9a7b2d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PrimaryKey = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        'promotion_events',
        sa.Column('id', PrimaryKey, primary_key=True, autoincrement=True),
        sa.Column('product_code', sa.String(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('promo_price', sa.Float(), nullable=True),
        sa.Column('discount_percent', sa.Float(), nullable=True),
        sa.Column('source_file', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_promo_product', 'promotion_events', ['product_code'])
    op.create_index('idx_promo_dates', 'promotion_events', ['start_date', 'end_date'])

    op.create_table(
        'product_promo_profile',
        sa.Column('id', PrimaryKey, primary_key=True, autoincrement=True),
        sa.Column('product_code', sa.String(), nullable=False, unique=True),
        sa.Column('avg_uplift', sa.Float(), nullable=False),
        sa.Column('max_uplift', sa.Float(), nullable=False),
        sa.Column('uplift_std', sa.Float(), nullable=False),
        sa.Column('confidence_score', sa.Float(), nullable=False),
        sa.Column('elasticity_class', sa.String(), nullable=False),
        sa.Column('sample_count', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('product_promo_profile')
    op.drop_index('idx_promo_dates', table_name='promotion_events')
    op.drop_index('idx_promo_product', table_name='promotion_events')
    op.drop_table('promotion_events')
