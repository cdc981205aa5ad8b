"""Create catalog tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create products, categories, product_categories, sub_products and promotions."""
    # Products table
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('slug', sa.String(500), nullable=False, server_default='', index=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('supplier', sa.String(200), nullable=True),
        sa.Column('expiry_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    # Categories table
    op.create_table(
        'categories',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
    )

    # Product/category links; removed together with their product
    op.create_table(
        'product_categories',
        sa.Column('product_id', sa.Uuid(),
                  sa.ForeignKey('products.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('category_id', sa.Uuid(),
                  sa.ForeignKey('categories.id'), primary_key=True, index=True),
    )

    # Variants table; removed together with their product
    op.create_table(
        'sub_products',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('product_id', sa.Uuid(),
                  sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('size', sa.String(50), nullable=False, server_default='', index=True),
        sa.Column('color', sa.String(50), nullable=False, server_default='', index=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # Promotions table
    op.create_table(
        'promotions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('code', sa.String(100), nullable=False, index=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('value', sa.Numeric(12, 2), nullable=False),
        sa.Column('available_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, index=True),
    )


def downgrade() -> None:
    """Drop catalog tables."""
    op.drop_table('promotions')
    op.drop_table('sub_products')
    op.drop_table('product_categories')
    op.drop_table('categories')
    op.drop_table('products')
