"""initial valuation schema

Revision ID: 3f9c1a7d2b10
Revises:
Create Date: 2026-10-18 09:12:44.218533
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '3f9c1a7d2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('created_at', sa.Integer(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'categories',
        *_base_columns(),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('business_id', 'name', name='uq_categories_business_name'),
    )
    op.create_index('ix_categories_id', 'categories', ['id'])
    op.create_index('ix_categories_business_id', 'categories', ['business_id'])

    op.create_table(
        'items',
        *_base_columns(),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('parent_item_id', sa.Integer(), sa.ForeignKey('items.id'), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('variant_name', sa.String(length=100), nullable=True),
        sa.Column('unit_type', sa.String(length=32), nullable=False),
        sa.Column('current_stock', sa.Numeric(12, 3), nullable=False),
        sa.Column('current_sell_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('min_stock_level', sa.Numeric(12, 3), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_items_id', 'items', ['id'])
    op.create_index('ix_items_business_id', 'items', ['business_id'])
    op.create_index('idx_items_parent', 'items', ['parent_item_id'])

    op.create_table(
        'inventory_batches',
        *_base_columns(),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('items.id'), nullable=False),
        sa.Column('initial_quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('quantity_remaining', sa.Numeric(12, 3), nullable=False),
        sa.Column('buy_price_per_unit', sa.Numeric(12, 2), nullable=False),
        sa.Column('received_at', sa.Integer(), nullable=False),
        sa.Column('source_reference', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity_remaining >= 0', name='ck_batches_remaining_non_negative'),
        sa.CheckConstraint('quantity_remaining <= initial_quantity', name='ck_batches_remaining_le_initial'),
    )
    op.create_index('ix_inventory_batches_id', 'inventory_batches', ['id'])
    op.create_index('ix_inventory_batches_business_id', 'inventory_batches', ['business_id'])
    op.create_index('idx_inventory_batches_received_at', 'inventory_batches', ['item_id', 'received_at', 'id'])

    op.create_table(
        'batch_consumptions',
        *_base_columns(),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('items.id'), nullable=False),
        sa.Column('batch_id', sa.Integer(), sa.ForeignKey('inventory_batches.id'), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit_cost', sa.Numeric(12, 2), nullable=False),
        sa.Column('reference_type', sa.String(length=32), nullable=False),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('consumed_at', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_batch_consumptions_id', 'batch_consumptions', ['id'])
    op.create_index('ix_batch_consumptions_business_id', 'batch_consumptions', ['business_id'])
    op.create_index('idx_batch_consumptions_item_time', 'batch_consumptions', ['item_id', 'consumed_at'])
    op.create_index('idx_batch_consumptions_reference', 'batch_consumptions', ['reference_type', 'reference_id'])

    op.create_table(
        'stock_adjustments',
        *_base_columns(),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('items.id'), nullable=False),
        sa.Column('system_stock', sa.Numeric(12, 3), nullable=False),
        sa.Column('actual_stock', sa.Numeric(12, 3), nullable=False),
        sa.Column('difference', sa.Numeric(12, 3), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('adjusted_by', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stock_adjustments_id', 'stock_adjustments', ['id'])
    op.create_index('ix_stock_adjustments_business_id', 'stock_adjustments', ['business_id'])
    op.create_index('idx_stock_adjustments_date', 'stock_adjustments', ['business_id', 'created_at'])

    op.create_table(
        'selling_prices',
        *_base_columns(),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('items.id'), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('effective_from', sa.Integer(), nullable=False),
        sa.Column('set_by', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_selling_prices_id', 'selling_prices', ['id'])
    op.create_index('idx_selling_prices_item_effective', 'selling_prices', ['item_id', 'effective_from'])

    op.create_table(
        'expenses',
        *_base_columns(),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('frequency', sa.String(length=32), nullable=False),
        sa.Column('start_date', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_expenses_id', 'expenses', ['id'])
    op.create_index('ix_expenses_business_id', 'expenses', ['business_id'])
    op.create_index('idx_expenses_active', 'expenses', ['business_id', 'active'])

    op.create_table(
        'sales',
        *_base_columns(),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('sale_date', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sales_id', 'sales', ['id'])
    op.create_index('ix_sales_business_id', 'sales', ['business_id'])
    op.create_index('idx_sales_business_date', 'sales', ['business_id', 'sale_date'])

    op.create_table(
        'sale_items',
        *_base_columns(),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id'), nullable=False),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('items.id'), nullable=False),
        sa.Column('inventory_batch_id', sa.Integer(), sa.ForeignKey('inventory_batches.id'), nullable=True),
        sa.Column('quantity_sold', sa.Numeric(12, 3), nullable=False),
        sa.Column('sell_price_per_unit', sa.Numeric(12, 2), nullable=False),
        sa.Column('buy_price_per_unit', sa.Numeric(12, 2), nullable=False),
        sa.Column('profit', sa.Numeric(12, 2), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sale_items_id', 'sale_items', ['id'])
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])
    op.create_index('ix_sale_items_item_id', 'sale_items', ['item_id'])
    print("✓ [3f9c1a7d2b10] Created valuation schema")


def downgrade() -> None:
    for table in (
        'sale_items',
        'sales',
        'expenses',
        'selling_prices',
        'stock_adjustments',
        'batch_consumptions',
        'inventory_batches',
        'items',
        'categories',
    ):
        op.drop_table(table)
