"""initial back-office schema

Revision ID: 3b1f0c2a9d47
Revises:
Create Date: 2026-10-19 10:12:40.118532
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '3b1f0c2a9d47'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

unit_type = sa.Enum('WEIGHT', 'VOLUME', 'PIECE', 'LENGTH', name='unittype')
warehouse_type = sa.Enum('MAIN', 'KITCHEN', 'RETAIL', name='warehousetype')
document_type = sa.Enum('RECEIPT', 'TRANSFER', 'WRITEOFF', 'INVENTORY_ADJUSTMENT', name='documenttype')
document_status = sa.Enum('DRAFT', 'APPROVED', 'CANCELLED', name='documentstatus')
movement_type = sa.Enum(
    'IN', 'OUT', 'TRANSFER_IN', 'TRANSFER_OUT', 'WRITEOFF', 'PRODUCTION_USE', name='movementtype'
)
inventory_count_status = sa.Enum('DRAFT', 'COMPLETED', name='inventorycountstatus')


def _base_columns():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _id_index(table: str) -> None:
    op.create_index(op.f(f'ix_{table}_id'), table, ['id'], unique=False)


def upgrade() -> None:
    op.create_table(
        'units',
        *_base_columns(),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('short_name', sa.String(length=20), nullable=False),
        sa.Column('type', unit_type, nullable=False),
        sa.Column('base_unit_id', sa.Integer(), nullable=True),
        sa.Column('conversion_factor', sa.Numeric(18, 6), nullable=False),
        sa.ForeignKeyConstraint(['base_unit_id'], ['units.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sa.UniqueConstraint('short_name'),
    )
    _id_index('units')

    op.create_table(
        'categories',
        *_base_columns(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.ForeignKeyConstraint(['parent_id'], ['categories.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    _id_index('categories')

    op.create_table(
        'products',
        *_base_columns(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('article', sa.String(length=50), nullable=True),
        sa.Column('barcode', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('shelf_life_days', sa.Integer(), nullable=True),
        sa.Column('storage_conditions', sa.String(length=255), nullable=True),
        sa.Column('min_stock', sa.Numeric(14, 3), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _id_index('products')
    op.create_index(op.f('ix_products_name'), 'products', ['name'], unique=False)
    op.create_index(op.f('ix_products_article'), 'products', ['article'], unique=True)

    op.create_table(
        'warehouses',
        *_base_columns(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', warehouse_type, nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    _id_index('warehouses')

    op.create_table(
        'suppliers',
        *_base_columns(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('inn', sa.String(length=20), nullable=True),
        sa.Column('contact_person', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=100), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('inn'),
    )
    _id_index('suppliers')

    op.create_table(
        'documents',
        *_base_columns(),
        sa.Column('number', sa.String(length=50), nullable=False),
        sa.Column('type', document_type, nullable=False),
        sa.Column('status', document_status, nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('warehouse_from_id', sa.Integer(), nullable=True),
        sa.Column('warehouse_to_id', sa.Integer(), nullable=True),
        sa.Column('total_amount', sa.Numeric(16, 2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id']),
        sa.ForeignKeyConstraint(['warehouse_from_id'], ['warehouses.id']),
        sa.ForeignKeyConstraint(['warehouse_to_id'], ['warehouses.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('number'),
    )
    _id_index('documents')

    op.create_table(
        'document_items',
        *_base_columns(),
        sa.Column('document_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Numeric(14, 3), nullable=False),
        sa.Column('price', sa.Numeric(14, 2), nullable=False),
        sa.Column('total', sa.Numeric(16, 2), nullable=False),
        sa.Column('batch_number', sa.String(length=50), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _id_index('document_items')
    op.create_index(op.f('ix_document_items_document_id'), 'document_items', ['document_id'], unique=False)

    op.create_table(
        'stock_balances',
        *_base_columns(),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Numeric(14, 3), nullable=False),
        sa.Column('avg_price', sa.Numeric(14, 4), nullable=False),
        sa.Column('total_value', sa.Numeric(16, 2), nullable=False),
        sa.Column('last_movement_date', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('warehouse_id', 'product_id', name='uq_stock_balance_warehouse_product'),
    )
    _id_index('stock_balances')
    op.create_index(op.f('ix_stock_balances_warehouse_id'), 'stock_balances', ['warehouse_id'], unique=False)
    op.create_index(op.f('ix_stock_balances_product_id'), 'stock_balances', ['product_id'], unique=False)

    op.create_table(
        'stock_movements',
        *_base_columns(),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('type', movement_type, nullable=False),
        sa.Column('quantity', sa.Numeric(14, 3), nullable=False),
        sa.Column('price', sa.Numeric(14, 4), nullable=False),
        sa.Column('document_id', sa.Integer(), nullable=True),
        sa.Column('reverses_id', sa.Integer(), nullable=True),
        sa.Column('batch_number', sa.String(length=50), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id']),
        sa.ForeignKeyConstraint(['reverses_id'], ['stock_movements.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _id_index('stock_movements')
    op.create_index(op.f('ix_stock_movements_warehouse_id'), 'stock_movements', ['warehouse_id'], unique=False)
    op.create_index(op.f('ix_stock_movements_product_id'), 'stock_movements', ['product_id'], unique=False)
    op.create_index(op.f('ix_stock_movements_document_id'), 'stock_movements', ['document_id'], unique=False)

    op.create_table(
        'recipes',
        *_base_columns(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('portion_size', sa.Numeric(14, 3), nullable=False),
        sa.Column('cooking_time', sa.Integer(), nullable=True),
        sa.Column('difficulty_level', sa.Integer(), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('cost_price', sa.Numeric(14, 2), nullable=False),
        sa.Column('margin_percent', sa.Numeric(7, 2), nullable=False),
        sa.Column('selling_price', sa.Numeric(14, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    _id_index('recipes')

    op.create_table(
        'recipe_ingredients',
        *_base_columns(),
        sa.Column('recipe_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Numeric(14, 3), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('cost_per_unit', sa.Numeric(14, 4), nullable=True),
        sa.Column('is_main', sa.Boolean(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _id_index('recipe_ingredients')
    op.create_index(op.f('ix_recipe_ingredients_recipe_id'), 'recipe_ingredients', ['recipe_id'], unique=False)
    op.create_index(op.f('ix_recipe_ingredients_product_id'), 'recipe_ingredients', ['product_id'], unique=False)

    op.create_table(
        'inventory_counts',
        *_base_columns(),
        sa.Column('number', sa.String(length=50), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', inventory_count_status, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('number'),
    )
    _id_index('inventory_counts')

    op.create_table(
        'inventory_count_items',
        *_base_columns(),
        sa.Column('inventory_count_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('system_quantity', sa.Numeric(14, 3), nullable=False),
        sa.Column('actual_quantity', sa.Numeric(14, 3), nullable=True),
        sa.Column('price', sa.Numeric(14, 4), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['inventory_count_id'], ['inventory_counts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _id_index('inventory_count_items')
    op.create_index(
        op.f('ix_inventory_count_items_inventory_count_id'), 'inventory_count_items', ['inventory_count_id'], unique=False
    )

    op.create_table(
        'system_settings',
        *_base_columns(),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('key'),
    )
    _id_index('system_settings')
    op.create_index(op.f('ix_system_settings_category'), 'system_settings', ['category'], unique=False)
    print("✓ [3b1f0c2a9d47] Created back-office tables")


def downgrade() -> None:
    for table in (
        'system_settings', 'inventory_count_items', 'inventory_counts', 'recipe_ingredients', 'recipes',
        'stock_movements', 'stock_balances', 'document_items', 'documents', 'suppliers', 'warehouses',
        'products', 'categories', 'units',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (inventory_count_status, movement_type, document_status, document_type, warehouse_type, unit_type):
        enum.drop(bind, checkfirst=True)
