"""menus, document audit and inventory adjustment links

Revision ID: 8c4e2d71f5a3
Revises: 3b1f0c2a9d47
Create Date: 2026-10-19 16:41:07.502913
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '8c4e2d71f5a3'
down_revision: Union[str, None] = '3b1f0c2a9d47'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _id_index(table: str) -> None:
    op.create_index(op.f(f'ix_{table}_id'), table, ['id'], unique=False)


def upgrade() -> None:
    with op.batch_alter_table('documents') as batch_op:
        batch_op.add_column(sa.Column('updated_by', sa.Integer(), nullable=True))

    with op.batch_alter_table('inventory_counts') as batch_op:
        batch_op.add_column(sa.Column('surplus_document_id', sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column('shortage_document_id', sa.Integer(), nullable=True))
        batch_op.create_foreign_key(
            'fk_inventory_counts_surplus_document_id', 'documents',
            ['surplus_document_id'], ['id'], ondelete='SET NULL'
        )
        batch_op.create_foreign_key(
            'fk_inventory_counts_shortage_document_id', 'documents',
            ['shortage_document_id'], ['id'], ondelete='SET NULL'
        )

    # Security settings had no consumer
    op.execute("DELETE FROM system_settings WHERE category = 'security'")

    op.create_table(
        'menus',
        *_base_columns(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    _id_index('menus')

    op.create_table(
        'menu_categories',
        *_base_columns(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    _id_index('menu_categories')

    op.create_table(
        'menu_items',
        *_base_columns(),
        sa.Column('menu_id', sa.Integer(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('recipe_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(14, 2), nullable=False),
        sa.Column('cost_price', sa.Numeric(14, 2), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('is_available', sa.Boolean(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['menu_id'], ['menus.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['menu_categories.id']),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('menu_id', 'name', name='uq_menu_item_menu_name'),
    )
    _id_index('menu_items')
    for column in ('menu_id', 'category_id', 'recipe_id'):
        op.create_index(op.f(f'ix_menu_items_{column}'), 'menu_items', [column], unique=False)

    op.create_table(
        'warehouse_menus',
        *_base_columns(),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('menu_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['menu_id'], ['menus.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('warehouse_id', 'menu_id', name='uq_warehouse_menu_warehouse_menu'),
    )
    _id_index('warehouse_menus')
    for column in ('warehouse_id', 'menu_id'):
        op.create_index(op.f(f'ix_warehouse_menus_{column}'), 'warehouse_menus', [column], unique=False)
    print("✓ [8c4e2d71f5a3] Created menu tables and document audit columns")


def downgrade() -> None:
    for table in ('warehouse_menus', 'menu_items', 'menu_categories', 'menus'):
        op.drop_table(table)

    with op.batch_alter_table('inventory_counts') as batch_op:
        batch_op.drop_constraint('fk_inventory_counts_shortage_document_id', type_='foreignkey')
        batch_op.drop_constraint('fk_inventory_counts_surplus_document_id', type_='foreignkey')
        batch_op.drop_column('shortage_document_id')
        batch_op.drop_column('surplus_document_id')

    with op.batch_alter_table('documents') as batch_op:
        batch_op.drop_column('updated_by')
