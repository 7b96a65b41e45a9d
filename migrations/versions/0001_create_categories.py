"""create categories table

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'categories',
        sa.Column('category_id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('icon', sa.String(length=100), nullable=True),
        sa.Column('parent_id', sa.Uuid(), nullable=True),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('meta_title', sa.String(length=200), nullable=True),
        sa.Column('meta_description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ['parent_id'], ['categories.category_id'],
            name='categories_parent_fk', ondelete='SET NULL',
        ),
    )
    op.create_index('category_slug_idx', 'categories', ['slug'], unique=True)
    op.create_index('category_parent_idx', 'categories', ['parent_id'])
    op.create_index('category_active_idx', 'categories', ['is_active'])
    op.create_index('category_featured_idx', 'categories', ['is_featured'])
    print("✓ [0001] Created categories")


def downgrade() -> None:
    op.drop_index('category_featured_idx', table_name='categories')
    op.drop_index('category_active_idx', table_name='categories')
    op.drop_index('category_parent_idx', table_name='categories')
    op.drop_index('category_slug_idx', table_name='categories')
    op.drop_table('categories')
