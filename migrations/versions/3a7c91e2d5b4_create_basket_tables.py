"""create basketitem and wishlistrotation tables

Revision ID: 3a7c91e2d5b4
Revises: 
Create Date: 2026-10-19 10:12:41.305522

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3a7c91e2d5b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'basketitem',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('public_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('product_id', sa.String(length=128), nullable=False),
        sa.Column('title', sa.String(length=512), nullable=True),
        sa.Column('image', sa.String(length=1024), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(length=32), nullable=False),
        sa.Column('affiliate_url', sa.String(length=2048), nullable=False),
        sa.Column('price_at_add', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('frequency', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('frequency_type', sa.String(length=16), nullable=False),
        sa.Column('next_due_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_basketitem_user_id_product_id'),
    )
    op.create_index(op.f('ix_basketitem_public_id'), 'basketitem', ['public_id'], unique=True)
    op.create_index(op.f('ix_basketitem_user_id'), 'basketitem', ['user_id'], unique=False)
    op.create_index(op.f('ix_basketitem_email'), 'basketitem', ['email'], unique=False)
    op.create_index(op.f('ix_basketitem_product_id'), 'basketitem', ['product_id'], unique=False)
    op.create_index(op.f('ix_basketitem_frequency_type'), 'basketitem', ['frequency_type'], unique=False)
    op.create_index(op.f('ix_basketitem_next_due_at'), 'basketitem', ['next_due_at'], unique=False)
    op.create_index(op.f('ix_basketitem_status'), 'basketitem', ['status'], unique=False)
    op.create_index('ix_basketitem_status_next_due_at', 'basketitem', ['status', 'next_due_at'], unique=False)

    op.create_table(
        'wishlistrotation',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('current_index', sa.Integer(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('wishlistrotation')
    op.drop_index('ix_basketitem_status_next_due_at', table_name='basketitem')
    op.drop_index(op.f('ix_basketitem_status'), table_name='basketitem')
    op.drop_index(op.f('ix_basketitem_next_due_at'), table_name='basketitem')
    op.drop_index(op.f('ix_basketitem_frequency_type'), table_name='basketitem')
    op.drop_index(op.f('ix_basketitem_product_id'), table_name='basketitem')
    op.drop_index(op.f('ix_basketitem_email'), table_name='basketitem')
    op.drop_index(op.f('ix_basketitem_user_id'), table_name='basketitem')
    op.drop_index(op.f('ix_basketitem_public_id'), table_name='basketitem')
    op.drop_table('basketitem')
