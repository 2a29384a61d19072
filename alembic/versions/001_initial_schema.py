"""Initial schema - shops and image_logs

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'shops',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('domain', sa.String(length=255), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('scope', sa.Text(), nullable=True),
        sa.Column('is_pro', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_scan_at', sa.TIMESTAMP(timezone=False), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shops_domain', 'shops', ['domain'], unique=True)

    op.create_table(
        'image_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('shop_id', sa.String(length=36), nullable=False),
        sa.Column('shopify_asset_id', sa.Text(), nullable=False),
        sa.Column('shopify_product_id', sa.String(length=32), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('image_name', sa.Text(), nullable=False),
        sa.Column('format', sa.String(length=8), nullable=False),
        sa.Column('original_size', sa.Integer(), nullable=False),
        sa.Column('optimized_size', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('sync_status', sa.String(length=16), nullable=False, server_default='not_synced'),
        sa.Column('synced_at', sa.TIMESTAMP(timezone=False), nullable=True),
        sa.Column('original_s3_key', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column('optimized_at', sa.TIMESTAMP(timezone=False), nullable=True),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_image_logs_shop_id', 'image_logs', ['shop_id'], unique=False)
    op.create_index('ix_image_logs_status', 'image_logs', ['status'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_image_logs_status', table_name='image_logs')
    op.drop_index('ix_image_logs_shop_id', table_name='image_logs')
    op.drop_table('image_logs')
    op.drop_index('ix_shops_domain', table_name='shops')
    op.drop_table('shops')
