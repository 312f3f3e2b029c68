"""create products, stock transactions and rollover tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('stock_awal', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('keluar_manual', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('keluar_pos', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stock_akhir', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('qty_di_pesan', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('selisih', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('days_to_order', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_products_name', 'products', ['name'], unique=False)

    op.create_table(
        'stock_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column(
            'transaction_type',
            sa.Enum('IN', 'OUT', 'ADJUSTMENT', name='stock_transaction_type'),
            nullable=False,
        ),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('previous_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('new_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('dimension', sa.String(length=20), nullable=True),
        sa.Column('reason', sa.String(length=500), nullable=True),
        sa.Column('reference_number', sa.String(length=100), nullable=True),
        sa.Column('created_by', sa.String(length=100), nullable=False, server_default='system'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_stock_transactions_product_id', 'stock_transactions', ['product_id'], unique=False)
    op.create_index('ix_stock_transactions_created_at', 'stock_transactions', ['created_at'], unique=False)

    op.create_table(
        'stock_rollovers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('executed_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('executed_by', sa.String(length=100), nullable=False, server_default='system'),
        sa.Column('product_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('archive_file', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_stock_rollovers_executed_at', 'stock_rollovers', ['executed_at'], unique=False)


def downgrade():
    op.drop_index('ix_stock_rollovers_executed_at', table_name='stock_rollovers')
    op.drop_table('stock_rollovers')
    op.drop_index('ix_stock_transactions_created_at', table_name='stock_transactions')
    op.drop_index('ix_stock_transactions_product_id', table_name='stock_transactions')
    op.drop_table('stock_transactions')
    op.drop_index('ix_products_name', table_name='products')
    op.drop_table('products')
    sa.Enum(name='stock_transaction_type').drop(op.get_bind(), checkfirst=True)
