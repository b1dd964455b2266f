"""create_commerce_tables

Revision ID: 5f3a9c21d7e4
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5f3a9c21d7e4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ORDER_STATUS = sa.Enum(
    'pending', 'processing', 'shipped', 'delivered', 'cancelled', 'refunded',
    'partially_refunded', 'on_hold', 'awaiting_payment', 'payment_failed',
    'ready_for_pickup',
    name='commerce_order_status_enum',
)
PAYMENT_STATUS = sa.Enum(
    'pending', 'paid', 'partially_paid', 'failed', 'cancelled', 'refunded',
    'partially_refunded', 'authorized', 'captured',
    name='commerce_payment_status_enum',
)
ORDER_ITEM_STATUS = sa.Enum(
    'pending', 'processing', 'shipped', 'delivered', 'cancelled', 'refunded',
    'partially_refunded', 'returned', 'exchanged',
    name='commerce_order_item_status_enum',
)
TRANSACTION_TYPE = sa.Enum(
    'payment', 'refund', 'partial_refund', 'chargeback', 'fee', 'commission',
    'adjustment', 'transfer', 'withdrawal',
    name='commerce_transaction_type_enum',
)
TRANSACTION_STATUS = sa.Enum(
    'pending', 'processing', 'completed', 'failed', 'cancelled', 'refunded',
    'disputed', 'on_hold',
    name='commerce_transaction_status_enum',
)
ROUNDING_METHOD = sa.Enum(
    'round', 'floor', 'ceil',
    name='commerce_rounding_method_enum',
)


def upgrade() -> None:
    """Upgrade schema - Create commerce tables."""

    # Orders
    op.create_table(
        'commerce_orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('store_id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=True),
        sa.Column('external_order_id', sa.String(length=100), nullable=True),
        sa.Column('order_number', sa.String(length=100), nullable=False),
        sa.Column('reference_id', sa.String(length=100), nullable=True),
        sa.Column('status', ORDER_STATUS, server_default='pending', nullable=False),
        sa.Column('payment_status', PAYMENT_STATUS, server_default='pending', nullable=False),
        sa.Column('payment_method', sa.String(length=50), nullable=True),
        sa.Column('payment_gateway', sa.String(length=50), nullable=True),
        sa.Column('subtotal', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('tax_amount', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('shipping_cost', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('discount_amount', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('currency', sa.String(length=3), server_default='SAR', nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=50), nullable=True),
        sa.Column('shipping_address', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('tracking_number', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('shipped_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('subtotal >= 0', name='ck_commerce_orders_subtotal_non_negative'),
        sa.CheckConstraint('total_amount >= 0', name='ck_commerce_orders_total_non_negative'),
        sa.PrimaryKeyConstraint('id', name='pk_commerce_orders'),
        sa.UniqueConstraint('store_id', 'order_number', name='uq_commerce_orders_store_number'),
    )
    op.create_index('ix_commerce_orders_store_id', 'commerce_orders', ['store_id'])
    op.create_index('ix_commerce_orders_status', 'commerce_orders', ['status'])
    op.create_index('ix_commerce_orders_payment_status', 'commerce_orders', ['payment_status'])

    # Order line items
    op.create_table(
        'commerce_order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('store_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=True),
        sa.Column('product_name', sa.String(length=500), nullable=False),
        sa.Column('product_sku', sa.String(length=255), nullable=True),
        sa.Column('variant_name', sa.String(length=255), nullable=True),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('discount_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', ORDER_ITEM_STATUS, server_default='pending', nullable=False),
        sa.Column('is_returnable', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('return_period_days', sa.Integer(), server_default='14', nullable=False),
        sa.Column('returned_quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_commerce_order_items_positive_quantity'),
        sa.CheckConstraint('total_price >= 0', name='ck_commerce_order_items_total_price_non_negative'),
        sa.ForeignKeyConstraint(
            ['order_id'], ['commerce_orders.id'],
            name='fk_commerce_order_items_order_id_commerce_orders',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_commerce_order_items'),
    )
    op.create_index('ix_commerce_order_items_order_id', 'commerce_order_items', ['order_id'])
    op.create_index('ix_commerce_order_items_store_id', 'commerce_order_items', ['store_id'])

    # Transactions
    op.create_table(
        'commerce_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('store_id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=True),
        sa.Column('external_transaction_id', sa.String(length=255), nullable=True),
        sa.Column('transaction_number', sa.String(length=100), nullable=False),
        sa.Column('reference_number', sa.String(length=255), nullable=True),
        sa.Column('transaction_type', TRANSACTION_TYPE, nullable=False),
        sa.Column('transaction_status', TRANSACTION_STATUS, server_default='pending', nullable=False),
        sa.Column('amount', sa.Numeric(15, 4), nullable=False),
        sa.Column('currency_code', sa.String(length=3), server_default='SAR', nullable=False),
        sa.Column('gateway_fee', sa.Numeric(15, 4), server_default='0', nullable=False),
        sa.Column('platform_fee', sa.Numeric(15, 4), server_default='0', nullable=False),
        sa.Column('tax_amount', sa.Numeric(15, 4), server_default='0', nullable=False),
        sa.Column('net_amount', sa.Numeric(15, 4), nullable=True),
        sa.Column('payment_method', sa.String(length=100), nullable=True),
        sa.Column('payment_gateway', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('transaction_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reconciled', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('reconciled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reconciliation_reference', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['order_id'], ['commerce_orders.id'],
            name='fk_commerce_transactions_order_id_commerce_orders',
            ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_commerce_transactions'),
        sa.UniqueConstraint('external_transaction_id', name='uq_commerce_transactions_external_transaction_id'),
    )
    op.create_index('ix_commerce_transactions_store_id', 'commerce_transactions', ['store_id'])
    op.create_index('ix_commerce_transactions_order_id', 'commerce_transactions', ['order_id'])
    op.create_index(
        'ix_commerce_transactions_store_status', 'commerce_transactions',
        ['store_id', 'transaction_status'],
    )

    # Currencies
    op.create_table(
        'commerce_currencies',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('store_id', sa.Uuid(), nullable=False),
        sa.Column('external_currency_id', sa.String(length=255), nullable=True),
        sa.Column('code', sa.String(length=3), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('symbol', sa.String(length=10), nullable=True),
        sa.Column('decimal_places', sa.Integer(), server_default='2', nullable=False),
        sa.Column('rounding_method', ROUNDING_METHOD, server_default='round', nullable=False),
        sa.Column('exchange_rate', sa.Numeric(15, 8), server_default='1', nullable=False),
        sa.Column('rate_source', sa.String(length=100), nullable=True),
        sa.Column('rate_provider', sa.String(length=255), nullable=True),
        sa.Column('last_rate_update', sa.DateTime(timezone=True), nullable=True),
        sa.Column('historical_rates', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('rate_history_retention_days', sa.Integer(), server_default='365', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('is_default', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('is_base_currency', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('total_transactions', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_volume', sa.Numeric(20, 8), server_default='0', nullable=False),
        sa.Column('average_transaction_amount', sa.Numeric(20, 8), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('activated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deactivated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_commerce_currencies'),
        sa.UniqueConstraint('store_id', 'code', name='uq_commerce_currencies_store_code'),
        sa.UniqueConstraint('external_currency_id', name='uq_commerce_currencies_external_currency_id'),
    )
    op.create_index('ix_commerce_currencies_store_id', 'commerce_currencies', ['store_id'])
    op.create_index(
        'ix_commerce_currencies_store_active', 'commerce_currencies',
        ['store_id', 'is_active'],
    )
    # At most one default and one base currency per store
    op.create_index(
        'uq_commerce_currencies_store_default', 'commerce_currencies', ['store_id'],
        unique=True, postgresql_where=sa.text('is_default'),
    )
    op.create_index(
        'uq_commerce_currencies_store_base', 'commerce_currencies', ['store_id'],
        unique=True, postgresql_where=sa.text('is_base_currency'),
    )

    # Product images
    op.create_table(
        'commerce_product_images',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('store_id', sa.Uuid(), nullable=False),
        sa.Column('external_image_id', sa.String(length=100), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('alt_text', sa.String(length=255), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('width', sa.Integer(), nullable=True),
        sa.Column('height', sa.Integer(), nullable=True),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('file_format', sa.String(length=10), nullable=True),
        sa.Column('is_main', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('view_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('click_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('optimization_score', sa.Numeric(3, 2), nullable=True),
        sa.Column('conversion_rate', sa.Numeric(5, 4), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('sort_order >= 0', name='ck_commerce_product_images_sort_order_non_negative'),
        sa.CheckConstraint('width > 0 AND height > 0', name='ck_commerce_product_images_dimensions_positive'),
        sa.CheckConstraint('file_size > 0', name='ck_commerce_product_images_file_size_positive'),
        sa.PrimaryKeyConstraint('id', name='pk_commerce_product_images'),
    )
    op.create_index('ix_commerce_product_images_product_id', 'commerce_product_images', ['product_id'])
    op.create_index('ix_commerce_product_images_store_id', 'commerce_product_images', ['store_id'])
    op.create_index(
        'ix_commerce_product_images_product_sort', 'commerce_product_images',
        ['product_id', 'sort_order'],
    )
    # At most one main image per product
    op.create_index(
        'uq_commerce_product_images_main', 'commerce_product_images', ['product_id'],
        unique=True, postgresql_where=sa.text('is_main'),
    )


def downgrade() -> None:
    """Downgrade schema - Drop commerce tables."""
    op.drop_table('commerce_product_images')
    op.drop_table('commerce_currencies')
    op.drop_table('commerce_transactions')
    op.drop_table('commerce_order_items')
    op.drop_table('commerce_orders')

    bind = op.get_bind()
    for enum_type in (
        ROUNDING_METHOD,
        TRANSACTION_STATUS,
        TRANSACTION_TYPE,
        ORDER_ITEM_STATUS,
        PAYMENT_STATUS,
        ORDER_STATUS,
    ):
        enum_type.drop(bind, checkfirst=True)
