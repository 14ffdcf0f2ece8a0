"""
Alembic migration: Initial dealer sales schema.

Creates users, vehicles, orders, order items, invoices, payments and
deliveries with their enum types, integrity constraints and indexes,
including the non-negative stock check and the partial unique index
allowing one live delivery per order.

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers, used by Alembic
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum(
    'customer', 'dealer_staff', 'dealer_manager', name='user_role'
)
order_status = sa.Enum(
    'pending', 'confirmed', 'cancelled', 'delivered', name='order_status'
)
invoice_status = sa.Enum(
    'pending', 'paid', 'overdue', 'cancelled', name='invoice_status'
)
payment_status = sa.Enum(
    'pending', 'paid', 'failed', 'refunded', name='payment_status'
)
delivery_status = sa.Enum(
    'scheduled', 'in_transit', 'delivered', 'cancelled', name='delivery_status'
)


def _timestamp_columns() -> list:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    ]


def _audit_columns() -> list:
    return [
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('updated_by', sa.String(length=255), nullable=True),
    ]


def upgrade() -> None:
    """
    Upgrade database schema to the initial dealer sales tables.
    """
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('role', user_role, nullable=False),
        *_timestamp_columns(),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        comment='Dealership customers and staff',
    )
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'vehicles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('model_name', sa.String(length=100), nullable=False),
        sa.Column('trim_name', sa.String(length=100), nullable=False),
        sa.Column('model_year', sa.Integer(), nullable=False),
        sa.Column('base_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('battery_capacity_kwh', sa.Numeric(precision=6, scale=2), nullable=True),
        sa.Column('range_km', sa.Integer(), nullable=True),
        sa.Column('charging_time_minutes', sa.Integer(), nullable=True),
        sa.Column('top_speed_kmh', sa.Integer(), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_vehicles'),
        sa.CheckConstraint('stock >= 0', name='ck_vehicles_stock_non_negative'),
        sa.CheckConstraint('base_price >= 0', name='ck_vehicles_base_price_non_negative'),
        sa.CheckConstraint(
            'model_year >= 1900 AND model_year <= 2100',
            name='ck_vehicles_model_year_range',
        ),
        comment='Vehicles with stock counters',
    )
    op.create_index('ix_vehicles_active_stock', 'vehicles', ['is_active', 'stock'])
    op.create_index('ix_vehicles_created_at', 'vehicles', ['created_at'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('staff_id', sa.Uuid(), nullable=True),
        sa.Column('status', order_status, nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('shipping_address', sa.String(length=500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamp_columns(),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
        sa.UniqueConstraint('order_number', name='uq_orders_order_number'),
        sa.ForeignKeyConstraint(
            ['customer_id'], ['users.id'],
            name='fk_orders_customer_id', ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['staff_id'], ['users.id'],
            name='fk_orders_staff_id', ondelete='SET NULL',
        ),
        sa.CheckConstraint('total_amount >= 0', name='ck_orders_total_non_negative'),
        comment='Customer orders',
    )
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_staff_id', 'orders', ['staff_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_index('ix_orders_customer_status', 'orders', ['customer_id', 'status'])
    op.create_index('ix_orders_status_created', 'orders', ['status', 'created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('vehicle_id', sa.Uuid(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_order_items'),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_order_items_order_id', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['vehicle_id'], ['vehicles.id'],
            name='fk_order_items_vehicle_id', ondelete='RESTRICT',
        ),
        sa.CheckConstraint(
            'unit_price >= 0', name='ck_order_items_unit_price_non_negative'
        ),
        comment='Order line items',
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_vehicle_id', 'order_items', ['vehicle_id'])
    op.create_index('ix_order_items_created_at', 'order_items', ['created_at'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', invoice_status, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_invoices'),
        sa.UniqueConstraint('invoice_number', name='uq_invoices_invoice_number'),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_invoices_order_id', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['customer_id'], ['users.id'],
            name='fk_invoices_customer_id', ondelete='RESTRICT',
        ),
        sa.CheckConstraint('total_amount >= 0', name='ck_invoices_total_non_negative'),
        comment='Order invoices',
    )
    op.create_index('ix_invoices_order_id', 'invoices', ['order_id'])
    op.create_index('ix_invoices_customer_id', 'invoices', ['customer_id'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])
    op.create_index('ix_invoices_created_at', 'invoices', ['created_at'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('invoice_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', payment_status, nullable=False),
        sa.Column('payment_date', sa.DateTime(), nullable=True),
        sa.Column('payment_method', sa.String(length=50), nullable=True),
        sa.Column('payment_intent_id', sa.String(length=255), nullable=True),
        sa.Column('requires_refund', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_payments'),
        sa.UniqueConstraint('payment_intent_id', name='uq_payments_payment_intent_id'),
        sa.ForeignKeyConstraint(
            ['invoice_id'], ['invoices.id'],
            name='fk_payments_invoice_id', ondelete='CASCADE',
        ),
        sa.CheckConstraint('amount >= 0', name='ck_payments_amount_non_negative'),
        comment='Invoice payments',
    )
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_created_at', 'payments', ['created_at'])

    op.create_table(
        'deliveries',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('planned_date', sa.DateTime(), nullable=True),
        sa.Column('actual_date', sa.DateTime(), nullable=True),
        sa.Column('status', delivery_status, nullable=False),
        sa.Column('shipping_address', sa.String(length=500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamp_columns(),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_deliveries'),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_deliveries_order_id', ondelete='CASCADE',
        ),
        comment='Order deliveries',
    )
    op.create_index('ix_deliveries_planned_date', 'deliveries', ['planned_date'])
    op.create_index('ix_deliveries_actual_date', 'deliveries', ['actual_date'])
    op.create_index('ix_deliveries_status', 'deliveries', ['status'])
    op.create_index('ix_deliveries_created_at', 'deliveries', ['created_at'])
    op.create_index(
        'uq_deliveries_order_active',
        'deliveries',
        ['order_id'],
        unique=True,
        postgresql_where=sa.text('deleted_at IS NULL'),
        sqlite_where=sa.text('deleted_at IS NULL'),
    )


def downgrade() -> None:
    """
    Downgrade database schema by dropping every dealer sales table.
    """
    op.drop_table('deliveries')
    op.drop_table('payments')
    op.drop_table('invoices')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('vehicles')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (
        delivery_status,
        payment_status,
        invoice_status,
        order_status,
        user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
