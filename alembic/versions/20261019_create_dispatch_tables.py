"""create_dispatch_tables

Revision ID: 20261019_dispatch
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '20261019_dispatch'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name):
    """Check if a table exists in the database"""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def index_exists(table_name, index_name):
    """Check if an index exists on a table"""
    bind = op.get_bind()
    inspector = inspect(bind)
    indexes = inspector.get_indexes(table_name)
    return any(idx['name'] == index_name for idx in indexes)


def create_index_once(index_name, table_name, columns):
    if table_exists(table_name) and not index_exists(table_name, index_name):
        op.create_index(index_name, table_name, columns)


def upgrade():
    # 1. Tenants and users
    if not table_exists('tenants'):
        op.create_table(
            'tenants',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(), nullable=False, unique=True),
            sa.Column('slug', sa.String(), nullable=True, unique=True),
        )

    if not table_exists('users'):
        op.create_table(
            'users',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=True),
            sa.Column('pin_code', sa.String(), nullable=True, unique=True),
            sa.Column('role', sa.String(), nullable=False, server_default='client'),
            sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
            sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=True),
        )

    # 2. Zones (A-D, one per direction)
    if not table_exists('zones'):
        op.create_table(
            'zones',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('direction', sa.String(), nullable=False),
            sa.Column('max_distance', sa.Integer(), nullable=False, server_default='300'),
            sa.Column('base_address', sa.Text(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.UniqueConstraint('tenant_id', 'name', name='uq_zones_tenant_name'),
        )
    create_index_once('idx_zones_tenant_active', 'zones', ['tenant_id', 'is_active'])

    # 3. Drivers
    if not table_exists('drivers'):
        op.create_table(
            'drivers',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('phone', sa.String(), nullable=True),
            sa.Column('vehicle_type', sa.String(), nullable=True),
            sa.Column('status', sa.String(), nullable=False, server_default='offline'),
            sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('assigned_zone_id', sa.String(), sa.ForeignKey('zones.id'), nullable=True),
            sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
        )
    create_index_once('idx_drivers_tenant', 'drivers', ['tenant_id'])
    create_index_once('idx_drivers_zone', 'drivers', ['assigned_zone_id'])

    # 4. Route batches (one per tenant per date)
    if not table_exists('route_batches'):
        op.create_table(
            'route_batches',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('batch_date', sa.Date(), nullable=False),
            sa.Column('cutoff_time', sa.Time(), nullable=False, server_default='14:30:00'),
            sa.Column('status', sa.String(), nullable=False, server_default='open'),
            sa.Column('order_count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('optimized_at', sa.DateTime(), nullable=True),
            sa.Column('completed_at', sa.DateTime(), nullable=True),
            sa.UniqueConstraint('tenant_id', 'batch_date', name='uq_route_batches_tenant_date'),
        )
    create_index_once('idx_route_batches_status', 'route_batches', ['tenant_id', 'status'])

    # 5. Orders
    if not table_exists('orders'):
        op.create_table(
            'orders',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('order_number', sa.String(), nullable=False, unique=True),
            sa.Column('status', sa.String(), nullable=False, server_default='pending'),
            sa.Column('customer_name', sa.String(), nullable=True),
            sa.Column('delivery_line1', sa.String(), nullable=False),
            sa.Column('delivery_city', sa.String(), nullable=False),
            sa.Column('delivery_state', sa.String(2), nullable=False),
            sa.Column('delivery_zip', sa.String(), nullable=False),
            sa.Column('delivery_lat', sa.Float(), nullable=True),
            sa.Column('delivery_lng', sa.Float(), nullable=True),
            sa.Column('pickup_date', sa.Date(), nullable=False),
            sa.Column('batch_id', sa.String(), sa.ForeignKey('route_batches.id'), nullable=True),
            sa.Column('zone_id', sa.String(), sa.ForeignKey('zones.id'), nullable=True),
            sa.Column('route_sequence', sa.Integer(), nullable=True),
            sa.Column('created_by', sa.String(), sa.ForeignKey('users.id'), nullable=True),
            sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('voided_at', sa.DateTime(), nullable=True),
            sa.Column('void_reason', sa.Text(), nullable=True),
        )
    create_index_once('idx_orders_tenant', 'orders', ['tenant_id'])
    create_index_once('idx_orders_batch_zone', 'orders', ['batch_id', 'zone_id'])

    # 6. Optimized routes (one per batch per zone)
    if not table_exists('optimized_routes'):
        op.create_table(
            'optimized_routes',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('batch_id', sa.String(), sa.ForeignKey('route_batches.id', ondelete='CASCADE'), nullable=False),
            sa.Column('zone_id', sa.String(), sa.ForeignKey('zones.id'), nullable=False),
            sa.Column('driver_id', sa.String(), sa.ForeignKey('drivers.id'), nullable=True),
            sa.Column('route_data', sa.JSON(), nullable=False),
            sa.Column('estimated_distance', sa.Numeric(10, 2), nullable=True),
            sa.Column('estimated_time', sa.Integer(), nullable=True),
            sa.Column('status', sa.String(), nullable=False, server_default='pending'),
            sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.Column('assigned_at', sa.DateTime(), nullable=True),
            sa.Column('started_at', sa.DateTime(), nullable=True),
            sa.Column('completed_at', sa.DateTime(), nullable=True),
            sa.UniqueConstraint('batch_id', 'zone_id', name='uq_optimized_routes_batch_zone'),
        )
    create_index_once('idx_optimized_routes_driver', 'optimized_routes', ['driver_id'])
    create_index_once('idx_optimized_routes_tenant', 'optimized_routes', ['tenant_id'])

    # 7. Activity log
    if not table_exists('activity_logs'):
        op.create_table(
            'activity_logs',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('actor_id', sa.String(), sa.ForeignKey('users.id'), nullable=True),
            sa.Column('action', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('details', sa.JSON(), nullable=True),
            sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
        )
    create_index_once('idx_activity_logs_tenant', 'activity_logs', ['tenant_id', 'created_at'])


def downgrade():
    for table_name in (
        'activity_logs',
        'optimized_routes',
        'orders',
        'route_batches',
        'drivers',
        'zones',
        'users',
        'tenants',
    ):
        if table_exists(table_name):
            op.drop_table(table_name)
