"""Initial schema: venues, staff accounts, menu, tables, orders, payments, audit

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from fastapi_users_db_sqlalchemy.generics import GUID


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None

ORDER_STATUS = sa.Enum(
    'pending', 'pending_payment', 'cash_on_delivery', 'confirmed', 'preparing',
    'ready', 'completed', 'cancelled', 'expired',
    name='order_status',
)
PAYMENT_METHOD = sa.Enum('bank_transfer', 'cash', name='payment_method')


def upgrade():
    op.create_table(
        'venues',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('venue_slug', sa.String(), nullable=False, unique=True),
        sa.Column('is_suspended', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('suspended_at', sa.DateTime(), nullable=True),
        sa.Column('suspended_by', GUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'users',
        sa.Column('id', GUID(), primary_key=True),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('hashed_password', sa.String(length=1024), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_superuser', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('venue_id', sa.String(), sa.ForeignKey('venues.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('archived_by', GUID(), nullable=True),
        sa.Column('must_change_password', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'super_admins',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', GUID(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'user_roles',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', GUID(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tenant_id', sa.String(), sa.ForeignKey('venues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='staff'),
        sa.Column('tenant_role', sa.String(), nullable=False, server_default='staff'),
        sa.UniqueConstraint('user_id', 'tenant_id', name='uq_user_role_tenant'),
    )
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'])
    op.create_index('ix_user_roles_tenant_id', 'user_roles', ['tenant_id'])

    op.create_table(
        'password_reset_rate_limits',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('target_user_id', GUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_password_reset_rate_limits_target_user_id', 'password_reset_rate_limits', ['target_user_id'])
    op.create_index('ix_password_reset_rate_limits_created_at', 'password_reset_rate_limits', ['created_at'])

    op.create_table(
        'venue_settings',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('venue_id', sa.String(), sa.ForeignKey('venues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('setting_key', sa.String(), nullable=False),
        sa.Column('setting_value', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('venue_id', 'setting_key', name='uq_venue_setting_key'),
    )

    op.create_table(
        'tenant_feature_flags',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('tenant_id', sa.String(), sa.ForeignKey('venues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('feature_key', sa.String(), nullable=False),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('tenant_id', 'feature_key', name='uq_tenant_feature_key'),
    )

    op.create_table(
        'categories',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'menu_items',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price_kobo', sa.Integer(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('venue_id', sa.String(), sa.ForeignKey('venues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', sa.String(), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_menu_items_venue_id', 'menu_items', ['venue_id'])

    op.create_table(
        'tables',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('venue_id', sa.String(), sa.ForeignKey('venues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(), nullable=False),
        sa.Column('qr_token', sa.String(), nullable=False, unique=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_tables_venue_id', 'tables', ['venue_id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('order_reference', sa.String(), nullable=False, unique=True),
        sa.Column('venue_id', sa.String(), sa.ForeignKey('venues.id'), nullable=False),
        sa.Column('table_id', sa.String(), sa.ForeignKey('tables.id', ondelete='SET NULL'), nullable=True),
        sa.Column('table_number', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('table_label', sa.String(), nullable=True),
        sa.Column('customer_name', sa.String(), nullable=True),
        sa.Column('status', ORDER_STATUS, nullable=False),
        sa.Column('payment_method', PAYMENT_METHOD, nullable=False),
        sa.Column('payment_confirmed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('total_kobo', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('idempotency_key', sa.String(), nullable=True, unique=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_orders_venue_id', 'orders', ['venue_id'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('order_id', sa.String(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('menu_item_id', sa.String(), sa.ForeignKey('menu_items.id', ondelete='SET NULL'), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_kobo', sa.Integer(), nullable=False),
        sa.Column('item_snapshot', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'order_events',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('order_id', sa.String(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('event_type', sa.String(), nullable=False),
        sa.Column('old_status', sa.String(), nullable=True),
        sa.Column('new_status', sa.String(), nullable=True),
        sa.Column('actor_id', GUID(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_order_events_order_id', 'order_events', ['order_id'])

    op.create_table(
        'order_rate_limits',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('table_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_order_rate_limits_table_created', 'order_rate_limits', ['table_id', 'created_at'])

    op.create_table(
        'payment_claims',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('order_id', sa.String(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('proof_key', sa.String(), nullable=True),
        sa.Column('sender_name', sa.String(), nullable=True),
        sa.Column('bank_name', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('claimed_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_payment_claims_order_id', 'payment_claims', ['order_id'])

    op.create_table(
        'payment_confirmations',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('order_id', sa.String(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('confirmed_by', GUID(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('method', sa.String(), nullable=False, server_default='manual'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'bank_details',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('venue_id', sa.String(), sa.ForeignKey('venues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('bank_name', sa.String(), nullable=False),
        sa.Column('account_name', sa.String(), nullable=False),
        sa.Column('account_number', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_bank_details_venue_id', 'bank_details', ['venue_id'])

    op.create_table(
        'staff_invitations',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('tenant_id', sa.String(), sa.ForeignKey('venues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('token_hash', sa.String(), nullable=False, unique=True),
        sa.Column('invited_by', GUID(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_staff_invitations_tenant_id', 'staff_invitations', ['tenant_id'])

    op.create_table(
        'admin_audit_logs',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('actor_user_id', GUID(), nullable=True),
        sa.Column('target_user_id', GUID(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_admin_audit_logs_action', 'admin_audit_logs', ['action'])
    op.create_index('ix_admin_audit_logs_tenant_id', 'admin_audit_logs', ['tenant_id'])
    op.create_index('ix_admin_audit_logs_created_at', 'admin_audit_logs', ['created_at'])


def downgrade():
    for table in (
        'admin_audit_logs', 'staff_invitations', 'bank_details', 'payment_confirmations',
        'payment_claims', 'order_rate_limits', 'order_events', 'order_items', 'orders',
        'tables', 'menu_items', 'categories', 'tenant_feature_flags', 'venue_settings',
        'password_reset_rate_limits', 'user_roles', 'super_admins', 'users', 'venues',
    ):
        op.drop_table(table)
    PAYMENT_METHOD.drop(op.get_bind(), checkfirst=True)
    ORDER_STATUS.drop(op.get_bind(), checkfirst=True)
