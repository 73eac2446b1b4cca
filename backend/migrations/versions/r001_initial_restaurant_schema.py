"""initial restaurant schema

Revision ID: r001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete RestoPOS schema:
- restaurants, restaurant_customizations: tenants and their branding
- users, session_tokens, security_events: authentication and audit
- subscriptions: plan per restaurant (limits live in code)
- products, stock_movements: crate/bottle/glass stock and its journal
- sales, sale_items: dual-currency sales (FC and USD with the rate used)
- printers: receipt printers (restaurant_id NULL = installation-wide)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'r001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    """
    Create all tables from scratch.

    MULTI-TENANT: every business table carries restaurant_id. Users and
    sessions of super-admins, and installation-wide printers, leave it NULL.
    """

    # ============================================================================
    # restaurants: tenants
    # ============================================================================
    op.create_table(
        'restaurants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_restaurants'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('restaurants', schema=None) as batch_op:
        batch_op.create_index('ix_restaurants_slug', ['slug'], unique=True)
        batch_op.create_index('ix_restaurants_is_active', ['is_active'], unique=False)
        batch_op.create_index('ix_restaurants_deleted_at', ['deleted_at'], unique=False)

    op.create_table(
        'restaurant_customizations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('description', sa.String(length=1000), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('logo', sa.String(length=255), nullable=True),
        sa.Column('primary_color', sa.String(length=7), nullable=True),
        sa.Column('secondary_color', sa.String(length=7), nullable=True),
        sa.Column('theme', sa.String(length=32), nullable=False),
        sa.Column('font_family', sa.String(length=100), nullable=True),
        sa.Column('font_size', sa.String(length=16), nullable=True),
        sa.Column('social_links', sa.JSON(), nullable=True),
        sa.Column('opening_hours', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'],
                                name='fk_restaurant_customizations_restaurant_id_restaurants'),
        sa.PrimaryKeyConstraint('id', name='pk_restaurant_customizations'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('restaurant_customizations', schema=None) as batch_op:
        batch_op.create_index('ix_restaurant_customizations_restaurant_id', ['restaurant_id'], unique=True)

    # ============================================================================
    # users, session_tokens, security_events
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('pin_hash', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'],
                                name='fk_users_restaurant_id_restaurants'),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index('ix_users_restaurant_id', ['restaurant_id'], unique=False)
        batch_op.create_index('ix_users_email', ['email'], unique=True)
        batch_op.create_index('ix_users_role', ['role'], unique=False)
        batch_op.create_index('ix_users_restaurant_role', ['restaurant_id', 'role'], unique=False)

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=True),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'],
                                name='fk_session_tokens_user_id_users'),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'],
                                name='fk_session_tokens_restaurant_id_restaurants'),
        sa.PrimaryKeyConstraint('id', name='pk_session_tokens'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index('ix_session_tokens_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_session_tokens_restaurant_id', ['restaurant_id'], unique=False)
        batch_op.create_index('ix_session_tokens_token_hash', ['token_hash'], unique=True)
        batch_op.create_index('ix_session_tokens_expires_at', ['expires_at'], unique=False)
        batch_op.create_index('ix_session_tokens_is_revoked', ['is_revoked'], unique=False)
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)

    op.create_table(
        'security_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=255), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'],
                                name='fk_security_events_restaurant_id_restaurants'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'],
                                name='fk_security_events_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_security_events'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('security_events', schema=None) as batch_op:
        batch_op.create_index('ix_security_events_restaurant_id', ['restaurant_id'], unique=False)
        batch_op.create_index('ix_security_events_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_security_events_event_type', ['event_type'], unique=False)
        batch_op.create_index('ix_security_events_success', ['success'], unique=False)
        batch_op.create_index('ix_security_events_occurred_at', ['occurred_at'], unique=False)
        batch_op.create_index('ix_security_events_user_type', ['user_id', 'event_type'], unique=False)
        batch_op.create_index('ix_security_events_restaurant_occurred', ['restaurant_id', 'occurred_at'], unique=False)

    # ============================================================================
    # subscriptions
    # ============================================================================
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('plan', sa.String(length=16), nullable=False),
        sa.Column('monthly_amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('starts_on', sa.Date(), nullable=False),
        sa.Column('ends_on', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'],
                                name='fk_subscriptions_restaurant_id_restaurants'),
        sa.PrimaryKeyConstraint('id', name='pk_subscriptions'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('subscriptions', schema=None) as batch_op:
        batch_op.create_index('ix_subscriptions_restaurant_id', ['restaurant_id'], unique=False)
        batch_op.create_index('ix_subscriptions_restaurant_status', ['restaurant_id', 'status'], unique=False)

    # ============================================================================
    # products, stock_movements
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=True),
        sa.Column('image', sa.String(length=255), nullable=True),
        sa.Column('unit_of_measure', sa.String(length=16), nullable=False),
        sa.Column('bottles_per_crate', sa.Integer(), nullable=False),
        sa.Column('quantity_crates', sa.Integer(), nullable=False),
        sa.Column('quantity_bottles', sa.Integer(), nullable=False),
        sa.Column('quantity_glasses', sa.Integer(), nullable=False),
        sa.Column('stock_minimum', sa.Integer(), nullable=False),
        sa.Column('price_crate_fc', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('price_bottle_fc', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('price_glass_fc', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'],
                                name='fk_products_restaurant_id_restaurants'),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.UniqueConstraint('restaurant_id', 'code', name='uq_products_restaurant_code'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index('ix_products_restaurant_id', ['restaurant_id'], unique=False)
        batch_op.create_index('ix_products_category', ['category'], unique=False)
        batch_op.create_index('ix_products_deleted_at', ['deleted_at'], unique=False)
        batch_op.create_index('ix_products_restaurant_name', ['restaurant_id', 'name'], unique=False)
        batch_op.create_index('ix_products_restaurant_active', ['restaurant_id', 'is_active'], unique=False)

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('movement_type', sa.String(length=16), nullable=False),
        sa.Column('unit', sa.String(length=16), nullable=True),
        sa.Column('quantity_crates', sa.Integer(), nullable=False),
        sa.Column('quantity_bottles', sa.Integer(), nullable=False),
        sa.Column('quantity_glasses', sa.Integer(), nullable=False),
        sa.Column('total_bottles', sa.Integer(), nullable=False),
        sa.Column('delta_bottles', sa.Integer(), nullable=False),
        sa.Column('purchase_price_fc', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('purchase_price_usd', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('supplier_reference', sa.String(length=255), nullable=True),
        sa.Column('moved_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'],
                                name='fk_stock_movements_restaurant_id_restaurants'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_stock_movements_product_id_products'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'],
                                name='fk_stock_movements_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_stock_movements'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('stock_movements', schema=None) as batch_op:
        batch_op.create_index('ix_stock_movements_restaurant_id', ['restaurant_id'], unique=False)
        batch_op.create_index('ix_stock_movements_product_id', ['product_id'], unique=False)
        batch_op.create_index('ix_stock_movements_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_stock_movements_movement_type', ['movement_type'], unique=False)
        batch_op.create_index('ix_stock_movements_moved_at', ['moved_at'], unique=False)
        batch_op.create_index('ix_stock_movements_product_moved', ['product_id', 'moved_at'], unique=False)

    # ============================================================================
    # sales, sale_items
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('invoice_number', sa.String(length=32), nullable=False),
        sa.Column('total_fc', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('total_usd', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('paid_fc', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('paid_usd', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('change_fc', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('change_usd', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('payment_mode', sa.String(length=8), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(precision=10, scale=4), nullable=False),
        sa.Column('is_printed', sa.Boolean(), nullable=False),
        sa.Column('printed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_synced', sa.Boolean(), nullable=False),
        sa.Column('offline_payload', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'],
                                name='fk_sales_restaurant_id_restaurants'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'],
                                name='fk_sales_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_sales'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index('ix_sales_restaurant_id', ['restaurant_id'], unique=False)
        batch_op.create_index('ix_sales_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_sales_invoice_number', ['invoice_number'], unique=True)
        batch_op.create_index('ix_sales_created_at', ['created_at'], unique=False)
        batch_op.create_index('ix_sales_deleted_at', ['deleted_at'], unique=False)
        batch_op.create_index('ix_sales_restaurant_created', ['restaurant_id', 'created_at'], unique=False)

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('unit', sa.String(length=16), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_fc', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('unit_price_usd', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('subtotal_fc', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('subtotal_usd', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('profit_fc', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('profit_usd', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'],
                                name='fk_sale_items_sale_id_sales'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_sale_items_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_sale_items'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sale_items', schema=None) as batch_op:
        batch_op.create_index('ix_sale_items_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_sale_items_product_id', ['product_id'], unique=False)

    # ============================================================================
    # printers
    # ============================================================================
    op.create_table(
        'printers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('connection_type', sa.String(length=16), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('model', sa.String(length=255), nullable=True),
        sa.Column('paper_width', sa.Integer(), nullable=False),
        sa.Column('settings', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('receipt_message', sa.Text(), nullable=True),
        sa.Column('restaurant_name', sa.String(length=255), nullable=True),
        sa.Column('restaurant_address', sa.Text(), nullable=True),
        sa.Column('restaurant_phone', sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'],
                                name='fk_printers_restaurant_id_restaurants'),
        sa.PrimaryKeyConstraint('id', name='pk_printers'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('printers', schema=None) as batch_op:
        batch_op.create_index('ix_printers_restaurant_id', ['restaurant_id'], unique=False)
        batch_op.create_index('ix_printers_restaurant_default', ['restaurant_id', 'is_default'], unique=False)


def downgrade():
    """Drop all tables in reverse dependency order."""
    for table in (
        'printers',
        'sale_items',
        'sales',
        'stock_movements',
        'products',
        'subscriptions',
        'security_events',
        'session_tokens',
        'users',
        'restaurant_customizations',
        'restaurants',
    ):
        op.drop_table(table)
