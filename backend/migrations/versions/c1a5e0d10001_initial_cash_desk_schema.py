"""initial cash desk schema

Revision ID: c1a5e0d10001
Revises:
Create Date: 2026-10-18 00:00:00.000000

This migration creates the cash desk schema from scratch:
- restaurants: Multi-tenant root
- session_tokens: Bearer tokens carrying (user_id, restaurant_id)
- inventory_items / stock_movements: Stock levels and their append-only history
- cash_sessions: One till day per restaurant, at most one open per date
- revenue_entries / expense_entries: Manual ledgers against a session
- platform_payments: Confirmed payments written by the ordering flow
- audit_events: Best-effort audit trail
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c1a5e0d10001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # restaurants: Tenant root
    # ============================================================================
    op.create_table(
        'restaurants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_restaurants_is_active', 'restaurants', ['is_active'])

    # ============================================================================
    # session_tokens: Hashed bearer tokens
    # ============================================================================
    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_restaurant_id', 'session_tokens', ['restaurant_id'])
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # inventory_items: Current stock per (restaurant, product)
    # ============================================================================
    # version_id: optimistic lock, bumped by the ORM on every update
    op.create_table(
        'inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('product_ref', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('restaurant_id', 'product_ref', name='uq_inventory_items_restaurant_product'),
        sa.CheckConstraint('quantity >= 0', name='ck_inventory_items_quantity_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_inventory_items_restaurant_id', 'inventory_items', ['restaurant_id'])

    # ============================================================================
    # stock_movements: Append-only quantity history
    # ============================================================================
    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('product_ref', sa.String(length=64), nullable=False),
        sa.Column('actor_id', sa.String(length=64), nullable=False),
        sa.Column('movement_type', sa.String(length=32), nullable=False),
        sa.Column('quantity_delta', sa.Integer(), nullable=False),
        sa.Column('requested_delta', sa.Integer(), nullable=False),
        sa.Column('previous_quantity', sa.Integer(), nullable=False),
        sa.Column('new_quantity', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stock_movements_restaurant_id', 'stock_movements', ['restaurant_id'])
    op.create_index('ix_stock_movements_movement_type', 'stock_movements', ['movement_type'])
    op.create_index('ix_stock_movements_created_at', 'stock_movements', ['created_at'])
    op.create_index('ix_stock_movements_restaurant_product', 'stock_movements', ['restaurant_id', 'product_ref'])

    # ============================================================================
    # cash_sessions: One till day
    # ============================================================================
    op.create_table(
        'cash_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('session_date', sa.Date(), nullable=False),
        sa.Column('is_historical', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='open'),
        sa.Column('opening_balance', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('closing_balance', sa.Numeric(14, 2), nullable=True),
        sa.Column('theoretical_balance', sa.Numeric(14, 2), nullable=True),
        sa.Column('balance_difference', sa.Numeric(14, 2), nullable=True),
        sa.Column('opened_by', sa.String(length=64), nullable=False),
        sa.Column('opened_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('closed_by', sa.String(length=64), nullable=True),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_cash_sessions_restaurant_id', 'cash_sessions', ['restaurant_id'])
    op.create_index('ix_cash_sessions_status', 'cash_sessions', ['status'])
    op.create_index('ix_cash_sessions_restaurant_date', 'cash_sessions', ['restaurant_id', 'session_date'])
    # At most one OPEN session per restaurant per day
    op.create_index(
        'uq_cash_sessions_one_open_per_day',
        'cash_sessions',
        ['restaurant_id', 'session_date'],
        unique=True,
        sqlite_where=sa.text("status = 'open'"),
        postgresql_where=sa.text("status = 'open'"),
    )

    # ============================================================================
    # revenue_entries: Manual sales
    # ============================================================================
    op.create_table(
        'revenue_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('settlement_method', sa.String(length=32), nullable=False),
        sa.Column('revenue_kind', sa.String(length=16), nullable=False),
        sa.Column('product_ref', sa.String(length=64), nullable=True),
        sa.Column('stock_movement_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id'], ),
        sa.ForeignKeyConstraint(['stock_movement_id'], ['stock_movements.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_revenue_entries_restaurant_id', 'revenue_entries', ['restaurant_id'])
    op.create_index('ix_revenue_entries_session_id', 'revenue_entries', ['session_id'])
    op.create_index('ix_revenue_entries_session_method', 'revenue_entries', ['session_id', 'settlement_method'])

    # ============================================================================
    # expense_entries: Money out of the till
    # ============================================================================
    op.create_table(
        'expense_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('settlement_method', sa.String(length=32), nullable=False),
        sa.Column('product_ref', sa.String(length=64), nullable=True),
        sa.Column('quantity_added', sa.Integer(), nullable=True),
        sa.Column('stock_movement_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id'], ),
        sa.ForeignKeyConstraint(['stock_movement_id'], ['stock_movements.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_expense_entries_restaurant_id', 'expense_entries', ['restaurant_id'])
    op.create_index('ix_expense_entries_session_id', 'expense_entries', ['session_id'])
    op.create_index('ix_expense_entries_session_method', 'expense_entries', ['session_id', 'settlement_method'])
    op.create_index('ix_expense_entries_session_category', 'expense_entries', ['session_id', 'category'])

    # ============================================================================
    # platform_payments: Owned by the ordering flow, read by the cash desk
    # ============================================================================
    op.create_table(
        'platform_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('order_ref', sa.String(length=64), nullable=True),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('settlement_method', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_platform_payments_restaurant_id', 'platform_payments', ['restaurant_id'])
    op.create_index('ix_platform_payments_status', 'platform_payments', ['status'])
    op.create_index(
        'ix_platform_payments_restaurant_confirmed',
        'platform_payments',
        ['restaurant_id', 'status', 'confirmed_at'],
    )

    # ============================================================================
    # audit_events: Best-effort trail
    # ============================================================================
    op.create_table(
        'audit_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('entity_type', sa.String(length=64), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.String(length=64), nullable=True),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('payload', sa.Text(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_audit_events_restaurant_id', 'audit_events', ['restaurant_id'])
    op.create_index('ix_audit_events_event_type', 'audit_events', ['event_type'])
    op.create_index('ix_audit_events_restaurant_occurred', 'audit_events', ['restaurant_id', 'occurred_at'])


def downgrade():
    op.drop_table('audit_events')
    op.drop_table('platform_payments')
    op.drop_table('expense_entries')
    op.drop_table('revenue_entries')
    op.drop_index('uq_cash_sessions_one_open_per_day', table_name='cash_sessions')
    op.drop_table('cash_sessions')
    op.drop_table('stock_movements')
    op.drop_table('inventory_items')
    op.drop_table('session_tokens')
    op.drop_table('restaurants')
