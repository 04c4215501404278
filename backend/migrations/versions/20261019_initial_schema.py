"""Initial schema: tenants, staff tokens, catalog, screenings, sales, tickets

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration creates:
1. companies, employees, session_tokens (tenancy and API tokens)
2. movies, seat_maps, seats, rooms (catalog)
3. sessions (screenings)
4. inventory_items, discount_codes
5. sales, sale_items, sale_discounts, payments
6. tickets (one live ticket per session seat), seat_reservations (one hold per session seat)
7. audit_logs
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. TENANCY
    # ==========================================================================
    op.create_table('companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('cnpj', sa.String(length=14), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cnpj', name='uq_companies_cnpj'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('companies', schema=None) as batch_op:
        batch_op.create_index('ix_companies_code', ['code'], unique=True)
        batch_op.create_index('ix_companies_is_active', ['is_active'], unique=False)

    op.create_table('employees',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('cpf', sa.String(length=11), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='CASHIER'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'cpf', name='uq_employees_company_cpf'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('employees', schema=None) as batch_op:
        batch_op.create_index('ix_employees_company_id', ['company_id'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index('ix_session_tokens_employee_id', ['employee_id'], unique=False)
        batch_op.create_index('ix_session_tokens_company_id', ['company_id'], unique=False)
        batch_op.create_index('ix_session_tokens_token_hash', ['token_hash'], unique=True)

    # ==========================================================================
    # 2. CATALOG
    # ==========================================================================
    op.create_table('movies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('duration_min', sa.Integer(), nullable=False),
        sa.Column('genre', sa.String(length=80), nullable=True),
        sa.Column('rating', sa.String(length=10), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('movies', schema=None) as batch_op:
        batch_op.create_index('ix_movies_company_id', ['company_id'], unique=False)

    op.create_table('seat_maps',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('rows', sa.Integer(), nullable=False),
        sa.Column('cols', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('seat_maps', schema=None) as batch_op:
        batch_op.create_index('ix_seat_maps_company_id', ['company_id'], unique=False)

    op.create_table('seats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('seat_map_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=10), nullable=False),
        sa.Column('row_label', sa.String(length=5), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('is_accessible', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['seat_map_id'], ['seat_maps.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('seat_map_id', 'code', name='uq_seats_map_code'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('seats', schema=None) as batch_op:
        batch_op.create_index('ix_seats_seat_map_id', ['seat_map_id'], unique=False)

    op.create_table('rooms',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=80), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('room_type', sa.String(length=16), nullable=False, server_default='TWO_D'),
        sa.Column('seat_map_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['seat_map_id'], ['seat_maps.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'name', name='uq_rooms_company_name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('rooms', schema=None) as batch_op:
        batch_op.create_index('ix_rooms_company_id', ['company_id'], unique=False)

    # ==========================================================================
    # 3. SCREENINGS
    # ==========================================================================
    op.create_table('sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('movie_id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('base_price_cents', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='SCHEDULED'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['movie_id'], ['movies.id'], ),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sessions', schema=None) as batch_op:
        batch_op.create_index('ix_sessions_company_id', ['company_id'], unique=False)
        batch_op.create_index('ix_sessions_movie_id', ['movie_id'], unique=False)
        batch_op.create_index('ix_sessions_room_id', ['room_id'], unique=False)
        batch_op.create_index('ix_sessions_status', ['status'], unique=False)
        batch_op.create_index('ix_sessions_room_window', ['room_id', 'start_time', 'end_time'], unique=False)

    # ==========================================================================
    # 4. INVENTORY & DISCOUNT CODES
    # ==========================================================================
    op.create_table('inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('qty_on_hand', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reorder_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('barcode', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'sku', name='uq_inventory_items_company_sku'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('inventory_items', schema=None) as batch_op:
        batch_op.create_index('ix_inventory_items_company_id', ['company_id'], unique=False)

    op.create_table('discount_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(length=200), nullable=True),
        sa.Column('discount_type', sa.String(length=16), nullable=False),
        sa.Column('discount_value', sa.Integer(), nullable=False),
        sa.Column('valid_from', sa.DateTime(timezone=True), nullable=False),
        sa.Column('valid_to', sa.DateTime(timezone=True), nullable=False),
        sa.Column('cpf_range_start', sa.String(length=11), nullable=True),
        sa.Column('cpf_range_end', sa.String(length=11), nullable=True),
        sa.Column('max_uses', sa.Integer(), nullable=True),
        sa.Column('current_uses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'code', name='uq_discount_codes_company_code'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('discount_codes', schema=None) as batch_op:
        batch_op.create_index('ix_discount_codes_company_id', ['company_id'], unique=False)

    # ==========================================================================
    # 5. SALES
    # ==========================================================================
    op.create_table('sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('cashier_cpf', sa.String(length=11), nullable=False),
        sa.Column('buyer_cpf', sa.String(length=11), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='OPEN'),
        sa.Column('sub_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('discount_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('grand_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('finalized_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancel_reason', sa.String(length=500), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index('ix_sales_company_id', ['company_id'], unique=False)
        batch_op.create_index('ix_sales_cashier_cpf', ['cashier_cpf'], unique=False)
        batch_op.create_index('ix_sales_buyer_cpf', ['buyer_cpf'], unique=False)
        batch_op.create_index('ix_sales_status', ['status'], unique=False)
        batch_op.create_index('ix_sales_company_status_created', ['company_id', 'status', 'created_at'], unique=False)

    # ==========================================================================
    # 6. TICKETS & SEAT HOLDS
    # ==========================================================================
    op.create_table('tickets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('seat_map_id', sa.Integer(), nullable=False),
        sa.Column('seat_id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='ISSUED'),
        sa.Column('qr_code', sa.String(length=100), nullable=False),
        sa.Column('issued_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('refunded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('refund_reason', sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['sessions.id'], ),
        sa.ForeignKeyConstraint(['seat_map_id'], ['seat_maps.id'], ),
        sa.ForeignKeyConstraint(['seat_id'], ['seats.id'], ),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('qr_code', name='uq_tickets_qr_code'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('tickets', schema=None) as batch_op:
        batch_op.create_index('ix_tickets_company_id', ['company_id'], unique=False)
        batch_op.create_index('ix_tickets_session_id', ['session_id'], unique=False)
        batch_op.create_index('ix_tickets_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_tickets_status', ['status'], unique=False)
    # A refunded ticket frees its seat
    op.create_index(
        'uq_tickets_session_seat_live', 'tickets', ['session_id', 'seat_id'], unique=True,
        sqlite_where=sa.text("status != 'REFUNDED'"),
        postgresql_where=sa.text("status != 'REFUNDED'"),
    )

    op.create_table('seat_reservations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('seat_map_id', sa.Integer(), nullable=False),
        sa.Column('seat_id', sa.Integer(), nullable=False),
        sa.Column('reservation_token', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['sessions.id'], ),
        sa.ForeignKeyConstraint(['seat_map_id'], ['seat_maps.id'], ),
        sa.ForeignKeyConstraint(['seat_id'], ['seats.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('session_id', 'seat_id', name='uq_seat_reservations_session_seat'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('seat_reservations', schema=None) as batch_op:
        batch_op.create_index('ix_seat_reservations_company_id', ['company_id'], unique=False)
        batch_op.create_index('ix_seat_reservations_session_id', ['session_id'], unique=False)
        batch_op.create_index('ix_seat_reservations_expires_at', ['expires_at'], unique=False)
        batch_op.create_index('ix_seat_reservations_company_token', ['company_id', 'reservation_token'], unique=False)

    # ==========================================================================
    # 7. SALE LINES, DISCOUNTS, PAYMENTS
    # ==========================================================================
    op.create_table('sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('description', sa.String(length=200), nullable=False),
        sa.Column('sku', sa.String(length=50), nullable=True),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('seat_map_id', sa.Integer(), nullable=True),
        sa.Column('seat_id', sa.Integer(), nullable=True),
        sa.Column('reservation_token', sa.String(length=100), nullable=True),
        sa.Column('ticket_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('line_total_cents', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['sessions.id'], ),
        sa.ForeignKeyConstraint(['seat_map_id'], ['seat_maps.id'], ),
        sa.ForeignKeyConstraint(['seat_id'], ['seats.id'], ),
        sa.ForeignKeyConstraint(['ticket_id'], ['tickets.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sale_items', schema=None) as batch_op:
        batch_op.create_index('ix_sale_items_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_sale_items_company_id', ['company_id'], unique=False)
        batch_op.create_index('ix_sale_items_session_id', ['session_id'], unique=False)

    op.create_table('sale_discounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('discount_code_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('discount_amount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('applied_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['discount_code_id'], ['discount_codes.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sale_id', 'code', name='uq_sale_discounts_sale_code'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sale_discounts', schema=None) as batch_op:
        batch_op.create_index('ix_sale_discounts_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_sale_discounts_company_id', ['company_id'], unique=False)
        batch_op.create_index('ix_sale_discounts_discount_code_id', ['discount_code_id'], unique=False)

    op.create_table('payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('method', sa.String(length=16), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('auth_code', sa.String(length=100), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('payments', schema=None) as batch_op:
        batch_op.create_index('ix_payments_company_id', ['company_id'], unique=False)
        batch_op.create_index('ix_payments_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_payments_method', ['method'], unique=False)
        batch_op.create_index('ix_payments_paid_at', ['paid_at'], unique=False)

    # ==========================================================================
    # 8. AUDIT LOG
    # ==========================================================================
    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('actor_cpf', sa.String(length=11), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('target_type', sa.String(length=50), nullable=False),
        sa.Column('target_id', sa.String(length=100), nullable=True),
        sa.Column('metadata_json', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index('ix_audit_logs_company_id', ['company_id'], unique=False)
        batch_op.create_index('ix_audit_logs_action', ['action'], unique=False)
        batch_op.create_index('ix_audit_logs_occurred_at', ['occurred_at'], unique=False)
        batch_op.create_index('ix_audit_logs_company_occurred', ['company_id', 'occurred_at'], unique=False)


def downgrade():
    # Drop tables in reverse order of creation (respect foreign keys)
    op.drop_table('audit_logs')
    op.drop_table('payments')
    op.drop_table('sale_discounts')
    op.drop_table('sale_items')
    op.drop_table('seat_reservations')
    op.drop_index('uq_tickets_session_seat_live', table_name='tickets')
    op.drop_table('tickets')
    op.drop_table('sales')
    op.drop_table('discount_codes')
    op.drop_table('inventory_items')
    op.drop_table('sessions')
    op.drop_table('rooms')
    op.drop_table('seats')
    op.drop_table('seat_maps')
    op.drop_table('movies')
    op.drop_table('session_tokens')
    op.drop_table('employees')
    op.drop_table('companies')
