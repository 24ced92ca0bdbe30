"""create inventory schema

Revision ID: 3b7e1c94d2a0
Revises:
Create Date: 2026-10-18 10:12:41.208344

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3b7e1c94d2a0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ticket_status = postgresql.ENUM(
    'FREE', 'PENDING', 'ACQUIRED', 'CHECKED_IN', 'CANCELLED', 'INVALIDATED',
    name='ticket_status',
    create_type=False
)
token_status = postgresql.ENUM('WAITING', 'LOCKED', 'CANCELLED', name='token_status', create_type=False)


def upgrade() -> None:
    """Upgrade schema."""
    ticket_status.create(op.get_bind(), checkfirst=True)
    token_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False, unique=True),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text("timezone('utc', now())")),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    op.create_table(
        'organizers',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'organizers_users',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('organizer_id', sa.Integer(), sa.ForeignKey('organizers.id', ondelete='CASCADE'),
                  primary_key=True),
    )
    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('organizer_id', sa.Integer(), sa.ForeignKey('organizers.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('short_name', sa.Text(), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.Text(), nullable=False),
        sa.Column('latitude', sa.Text(), nullable=True),
        sa.Column('longitude', sa.Text(), nullable=True),
        sa.Column('time_zone', sa.Text(), nullable=False),
        sa.Column('event_start', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('event_end', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('regular_price_cents', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('available_seats', sa.Integer(), nullable=False),
        sa.Column('vat_included', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('vat_rate', sa.Numeric(3, 2), nullable=False),
        sa.Column('free_of_charge', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint('event_end > event_start', name='chk_event_time_range'),
        sa.CheckConstraint('available_seats >= 0', name='chk_event_available_seats'),
        sa.CheckConstraint('regular_price_cents >= 0', name='chk_event_regular_price'),
        sa.CheckConstraint('vat_rate >= 1 AND vat_rate <= 2', name='chk_event_vat_rate'),
    )
    op.create_index('ix_events_organizer_id', 'events', ['organizer_id'])

    op.create_table(
        'ticket_categories',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('inception', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('expiration', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('max_tickets', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('access_restricted', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint('max_tickets >= 0', name='chk_category_max_tickets'),
        sa.CheckConstraint('price_cents >= 0', name='chk_category_price'),
        sa.CheckConstraint('expiration > inception', name='chk_category_time_range'),
    )
    op.create_index('ix_ticket_categories_event_id', 'ticket_categories', ['event_id'])

    op.create_table(
        'tickets',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('uuid', postgresql.UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('ticket_categories.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('status', ticket_status, nullable=False, server_default='FREE'),
        sa.Column('original_price_cents', sa.Integer(), nullable=False),
        sa.Column('paid_price_cents', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint('original_price_cents >= 0', name='chk_ticket_original_price'),
        sa.CheckConstraint('paid_price_cents >= 0', name='chk_ticket_paid_price'),
    )
    op.create_index('ix_tickets_event_category_status', 'tickets', ['event_id', 'category_id', 'status'])

    op.create_table(
        'special_price_tokens',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('code', sa.Text(), nullable=False, unique=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('ticket_categories.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('status', token_status, nullable=False, server_default='WAITING'),
    )
    op.create_index('ix_special_price_tokens_category_status', 'special_price_tokens', ['category_id', 'status'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_special_price_tokens_category_status', table_name='special_price_tokens')
    op.drop_table('special_price_tokens')
    op.drop_index('ix_tickets_event_category_status', table_name='tickets')
    op.drop_table('tickets')
    op.drop_index('ix_ticket_categories_event_id', table_name='ticket_categories')
    op.drop_table('ticket_categories')
    op.drop_index('ix_events_organizer_id', table_name='events')
    op.drop_table('events')
    op.drop_table('organizers_users')
    op.drop_table('user_roles')
    op.drop_table('organizers')
    op.drop_table('users')
    op.drop_table('roles')
    token_status.drop(op.get_bind(), checkfirst=True)
    ticket_status.drop(op.get_bind(), checkfirst=True)
