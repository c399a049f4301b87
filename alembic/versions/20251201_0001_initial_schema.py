"""Create initial schema

Revision ID: 20251201_0001
Revises: 
Create Date: 2025-12-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '20251201_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BLOCKING = "('PENDING', 'PAID', 'CONFIRMED', 'CHECKED_IN')"


def _has_table(bind, name: str) -> bool:
    return inspect(bind).has_table(name)


def upgrade() -> None:
    bind = op.get_bind()
    dialect_name = bind.dialect.name

    reservationstatus_enum = sa.Enum('PENDING', 'PAID', 'CONFIRMED', 'CHECKED_IN', 'CHECKED_OUT', 'CANCELED', name='reservationstatus')
    paymentstatus_enum = sa.Enum('PENDING', 'SUCCEEDED', 'FAILED', name='paymentstatus')
    inquirystatus_enum = sa.Enum('NEW', 'IN_PROGRESS', 'ANSWERED', 'CLOSED', name='inquirystatus')

    if not _has_table(bind, 'users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('phone', sa.String(length=50), nullable=True),
            sa.Column('address', sa.String(length=255), nullable=True),
            sa.Column('role', sa.String(length=20), server_default='GUEST', nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    if not _has_table(bind, 'rooms'):
        op.create_table('rooms',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('capacity', sa.Integer(), nullable=False),
            sa.Column('price_per_night', sa.Numeric(10, 2), nullable=False),
            sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('image_url', sa.String(length=500), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.CheckConstraint('capacity >= 1', name='ck_rooms_capacity_positive'),
            sa.CheckConstraint('price_per_night >= 0', name='ck_rooms_price_non_negative'),
            sa.PrimaryKeyConstraint('id')
        )

    if not _has_table(bind, 'reservations'):
        op.create_table('reservations',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('code', sa.String(length=20), nullable=False),
            sa.Column('room_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=True),
            sa.Column('guest_name', sa.String(length=200), nullable=False),
            sa.Column('guest_email', sa.String(length=255), nullable=False),
            sa.Column('guest_phone', sa.String(length=50), nullable=False),
            sa.Column('document_type', sa.String(length=50), nullable=True),
            sa.Column('document_number', sa.String(length=100), nullable=True),
            sa.Column('check_in', sa.DateTime(), nullable=False),
            sa.Column('check_out', sa.DateTime(), nullable=False),
            sa.Column('guests', sa.Integer(), nullable=False),
            sa.Column('total', sa.Numeric(10, 2), nullable=False),
            sa.Column('status', reservationstatus_enum, nullable=False),
            sa.Column('payment_status', paymentstatus_enum, nullable=True),
            sa.Column('payment_date', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.CheckConstraint('check_out > check_in', name='ck_reservations_range'),
            sa.CheckConstraint('guests >= 1', name='ck_reservations_guests_positive'),
            sa.CheckConstraint('total >= 0', name='ck_reservations_total_non_negative'),
            sa.ForeignKeyConstraint(['room_id'], ['rooms.id']),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('code')
        )
        op.create_index(op.f('ix_reservations_id'), 'reservations', ['id'], unique=False)
        op.create_index(op.f('ix_reservations_room_id'), 'reservations', ['room_id'], unique=False)
        op.create_index(op.f('ix_reservations_user_id'), 'reservations', ['user_id'], unique=False)
        op.create_index(op.f('ix_reservations_status'), 'reservations', ['status'], unique=False)
        op.create_index(op.f('ix_reservations_created_at'), 'reservations', ['created_at'], unique=False)
        op.create_index('ix_reservations_room_range', 'reservations', ['room_id', 'check_in', 'check_out'], unique=False)

        # Two blocking reservations of one room may not share a night
        if dialect_name == 'postgresql':
            op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
            op.execute(
                'ALTER TABLE reservations ADD CONSTRAINT ex_reservations_room_no_overlap '
                'EXCLUDE USING gist (room_id WITH =, tsrange(check_in, check_out) WITH &&) '
                f'WHERE (status IN {BLOCKING})'
            )

    if not _has_table(bind, 'reservation_counters'):
        op.create_table('reservation_counters',
            sa.Column('year', sa.Integer(), autoincrement=False, nullable=False),
            sa.Column('last_value', sa.Integer(), server_default='0', nullable=False),
            sa.PrimaryKeyConstraint('year')
        )

    if not _has_table(bind, 'inquiries'):
        op.create_table('inquiries',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('phone', sa.String(length=50), nullable=True),
            sa.Column('subject', sa.String(length=200), nullable=False),
            sa.Column('message', sa.Text(), nullable=False),
            sa.Column('status', inquirystatus_enum, nullable=False),
            sa.Column('response', sa.Text(), nullable=True),
            sa.Column('responded_at', sa.DateTime(), nullable=True),
            sa.Column('assigned_to', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_inquiries_id'), 'inquiries', ['id'], unique=False)
        op.create_index(op.f('ix_inquiries_status'), 'inquiries', ['status'], unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    dialect_name = bind.dialect.name
    op.drop_table('inquiries')
    op.drop_table('reservation_counters')
    op.drop_table('reservations')
    op.drop_table('rooms')
    op.drop_table('users')

    if dialect_name == 'postgresql':
        sa.Enum(name='inquirystatus').drop(bind, checkfirst=True)
        sa.Enum(name='paymentstatus').drop(bind, checkfirst=True)
        sa.Enum(name='reservationstatus').drop(bind, checkfirst=True)
