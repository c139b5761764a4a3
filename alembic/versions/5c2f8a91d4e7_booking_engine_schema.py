"""booking engine schema

Revision ID: 5c2f8a91d4e7
Revises:
Create Date: 2026-10-19 09:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c2f8a91d4e7'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Zones and staff
    op.create_table(
        'zones',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('color', sa.String(20), nullable=False, server_default='#6b21a8'),
        sa.Column('is_visio', sa.Boolean, nullable=False, server_default=sa.false())
    )

    op.create_table(
        'staff',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )

    # 2. Rules (weekday: 0=Sunday .. 6=Saturday)
    op.create_table(
        'zone_rules',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('zone_id', sa.Integer, sa.ForeignKey('zones.id'), nullable=False),
        sa.Column('weekday', sa.Integer, nullable=False),
        sa.Column('start_time', sa.Time, nullable=False),
        sa.Column('end_time', sa.Time, nullable=False),
        sa.CheckConstraint('weekday BETWEEN 0 AND 6', name='ck_zone_rules_weekday')
    )
    op.create_index('ix_zone_rules_zone_id', 'zone_rules', ['zone_id'])

    op.create_table(
        'zone_exceptions',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('zone_id', sa.Integer, sa.ForeignKey('zones.id'), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('start_time', sa.Time, nullable=False),
        sa.Column('end_time', sa.Time, nullable=False),
        sa.Column('note', sa.String, nullable=True)
    )
    op.create_index('ix_zone_exceptions_zone_id', 'zone_exceptions', ['zone_id'])
    op.create_index('ix_zone_exceptions_date', 'zone_exceptions', ['date'])

    op.create_table(
        'staff_zone_rules',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('staff_id', sa.Integer, sa.ForeignKey('staff.id', ondelete='CASCADE'), nullable=False),
        sa.Column('zone_id', sa.Integer, sa.ForeignKey('zones.id'), nullable=False),
        sa.Column('weekday', sa.Integer, nullable=False),
        sa.Column('start_time', sa.Time, nullable=False),
        sa.Column('end_time', sa.Time, nullable=False),
        sa.CheckConstraint('weekday BETWEEN 0 AND 6', name='ck_staff_zone_rules_weekday')
    )
    op.create_index('ix_staff_zone_rules_staff_id', 'staff_zone_rules', ['staff_id'])
    op.create_index('ix_staff_zone_rules_zone_id', 'staff_zone_rules', ['zone_id'])

    op.create_table(
        'zone_selections',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('staff_id', sa.Integer, sa.ForeignKey('staff.id', ondelete='CASCADE'), nullable=True),
        sa.Column('zone_id', sa.Integer, sa.ForeignKey('zones.id'), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('half_day', sa.String(10), nullable=True),
        sa.CheckConstraint("half_day IN ('morning', 'afternoon')", name='ck_zone_selections_half_day')
    )
    op.create_index('ix_zone_selections_date', 'zone_selections', ['date'])

    # 3. Settings (single row)
    op.create_table(
        'booking_settings',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('booking_step_min', sa.Integer, nullable=False, server_default='15'),
        sa.Column('default_duration_min', sa.Integer, nullable=False, server_default='30'),
        sa.Column('buffer_before_min', sa.Integer, nullable=False, server_default='0'),
        sa.Column('buffer_after_min', sa.Integer, nullable=False, server_default='0'),
        sa.Column('notice_min', sa.Integer, nullable=False, server_default='0'),
        sa.Column('window_days', sa.Integer, nullable=False, server_default='30'),
        sa.Column('demo_visio_duration_min', sa.Integer, nullable=True),
        sa.Column('demo_visio_buffer_before_min', sa.Integer, nullable=True),
        sa.Column('demo_visio_buffer_after_min', sa.Integer, nullable=True),
        sa.Column('demo_physique_duration_min', sa.Integer, nullable=True),
        sa.Column('demo_visio_min_gap_min', sa.Integer, nullable=True),
        sa.Column('demo_physique_second_min_gap_min', sa.Integer, nullable=True),
        sa.Column('physical_max_per_half_day', sa.Integer, nullable=True),
        sa.Column('half_day_split_hour', sa.Integer, nullable=True)
    )

    # 4. Appointments and idempotency keys
    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('zone_id', sa.Integer, sa.ForeignKey('zones.id'), nullable=False),
        sa.Column('staff_id', sa.Integer, sa.ForeignKey('staff.id'), nullable=False),
        sa.Column('starts_at', sa.DateTime, nullable=False),
        sa.Column('ends_at', sa.DateTime, nullable=False),
        sa.Column('meeting_mode', sa.String(10), nullable=False),
        sa.Column('client_name', sa.String, nullable=False),
        sa.Column('client_email', sa.String, nullable=True),
        sa.Column('client_phone', sa.String, nullable=True),
        sa.Column('attendees', sa.JSON, nullable=True),
        sa.Column('restaurant_name', sa.String, nullable=True),
        sa.Column('city', sa.String, nullable=True),
        sa.Column('title', sa.String, nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('ends_at > starts_at', name='ck_appointments_range'),
        sa.CheckConstraint("meeting_mode IN ('physique', 'visio')", name='ck_appointments_mode')
    )
    op.create_index('ix_appointments_zone_id', 'appointments', ['zone_id'])
    op.create_index('ix_appointments_staff_id', 'appointments', ['staff_id'])
    op.create_index('ix_appointments_starts_at', 'appointments', ['starts_at'])

    op.create_table(
        'idempotency_keys',
        sa.Column('key', sa.String(200), primary_key=True),
        sa.Column('request_hash', sa.String(64), nullable=False),
        sa.Column('appointment_id', sa.Integer, sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('response', sa.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('idempotency_keys')
    op.drop_index('ix_appointments_starts_at', table_name='appointments')
    op.drop_index('ix_appointments_staff_id', table_name='appointments')
    op.drop_index('ix_appointments_zone_id', table_name='appointments')
    op.drop_table('appointments')
    op.drop_table('booking_settings')
    op.drop_index('ix_zone_selections_date', table_name='zone_selections')
    op.drop_table('zone_selections')
    op.drop_index('ix_staff_zone_rules_zone_id', table_name='staff_zone_rules')
    op.drop_index('ix_staff_zone_rules_staff_id', table_name='staff_zone_rules')
    op.drop_table('staff_zone_rules')
    op.drop_index('ix_zone_exceptions_date', table_name='zone_exceptions')
    op.drop_index('ix_zone_exceptions_zone_id', table_name='zone_exceptions')
    op.drop_table('zone_exceptions')
    op.drop_index('ix_zone_rules_zone_id', table_name='zone_rules')
    op.drop_table('zone_rules')
    op.drop_table('staff')
    op.drop_table('zones')
