"""create scheduling tables

Revision ID: 0001_scheduling
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_scheduling'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SLOT_TYPES = ('CONSULTATION', 'LAB_TEST', 'IMAGING', 'SURGERY', 'FOLLOW_UP', 'EMERGENCY', 'GROUP_SESSION', 'TELEMEDICINE')
RESOURCE_TYPES = ('CONSULTATION_ROOM', 'LAB_ROOM', 'IMAGING_ROOM', 'OPERATING_ROOM', 'RECOVERY_ROOM', 'EQUIPMENT', 'VEHICLE')
TIME_OFF_TYPES = ('VACATION', 'SICK_LEAVE', 'PERSONAL_LEAVE', 'TRAINING', 'CONFERENCE', 'OTHER')
TIME_OFF_STATUSES = ('PENDING', 'APPROVED', 'REJECTED')
APPOINTMENT_STATUSES = ('SCHEDULED', 'CONFIRMED', 'CHECKED_IN', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED', 'NO_SHOW', 'RESCHEDULED')
APPOINTMENT_TYPES = (
    'GENERAL_CONSULTATION', 'SPECIALIST_CONSULTATION', 'LAB_TEST', 'IMAGING', 'SURGERY',
    'FOLLOW_UP', 'EMERGENCY', 'TELEMEDICINE', 'PREVENTIVE_CARE',
)
APPOINTMENT_PRIORITIES = ('ROUTINE', 'URGENT', 'EMERGENCY', 'VIP', 'FOLLOW_UP')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'providers',
        sa.Column('provider_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('specialization', sa.String(), nullable=True),
        sa.Column('department', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('provider_id'),
    )

    op.create_table(
        'resources',
        sa.Column('resource_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', sa.Enum(*RESOURCE_TYPES, name='resource_type'), nullable=False),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('resource_id'),
    )

    op.create_table(
        'appointment_slots',
        sa.Column('slot_id', sa.Uuid(), nullable=False),
        sa.Column('provider_id', sa.Uuid(), nullable=False),
        sa.Column('resource_id', sa.Uuid(), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('slot_type', sa.Enum(*SLOT_TYPES, name='slot_type'), nullable=False),
        sa.Column('max_bookings', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('current_bookings', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_bookable', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('buffer_before', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('buffer_after', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('specialty', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('start_time < end_time', name='ck_slot_time_order'),
        sa.CheckConstraint('max_bookings >= 1', name='ck_slot_max_bookings'),
        sa.CheckConstraint(
            'current_bookings >= 0 AND current_bookings <= max_bookings',
            name='ck_slot_current_bookings',
        ),
        sa.ForeignKeyConstraint(['provider_id'], ['providers.provider_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.resource_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('slot_id'),
    )
    op.create_index('ix_appointment_slots_provider_start', 'appointment_slots', ['provider_id', 'start_time'], unique=False)
    op.create_index(op.f('ix_appointment_slots_resource_id'), 'appointment_slots', ['resource_id'], unique=False)

    op.create_table(
        'provider_schedules',
        sa.Column('schedule_id', sa.Uuid(), nullable=False),
        sa.Column('provider_id', sa.Uuid(), nullable=False),
        sa.Column('day_of_week', sa.SmallInteger(), nullable=False),
        sa.Column('work_start', sa.Time(), nullable=False),
        sa.Column('work_end', sa.Time(), nullable=False),
        sa.Column('break_start', sa.Time(), nullable=True),
        sa.Column('break_end', sa.Time(), nullable=True),
        sa.Column('is_working', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('slot_duration', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('buffer_time', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('max_appointments_per_hour', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['provider_id'], ['providers.provider_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('schedule_id'),
        sa.UniqueConstraint('provider_id', 'day_of_week', name='uq_provider_schedule_day'),
    )
    op.create_index(op.f('ix_provider_schedules_provider_id'), 'provider_schedules', ['provider_id'], unique=False)

    op.create_table(
        'provider_time_off',
        sa.Column('time_off_id', sa.Uuid(), nullable=False),
        sa.Column('provider_id', sa.Uuid(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('type', sa.Enum(*TIME_OFF_TYPES, name='time_off_type'), nullable=False),
        sa.Column('status', sa.Enum(*TIME_OFF_STATUSES, name='time_off_status'), nullable=False, server_default='PENDING'),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('approved_by', sa.String(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['provider_id'], ['providers.provider_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('time_off_id'),
    )
    op.create_index(op.f('ix_provider_time_off_provider_id'), 'provider_time_off', ['provider_id'], unique=False)

    op.create_table(
        'appointments',
        sa.Column('appointment_id', sa.Uuid(), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('slot_id', sa.Uuid(), nullable=False),
        sa.Column('provider_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.Enum(*APPOINTMENT_STATUSES, name='appointment_status'), nullable=False, server_default='SCHEDULED'),
        sa.Column('appointment_type', sa.Enum(*APPOINTMENT_TYPES, name='appointment_type'), nullable=False),
        sa.Column('priority', sa.Enum(*APPOINTMENT_PRIORITIES, name='appointment_priority'), nullable=False, server_default='ROUTINE'),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('scheduled_start', sa.DateTime(), nullable=False),
        sa.Column('scheduled_end', sa.DateTime(), nullable=False),
        sa.Column('check_in_time', sa.DateTime(), nullable=True),
        sa.Column('actual_start', sa.DateTime(), nullable=True),
        sa.Column('actual_end', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['slot_id'], ['appointment_slots.slot_id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['provider_id'], ['providers.provider_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('appointment_id'),
    )
    op.create_index(op.f('ix_appointments_patient_id'), 'appointments', ['patient_id'], unique=False)
    op.create_index(op.f('ix_appointments_slot_id'), 'appointments', ['slot_id'], unique=False)
    op.create_index(op.f('ix_appointments_provider_id'), 'appointments', ['provider_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_appointments_provider_id'), table_name='appointments')
    op.drop_index(op.f('ix_appointments_slot_id'), table_name='appointments')
    op.drop_index(op.f('ix_appointments_patient_id'), table_name='appointments')
    op.drop_table('appointments')

    op.drop_index(op.f('ix_provider_time_off_provider_id'), table_name='provider_time_off')
    op.drop_table('provider_time_off')

    op.drop_index(op.f('ix_provider_schedules_provider_id'), table_name='provider_schedules')
    op.drop_table('provider_schedules')

    op.drop_index(op.f('ix_appointment_slots_resource_id'), table_name='appointment_slots')
    op.drop_index('ix_appointment_slots_provider_start', table_name='appointment_slots')
    op.drop_table('appointment_slots')

    op.drop_table('resources')
    op.drop_table('providers')

    # Postgres keeps enum types after their tables are dropped
    for name in (
        'appointment_priority', 'appointment_type', 'appointment_status',
        'time_off_status', 'time_off_type', 'slot_type', 'resource_type',
    ):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
