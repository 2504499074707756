"""initial agenda schema: appointments, practice settings, patients

Revision ID: agenda_initial_001
Revises:
Create Date: 2026-03-01 00:00:01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'agenda_initial_001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'patients',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('first_name', sa.String(120)),
        sa.Column('last_name', sa.String(120)),
        sa.Column('phone', sa.String(32)),
    )
    op.create_table(
        'practice_settings',
        sa.Column('owner_id', sa.String(64), primary_key=True),
        sa.Column('standard_invoice', sa.Numeric(10, 2)),
        sa.Column('standard_cash', sa.Numeric(10, 2)),
        sa.Column('machine_invoice', sa.Numeric(10, 2)),
        sa.Column('machine_cash', sa.Numeric(10, 2)),
        sa.Column('auto_apply_prices', sa.Boolean, server_default=sa.true()),
        sa.Column('extra', sa.JSON),
    )
    op.create_table(
        'appointments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('patient_id', sa.String(64)),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='booked'),
        sa.Column('is_paid', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('location', sa.String(16), nullable=False, server_default='studio'),
        sa.Column('clinic_site', sa.String(120)),
        sa.Column('domicile_address', sa.String(255)),
        sa.Column('treatment_type', sa.String(16), nullable=False, server_default='seduta'),
        sa.Column('price_type', sa.String(16), nullable=False, server_default='invoiced'),
        sa.Column('amount', sa.Numeric(10, 2)),
        sa.Column('calendar_note', sa.Text),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True)),
        sa.Column('whatsapp_sent_at', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('end_at > start_at', name='ck_appointments_end_after_start'),
        sa.CheckConstraint('amount IS NULL OR amount >= 0', name='ck_appointments_amount_non_negative'),
    )
    op.create_index('ix_appointments_start_at', 'appointments', ['start_at'])
    op.create_index('ix_appointments_patient_id', 'appointments', ['patient_id'])


def downgrade() -> None:
    op.drop_index('ix_appointments_patient_id', table_name='appointments')
    op.drop_index('ix_appointments_start_at', table_name='appointments')
    op.drop_table('appointments')
    op.drop_table('practice_settings')
    op.drop_table('patients')
