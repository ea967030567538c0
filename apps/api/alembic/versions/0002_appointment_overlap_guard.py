"""Exclusion constraint against overlapping appointments on an agenda

Revision ID: 0002_appointment_overlap_guard
Revises: 0001_baseline
Create Date: 2026-10-12

Two concurrent bookings can both pass the application-level conflict
check. The constraint rejects the second insert (IntegrityError -> 409).
Intervals are half-open, so back-to-back appointments are allowed.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0002_appointment_overlap_guard'
down_revision: Union[str, Sequence[str], None] = '0001_baseline'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
    op.execute('''
        ALTER TABLE appointments
        ADD CONSTRAINT ex_appointments_agenda_no_overlap
        EXCLUDE USING gist (
            agenda_id WITH =,
            tstzrange(start_time, end_time, '[)') WITH &&
        )
        WHERE (agenda_id IS NOT NULL AND status <> 'cancelled')
    ''')


def downgrade() -> None:
    op.execute('ALTER TABLE appointments DROP CONSTRAINT IF EXISTS ex_appointments_agenda_no_overlap')
