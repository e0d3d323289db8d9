"""Booking core - services, contacts and appointments

Revision ID: 0001_booking_core
Revises:
Create Date: 2026-10-18

Creates the tables read and written by the slot availability and
reservation engine.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_booking_core'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONDocument = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create booking tables."""

    # ==========================================================================
    # Services
    # ==========================================================================
    op.create_table(
        'services',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('availability', JSONDocument, nullable=False),
        sa.Column('booking_settings', JSONDocument, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint('duration_minutes > 0', name='ck_service_duration_positive'),
    )
    op.create_index('idx_services_tenant', 'services', ['tenant_id', 'is_active'])

    # ==========================================================================
    # Contacts
    # ==========================================================================
    op.create_table(
        'contacts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False, server_default=''),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('company', sa.String(255), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        *_timestamps(),
    )
    op.create_index('idx_contacts_tenant_email', 'contacts', ['tenant_id', 'email'])

    # ==========================================================================
    # Appointments
    # ==========================================================================
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column(
            'service_id',
            sa.Uuid(),
            sa.ForeignKey('services.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'contact_id',
            sa.Uuid(),
            sa.ForeignKey('contacts.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(30), nullable=False, server_default='scheduled'),
        sa.Column('source', sa.String(20), nullable=False, server_default='public'),
        sa.Column('location', sa.String(500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('end_time > start_time', name='ck_appointment_interval'),
    )
    op.create_index(
        'idx_appointments_service_window',
        'appointments',
        ['service_id', 'start_time', 'end_time'],
    )
    op.create_index('idx_appointments_service_status', 'appointments', ['service_id', 'status'])
    op.create_index('idx_appointments_contact', 'appointments', ['contact_id'])


def downgrade() -> None:
    """Drop booking tables."""
    op.drop_table('appointments')
    op.drop_table('contacts')
    op.drop_table('services')
