"""Baseline migration - tenants, agendas, clients, appointments, API tokens

Revision ID: 0001_baseline
Revises: 
Create Date: 2026-10-12

Creates the tenant tables (organizations, users, memberships), the
scheduling tables and the public API tables.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')  # For gen_random_uuid()

    # ==========================================================================
    # Organizations / Users / Memberships
    # ==========================================================================
    op.execute('''
        CREATE TABLE organizations (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            slug VARCHAR(100) UNIQUE NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')

    op.execute('''
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email VARCHAR(255) UNIQUE NOT NULL,
            display_name VARCHAR(255) NOT NULL,
            phone VARCHAR(50),
            token_version INTEGER NOT NULL DEFAULT 1,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')

    op.execute('''
        CREATE TABLE memberships (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            role VARCHAR(50) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_memberships_org_id ON memberships(organization_id)')

    # ==========================================================================
    # Agendas
    # ==========================================================================
    op.execute('''
        CREATE TABLE agendas (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name VARCHAR(255) NOT NULL,
            description TEXT,
            color VARCHAR(20),
            working_hours JSONB NOT NULL,
            slot_duration INTEGER NOT NULL DEFAULT 30,
            breaks JSONB DEFAULT '[]'::jsonb,
            min_advance_hours INTEGER DEFAULT 1,
            max_advance_days INTEGER DEFAULT 30,
            buffer_time INTEGER DEFAULT 0,
            timezone VARCHAR(64),
            reminder_hours_before INTEGER DEFAULT 24,
            send_confirmation BOOLEAN DEFAULT true,
            is_active BOOLEAN NOT NULL DEFAULT true,
            metadata JSONB,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT ck_agendas_slot_duration_positive CHECK (slot_duration > 0)
        )
    ''')
    op.execute('CREATE INDEX idx_agendas_org ON agendas(organization_id, is_active)')
    op.execute('CREATE INDEX idx_agendas_user ON agendas(user_id)')

    # ==========================================================================
    # Clients
    # ==========================================================================
    op.execute('''
        CREATE TABLE clients (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            name VARCHAR(255) NOT NULL,
            phone VARCHAR(50) NOT NULL,
            email VARCHAR(255),
            cpf VARCHAR(20),
            city VARCHAR(120),
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_clients_org_phone UNIQUE (organization_id, phone)
        )
    ''')
    op.execute('CREATE INDEX idx_clients_org_name ON clients(organization_id, name)')

    # ==========================================================================
    # Appointments
    # ==========================================================================
    op.execute('''
        CREATE TABLE appointments (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID REFERENCES organizations(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            agenda_id UUID REFERENCES agendas(id) ON DELETE SET NULL,
            client_id UUID REFERENCES clients(id) ON DELETE SET NULL,
            title VARCHAR(255) NOT NULL,
            description TEXT,
            start_time TIMESTAMPTZ NOT NULL,
            end_time TIMESTAMPTZ NOT NULL,
            status VARCHAR(20) NOT NULL DEFAULT 'scheduled',
            appointment_type VARCHAR(100),
            location VARCHAR(500),
            internal_notes TEXT,
            reminder_sent BOOLEAN NOT NULL DEFAULT false,
            reminder_sent_at TIMESTAMPTZ,
            metadata JSONB,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT ck_appointments_valid_interval CHECK (start_time < end_time)
        )
    ''')
    op.execute('CREATE INDEX idx_appointments_user_status ON appointments(user_id, status)')
    op.execute('CREATE INDEX idx_appointments_agenda_start ON appointments(agenda_id, start_time)')
    op.execute('CREATE INDEX idx_appointments_org_start ON appointments(organization_id, start_time)')

    # ==========================================================================
    # Public API tokens and request log
    # ==========================================================================
    op.execute('''
        CREATE TABLE api_tokens (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            created_by UUID REFERENCES users(id) ON DELETE SET NULL,
            name VARCHAR(255) NOT NULL,
            description TEXT,
            token_hash VARCHAR(64) UNIQUE NOT NULL,
            token_prefix VARCHAR(16) NOT NULL,
            scopes JSONB NOT NULL DEFAULT '[]'::jsonb,
            allowed_ips JSONB,
            rate_limit_per_minute INTEGER DEFAULT 60,
            is_active BOOLEAN NOT NULL DEFAULT true,
            expires_at TIMESTAMPTZ,
            last_used_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_api_tokens_org ON api_tokens(organization_id)')

    op.execute('''
        CREATE TABLE api_request_logs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            token_id UUID REFERENCES api_tokens(id) ON DELETE SET NULL,
            organization_id UUID REFERENCES organizations(id) ON DELETE CASCADE,
            endpoint VARCHAR(255) NOT NULL,
            method VARCHAR(10) NOT NULL,
            status_code INTEGER,
            ip_address VARCHAR(64),
            user_agent VARCHAR(500),
            request_body JSONB,
            response_body JSONB,
            error_message TEXT,
            duration_ms INTEGER,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_api_request_logs_org_created ON api_request_logs(organization_id, created_at)')
    op.execute('CREATE INDEX idx_api_request_logs_token ON api_request_logs(token_id)')


def downgrade() -> None:
    """Drop all tables."""
    op.execute('DROP TABLE IF EXISTS api_request_logs')
    op.execute('DROP TABLE IF EXISTS api_tokens')
    op.execute('DROP TABLE IF EXISTS appointments')
    op.execute('DROP TABLE IF EXISTS clients')
    op.execute('DROP TABLE IF EXISTS agendas')
    op.execute('DROP TABLE IF EXISTS memberships')
    op.execute('DROP TABLE IF EXISTS users')
    op.execute('DROP TABLE IF EXISTS organizations')
