"""Baseline migration - tenants, staff, connect card intake, prayer triage

Revision ID: 0001_intake_baseline
Revises:
Create Date: 2025-03-01

Creates organizations, locations, users and memberships, the intake
batch / visitor card / scan token tables, and prayer requests.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0001_intake_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create tenant, intake and prayer tables."""

    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')  # For gen_random_uuid()

    # ==========================================================================
    # Organizations and locations
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
        CREATE TABLE locations (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            name VARCHAR(255) NOT NULL,
            slug VARCHAR(100) NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_location_slug UNIQUE (organization_id, slug)
        )
    ''')
    op.execute('CREATE INDEX idx_locations_org_active ON locations(organization_id, is_active)')

    # ==========================================================================
    # Users and memberships
    # ==========================================================================
    op.execute('''
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email VARCHAR(255) UNIQUE NOT NULL,
            display_name VARCHAR(255) NOT NULL,
            platform_role VARCHAR(50) NOT NULL DEFAULT 'user',
            default_location_id UUID REFERENCES locations(id) ON DELETE SET NULL,
            can_see_all_locations BOOLEAN NOT NULL DEFAULT false,
            is_active BOOLEAN NOT NULL DEFAULT true,
            token_version INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')

    op.execute('''
        CREATE TABLE memberships (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            role VARCHAR(50) NOT NULL DEFAULT 'member',
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_membership_user_org UNIQUE (user_id, organization_id)
        )
    ''')
    op.execute('CREATE INDEX idx_memberships_org ON memberships(organization_id)')

    # ==========================================================================
    # Intake batches (one PENDING batch per user + org)
    # ==========================================================================
    op.execute('''
        CREATE TABLE intake_batches (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            location_id UUID REFERENCES locations(id) ON DELETE SET NULL,
            created_by_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name VARCHAR(255) NOT NULL,
            status VARCHAR(20) NOT NULL DEFAULT 'PENDING',
            card_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('''
        CREATE UNIQUE INDEX uq_intake_batches_active
        ON intake_batches(created_by_user_id, organization_id)
        WHERE status = 'PENDING'
    ''')
    op.execute('CREATE INDEX idx_intake_batches_org_created ON intake_batches(organization_id, created_at)')
    op.execute('CREATE INDEX idx_intake_batches_org_status ON intake_batches(organization_id, status)')

    # ==========================================================================
    # Visitor cards
    # ==========================================================================
    op.execute('''
        CREATE TABLE visitor_cards (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            location_id UUID REFERENCES locations(id) ON DELETE SET NULL,
            batch_id UUID REFERENCES intake_batches(id),
            image_key VARCHAR(500),
            extracted_data JSON,
            name VARCHAR(255),
            name_normalized VARCHAR(255),
            email VARCHAR(255),
            phone VARCHAR(50),
            address TEXT,
            prayer_request TEXT,
            visit_status VARCHAR(100),
            interests JSON NOT NULL DEFAULT '[]',
            keywords JSON NOT NULL DEFAULT '[]',
            age_group VARCHAR(100),
            family_info TEXT,
            additional_notes TEXT,
            validation_issues JSON,
            is_private BOOLEAN NOT NULL DEFAULT false,
            is_urgent BOOLEAN NOT NULL DEFAULT false,
            status VARCHAR(20) NOT NULL DEFAULT 'NEW',
            assigned_to_user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            assigned_to_name VARCHAR(255),
            scanned_by_user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            scanned_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            reviewed_at TIMESTAMPTZ,
            followed_up_at TIMESTAMPTZ,
            answered_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_visitor_cards_org_name ON visitor_cards(organization_id, name_normalized)')
    op.execute('CREATE INDEX idx_visitor_cards_org_scanned ON visitor_cards(organization_id, scanned_at)')
    op.execute('CREATE INDEX idx_visitor_cards_batch ON visitor_cards(batch_id)')

    # ==========================================================================
    # Scan tokens (one-time QR code credentials)
    # ==========================================================================
    op.execute('''
        CREATE TABLE scan_tokens (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            token VARCHAR(128) UNIQUE NOT NULL,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            expires_at TIMESTAMPTZ NOT NULL,
            used_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_scan_tokens_user_org ON scan_tokens(user_id, organization_id)')
    op.execute('CREATE INDEX idx_scan_tokens_expires ON scan_tokens(expires_at)')

    # ==========================================================================
    # Prayer requests
    # ==========================================================================
    op.execute('''
        CREATE TABLE prayer_requests (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            location_id UUID REFERENCES locations(id) ON DELETE SET NULL,
            visitor_card_id UUID REFERENCES visitor_cards(id) ON DELETE SET NULL,
            request TEXT NOT NULL,
            category VARCHAR(50),
            status VARCHAR(20) NOT NULL DEFAULT 'PENDING',
            is_private BOOLEAN NOT NULL DEFAULT false,
            is_urgent BOOLEAN NOT NULL DEFAULT false,
            submitted_by VARCHAR(255),
            submitter_email VARCHAR(255),
            submitter_phone VARCHAR(50),
            assigned_to_user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            assigned_to_name VARCHAR(255),
            created_by_user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            follow_up_date TIMESTAMPTZ,
            answered_date TIMESTAMPTZ,
            answered_notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_prayer_requests_org_status ON prayer_requests(organization_id, status)')
    op.execute('CREATE INDEX idx_prayer_requests_org_created ON prayer_requests(organization_id, created_at)')
    op.execute('CREATE INDEX idx_prayer_requests_org_assignee ON prayer_requests(organization_id, assigned_to_user_id)')


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.execute('DROP TABLE IF EXISTS prayer_requests CASCADE')
    op.execute('DROP TABLE IF EXISTS scan_tokens CASCADE')
    op.execute('DROP TABLE IF EXISTS visitor_cards CASCADE')
    op.execute('DROP TABLE IF EXISTS intake_batches CASCADE')
    op.execute('DROP TABLE IF EXISTS memberships CASCADE')
    op.execute('DROP TABLE IF EXISTS users CASCADE')
    op.execute('DROP TABLE IF EXISTS locations CASCADE')
    op.execute('DROP TABLE IF EXISTS organizations CASCADE')
