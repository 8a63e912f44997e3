"""Initial credentialing schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create providers table
    op.create_table(
        'providers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('npi_number', sa.String(length=10), nullable=True),
        sa.Column('dea_number', sa.String(length=9), nullable=True),
        sa.Column('dea_expiration', sa.DateTime(), nullable=True),
        sa.Column('license_number', sa.String(length=50), nullable=True),
        sa.Column('license_state', sa.String(length=2), nullable=True),
        sa.Column('license_type', sa.String(length=20), nullable=True),
        sa.Column('license_expiration', sa.DateTime(), nullable=True),
        sa.Column(
            'credentialing_status',
            sa.Enum('NOT_STARTED', 'DOCUMENTS_PENDING', 'UNDER_REVIEW', 'APPROVED', 'REJECTED',
                    name='credentialingstatus'),
            nullable=False,
        ),
        sa.Column(
            'profile_status',
            sa.Enum('PENDING', 'APPROVED', 'REJECTED', 'INACTIVE', name='profilestatus'),
            nullable=False,
        ),
        sa.Column('credentialing_started_at', sa.DateTime(), nullable=True),
        sa.Column('credentialing_completed_at', sa.DateTime(), nullable=True),
        sa.Column('last_credentialing_update', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_providers_id'), 'providers', ['id'], unique=False)
    op.create_index(op.f('ix_providers_npi_number'), 'providers', ['npi_number'], unique=False)
    op.create_index(op.f('ix_providers_credentialing_status'), 'providers', ['credentialing_status'], unique=False)
    op.create_index(op.f('ix_providers_profile_status'), 'providers', ['profile_status'], unique=False)

    # Create credentialing_verifications table
    op.create_table(
        'credentialing_verifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('provider_id', sa.Integer(), nullable=False),
        sa.Column('verification_type', sa.Enum('NPI', 'DEA', 'OIG', 'SAM', name='verificationtype'), nullable=False),
        sa.Column('status', sa.Enum('VERIFIED', 'FAILED', name='verificationstatus'), nullable=False),
        sa.Column('verification_date', sa.DateTime(), nullable=False),
        sa.Column('verified_by', sa.String(length=50), nullable=False),
        sa.Column('verification_source', sa.String(length=255), nullable=True),
        sa.Column('verification_data', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('expiration_date', sa.DateTime(), nullable=True),
        sa.Column('next_check_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['provider_id'], ['providers.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_credentialing_verifications_id'), 'credentialing_verifications', ['id'], unique=False)
    op.create_index(op.f('ix_credentialing_verifications_provider_id'), 'credentialing_verifications', ['provider_id'], unique=False)
    op.create_index(op.f('ix_credentialing_verifications_verification_type'), 'credentialing_verifications', ['verification_type'], unique=False)
    op.create_index(op.f('ix_credentialing_verifications_verification_date'), 'credentialing_verifications', ['verification_date'], unique=False)

    # Create credentialing_timeline table
    op.create_table(
        'credentialing_timeline',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('provider_id', sa.Integer(), nullable=False),
        sa.Column(
            'phase',
            sa.Enum('DOCUMENT_REVIEW', 'NPI_VERIFICATION', 'LICENSE_VERIFICATION', 'EDUCATION_VERIFICATION',
                    'BACKGROUND_CHECK', 'INSURANCE_VERIFICATION', 'OIG_SAM_CHECK', 'FINAL_REVIEW',
                    name='credentialingphase'),
            nullable=False,
        ),
        sa.Column('status', sa.Enum('PENDING', 'IN_PROGRESS', 'COMPLETED', 'FAILED', name='phasestatus'), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['provider_id'], ['providers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('provider_id', 'phase', name='uq_credentialing_timeline_provider_phase')
    )
    op.create_index(op.f('ix_credentialing_timeline_id'), 'credentialing_timeline', ['id'], unique=False)
    op.create_index(op.f('ix_credentialing_timeline_provider_id'), 'credentialing_timeline', ['provider_id'], unique=False)

    # Create credentialing_alerts table
    op.create_table(
        'credentialing_alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('provider_id', sa.Integer(), nullable=False),
        sa.Column('alert_type', sa.String(length=50), nullable=False),
        sa.Column('severity', sa.Enum('CRITICAL', 'WARNING', 'INFO', name='alertseverity'), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('resolved', sa.Boolean(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('resolved_by', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['provider_id'], ['providers.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_credentialing_alerts_id'), 'credentialing_alerts', ['id'], unique=False)
    op.create_index(op.f('ix_credentialing_alerts_provider_id'), 'credentialing_alerts', ['provider_id'], unique=False)
    op.create_index(op.f('ix_credentialing_alerts_alert_type'), 'credentialing_alerts', ['alert_type'], unique=False)
    op.create_index(op.f('ix_credentialing_alerts_severity'), 'credentialing_alerts', ['severity'], unique=False)
    op.create_index(op.f('ix_credentialing_alerts_resolved'), 'credentialing_alerts', ['resolved'], unique=False)

    # Create credentialing_notes table
    op.create_table(
        'credentialing_notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('provider_id', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.String(length=100), nullable=False),
        sa.Column('note_type', sa.String(length=50), nullable=False),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('is_internal', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['provider_id'], ['providers.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_credentialing_notes_id'), 'credentialing_notes', ['id'], unique=False)
    op.create_index(op.f('ix_credentialing_notes_provider_id'), 'credentialing_notes', ['provider_id'], unique=False)

    # Create oig_exclusions table (replaced wholesale by the monthly import)
    op.create_table(
        'oig_exclusions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('middle_name', sa.String(length=100), nullable=True),
        sa.Column('business_name', sa.String(length=255), nullable=True),
        sa.Column('general', sa.String(length=100), nullable=True),
        sa.Column('specialty', sa.String(length=100), nullable=True),
        sa.Column('npi', sa.String(length=10), nullable=True),
        sa.Column('dob', sa.String(length=10), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=2), nullable=True),
        sa.Column('zip', sa.String(length=10), nullable=True),
        sa.Column('excl_type', sa.String(length=20), nullable=True),
        sa.Column('excl_date', sa.String(length=10), nullable=True),
        sa.Column('rein_date', sa.String(length=10), nullable=True),
        sa.Column('waiver_date', sa.String(length=10), nullable=True),
        sa.Column('waiver_state', sa.String(length=2), nullable=True),
        sa.Column('imported_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_oig_exclusions_id'), 'oig_exclusions', ['id'], unique=False)
    op.create_index(op.f('ix_oig_exclusions_last_name'), 'oig_exclusions', ['last_name'], unique=False)
    op.create_index(op.f('ix_oig_exclusions_first_name'), 'oig_exclusions', ['first_name'], unique=False)
    op.create_index(op.f('ix_oig_exclusions_npi'), 'oig_exclusions', ['npi'], unique=False)


def downgrade() -> None:
    op.drop_table('oig_exclusions')
    op.drop_table('credentialing_notes')
    op.drop_table('credentialing_alerts')
    op.drop_table('credentialing_timeline')
    op.drop_table('credentialing_verifications')
    op.drop_table('providers')

    # Drop enums
    sa.Enum(name='credentialingstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='profilestatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='verificationtype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='verificationstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='credentialingphase').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='phasestatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='alertseverity').drop(op.get_bind(), checkfirst=True)
