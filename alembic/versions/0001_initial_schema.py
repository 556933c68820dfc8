"""Initial schema: contacts, referencing tables and merge logs

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'contacts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('contact_status', sa.String(length=20), nullable=False, server_default='lead'),
        sa.Column('source', sa.String(length=50), nullable=True),
        sa.Column('agent_id', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_contacts_id', 'contacts', ['id'])
    op.create_index('ix_contacts_email', 'contacts', ['email'])
    op.create_index('ix_contacts_phone', 'contacts', ['phone'])
    op.create_index('ix_contacts_contact_status', 'contacts', ['contact_status'])
    op.create_index('ix_contacts_agent_id', 'contacts', ['agent_id'])

    op.create_table(
        'properties',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_contact_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('offer_type', sa.String(length=10), nullable=False, server_default='sale'),
        sa.Column('price', sa.Numeric(14, 2), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='available'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['owner_contact_id'], ['contacts.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_properties_id', 'properties', ['id'])
    op.create_index('ix_properties_owner_contact_id', 'properties', ['owner_contact_id'])

    op.create_table(
        'deals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='prospecting'),
        sa.Column('value', sa.Numeric(14, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_deals_id', 'deals', ['id'])
    op.create_index('ix_deals_contact_id', 'deals', ['contact_id'])
    op.create_index('ix_deals_property_id', 'deals', ['property_id'])

    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_activities_id', 'activities', ['id'])
    op.create_index('ix_activities_contact_id', 'activities', ['contact_id'])

    op.create_table(
        'calendar_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=True),
        sa.Column('lead_id', sa.Integer(), nullable=True),
        sa.Column('property_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('event_type', sa.String(length=30), nullable=False, server_default='meeting'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.ForeignKeyConstraint(['lead_id'], ['contacts.id']),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_calendar_events_id', 'calendar_events', ['id'])
    op.create_index('ix_calendar_events_contact_id', 'calendar_events', ['contact_id'])
    op.create_index('ix_calendar_events_lead_id', 'calendar_events', ['lead_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=True),
        sa.Column('transaction_type', sa.String(length=10), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('commission', sa.Numeric(14, 2), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_transactions_id', 'transactions', ['id'])
    op.create_index('ix_transactions_contact_id', 'transactions', ['contact_id'])

    op.create_table(
        'contact_files',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('path', sa.String(length=500), nullable=False),
        sa.Column('tag', sa.String(length=30), nullable=False, server_default='other'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_contact_files_id', 'contact_files', ['id'])
    op.create_index('ix_contact_files_contact_id', 'contact_files', ['contact_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('agent_id', sa.String(length=64), nullable=True),
        sa.Column('contact_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_agent_id', 'notifications', ['agent_id'])
    op.create_index('ix_notifications_contact_id', 'notifications', ['contact_id'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    # Audit trail; secondary_contact_id names a deleted contact, so no FK
    op.create_table(
        'contact_merge_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('primary_contact_id', sa.Integer(), nullable=False),
        sa.Column('secondary_contact_id', sa.Integer(), nullable=False),
        sa.Column('merged_by', sa.String(length=64), nullable=True),
        sa.Column('merged_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('reassigned_references', sa.JSON(), nullable=True),
        sa.Column('secondary_data_snapshot', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['primary_contact_id'], ['contacts.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_contact_merge_logs_id', 'contact_merge_logs', ['id'])
    op.create_index('ix_contact_merge_logs_primary_contact_id', 'contact_merge_logs', ['primary_contact_id'])
    op.create_index('ix_contact_merge_logs_secondary_contact_id', 'contact_merge_logs', ['secondary_contact_id'])


def downgrade() -> None:
    op.drop_table('contact_merge_logs')
    op.drop_table('notifications')
    op.drop_table('contact_files')
    op.drop_table('transactions')
    op.drop_table('calendar_events')
    op.drop_table('activities')
    op.drop_table('deals')
    op.drop_table('properties')
    op.drop_table('contacts')
