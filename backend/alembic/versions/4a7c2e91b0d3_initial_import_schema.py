"""initial_import_schema

Revision ID: 4a7c2e91b0d3
Revises:
Create Date: 2026-10-19 09:30:00.000000

Users and the audit trail, plus the four imported entity tables. Purchases
and campaign performance rows reference their parents by business id
(customer_id / campaign_id), which are unique.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4a7c2e91b0d3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _imported_by(table: str) -> list:
    return [
        sa.Column('imported_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(['imported_by'], ['users.id'], name=f'fk_{table}_imported_by_users'),
    ]


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto;')

    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'audit_logs',
        _id(),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('actor_email', sa.String(255), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(100), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('after_state', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id'], name='fk_audit_logs_actor_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_audit_logs'),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])
    # append-only
    op.execute("REVOKE UPDATE, DELETE ON audit_logs FROM PUBLIC;")
    op.execute("GRANT SELECT, INSERT ON audit_logs TO PUBLIC;")

    op.create_table(
        'customers',
        _id(),
        sa.Column('customer_id', sa.String(100), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('gender', sa.String(20), nullable=False),
        sa.Column('location', sa.String(255), nullable=False),
        sa.Column('income_range', sa.String(50), nullable=False),
        sa.Column('registration_date', sa.Date(), nullable=False),
        sa.Column('preferred_category', sa.String(100), nullable=False),
        sa.Column('last_purchase_date', sa.Date(), nullable=True),
        sa.Column('total_spent', sa.Numeric(14, 2), server_default='0', nullable=False),
        sa.Column('purchase_frequency', sa.Integer(), server_default='0', nullable=False),
        *_imported_by('customers'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_customers'),
    )
    op.create_index('ix_customers_customer_id', 'customers', ['customer_id'], unique=True)

    op.create_table(
        'purchases',
        _id(),
        sa.Column('customer_id', sa.String(100), nullable=False),
        sa.Column('product_id', sa.String(100), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('purchase_date', sa.Date(), nullable=False),
        sa.Column('channel', sa.String(20), nullable=False),
        *_imported_by('purchases'),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['customer_id'], ['customers.customer_id'], name='fk_purchases_customer_id_customers'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_purchases'),
    )
    op.create_index('ix_purchases_customer_id', 'purchases', ['customer_id'])
    op.create_index('ix_purchases_category', 'purchases', ['category'])
    op.create_index('ix_purchases_purchase_date', 'purchases', ['purchase_date'])

    op.create_table(
        'campaigns',
        _id(),
        sa.Column('campaign_id', sa.String(100), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('target_segment', sa.String(255), nullable=False),
        sa.Column('budget', sa.Numeric(14, 2), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        *_imported_by('campaigns'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_campaigns'),
    )
    op.create_index('ix_campaigns_campaign_id', 'campaigns', ['campaign_id'], unique=True)
    op.create_index('ix_campaigns_start_date', 'campaigns', ['start_date'])
    op.create_index('ix_campaigns_status', 'campaigns', ['status'])

    op.create_table(
        'campaign_performance',
        _id(),
        sa.Column('campaign_id', sa.String(100), nullable=False),
        sa.Column('impressions', sa.Integer(), nullable=False),
        sa.Column('clicks', sa.Integer(), nullable=False),
        sa.Column('conversions', sa.Integer(), nullable=False),
        sa.Column('revenue', sa.Numeric(14, 2), nullable=False),
        sa.Column('cost', sa.Numeric(14, 2), nullable=False),
        sa.Column('ctr', sa.Numeric(20, 4), server_default='0', nullable=False),
        sa.Column('cpc', sa.Numeric(20, 4), server_default='0', nullable=False),
        sa.Column('roas', sa.Numeric(20, 4), server_default='0', nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        *_imported_by('campaign_performance'),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['campaign_id'], ['campaigns.campaign_id'], name='fk_campaign_performance_campaign_id_campaigns'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_campaign_performance'),
    )
    op.create_index('ix_campaign_performance_campaign_id', 'campaign_performance', ['campaign_id'])
    op.create_index('ix_campaign_performance_date', 'campaign_performance', ['date'])


def downgrade() -> None:
    op.drop_table('campaign_performance')
    op.drop_table('campaigns')
    op.drop_table('purchases')
    op.drop_table('customers')
    op.execute("GRANT UPDATE, DELETE ON audit_logs TO PUBLIC;")
    op.drop_table('audit_logs')
    op.drop_table('users')
