"""initial_salon_functions_schema

Revision ID: 4f1e2a9c7b30
Revises:
Create Date: 2026-10-19 00:01:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4f1e2a9c7b30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Tenants and role membership
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'user_roles',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('organization_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'user_id', 'role', name='uq_user_roles_org_user_role')
    )
    op.create_index('ix_user_roles_organization_id', 'user_roles', ['organization_id'])
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'])

    # Operational data read by the anomaly checkers
    op.create_table(
        'daily_sales_summaries',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('organization_id', sa.String(), nullable=False),
        sa.Column('location_id', sa.String(), nullable=True),
        sa.Column('sales_date', sa.Date(), nullable=False),
        sa.Column('total_revenue', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_daily_sales_org_date', 'daily_sales_summaries', ['organization_id', 'sales_date'])

    op.create_table(
        'appointments',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('organization_id', sa.String(), nullable=False),
        sa.Column('location_id', sa.String(), nullable=True),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_appointments_org_date', 'appointments', ['organization_id', 'appointment_date'])
    op.create_index('ix_appointments_org_created', 'appointments', ['organization_id', 'created_at'])

    # Anomaly results and the admin notification feed
    op.create_table(
        'detected_anomalies',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('organization_id', sa.String(), nullable=False),
        sa.Column('location_id', sa.String(), nullable=True),
        sa.Column('anomaly_type', sa.String(), nullable=False),
        sa.Column('severity', sa.String(), nullable=False),
        sa.Column('metric_value', sa.Float(), nullable=False),
        sa.Column('expected_value', sa.Float(), nullable=False),
        sa.Column('deviation_percent', sa.Integer(), nullable=False),
        sa.Column('context', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_detected_anomalies_org_created', 'detected_anomalies', ['organization_id', 'created_at'])

    op.create_table(
        'platform_notifications',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('organization_id', sa.String(), nullable=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('severity', sa.String(), nullable=False),
        sa.Column('metadata', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_platform_notifications_organization_id', 'platform_notifications', ['organization_id'])

    # Payroll provider connections and locally tracked runs
    op.create_table(
        'payroll_connections',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('organization_id', sa.String(), nullable=False),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('connection_status', sa.String(), nullable=False),
        sa.Column('external_company_id', sa.String(), nullable=True),
        sa.Column('access_token_encrypted', sa.Text(), nullable=True),
        sa.Column('refresh_token_encrypted', sa.Text(), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('connected_by', sa.String(), nullable=True),
        sa.Column('connected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payroll_connections_organization_id', 'payroll_connections', ['organization_id'], unique=True)

    op.create_table(
        'payroll_runs',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('organization_id', sa.String(), nullable=False),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('external_payroll_id', sa.String(), nullable=False),
        sa.Column('pay_period_start', sa.Date(), nullable=True),
        sa.Column('pay_period_end', sa.Date(), nullable=True),
        sa.Column('check_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payroll_runs_org_external', 'payroll_runs', ['organization_id', 'external_payroll_id'])


def downgrade() -> None:
    op.drop_index('ix_payroll_runs_org_external', table_name='payroll_runs')
    op.drop_table('payroll_runs')
    op.drop_index('ix_payroll_connections_organization_id', table_name='payroll_connections')
    op.drop_table('payroll_connections')
    op.drop_index('ix_platform_notifications_organization_id', table_name='platform_notifications')
    op.drop_table('platform_notifications')
    op.drop_index('ix_detected_anomalies_org_created', table_name='detected_anomalies')
    op.drop_table('detected_anomalies')
    op.drop_index('ix_appointments_org_created', table_name='appointments')
    op.drop_index('ix_appointments_org_date', table_name='appointments')
    op.drop_table('appointments')
    op.drop_index('ix_daily_sales_org_date', table_name='daily_sales_summaries')
    op.drop_table('daily_sales_summaries')
    op.drop_index('ix_user_roles_user_id', table_name='user_roles')
    op.drop_index('ix_user_roles_organization_id', table_name='user_roles')
    op.drop_table('user_roles')
    op.drop_table('organizations')
