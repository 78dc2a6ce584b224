"""create accelerator tables

Revision ID: 20261019_accelerator_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_accelerator_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'accelerator_programs',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('subscription_id', sa.String(64), nullable=False, unique=True, index=True),
        sa.Column('client_id', sa.String(64), nullable=False, index=True),
        sa.Column('program_start_date', sa.Date(), nullable=False),
        sa.Column('program_end_date', sa.Date(), nullable=False),
        sa.Column('current_stage', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('goal_reached', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('goal_reached_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
    )
    op.create_index('ix_accelerator_programs_status', 'accelerator_programs', ['status'])

    op.create_table(
        'accelerator_stages',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('program_id', sa.String(25), sa.ForeignKey('accelerator_programs.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('subscription_id', sa.String(64), nullable=False, index=True),
        sa.Column('stage_number', sa.Integer(), nullable=False),
        sa.Column('stage_name', sa.String(100), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_activated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.UniqueConstraint('program_id', 'stage_number', name='uq_stage_program_number'),
        sa.CheckConstraint('stage_number BETWEEN 1 AND 4', name='ck_stage_number_range'),
    )

    op.create_table(
        'accelerator_stage_templates',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('stage_number', sa.Integer(), nullable=False),
        sa.Column('item_order', sa.Integer(), nullable=False),
        sa.Column('item_name', sa.String(255), nullable=False),
        sa.Column('item_description', sa.Text(), nullable=True),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.UniqueConstraint('stage_number', 'item_order', name='uq_template_stage_order'),
    )
    op.create_index('ix_template_stage_active', 'accelerator_stage_templates', ['stage_number', 'is_active'])

    op.create_table(
        'accelerator_checklist_progress',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('subscription_id', sa.String(64), nullable=False, index=True),
        sa.Column('stage_number', sa.Integer(), nullable=False),
        sa.Column('template_id', sa.String(25), sa.ForeignKey('accelerator_stage_templates.id'),
                  nullable=False, index=True),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('completed_at', sa.DateTime(), nullable=False),
        sa.Column('completed_by', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.UniqueConstraint('subscription_id', 'stage_number', 'template_id', name='uq_progress_sub_stage_template'),
    )
    op.create_index('ix_progress_sub_stage', 'accelerator_checklist_progress', ['subscription_id', 'stage_number'])

    op.create_table(
        'accelerator_checklist_edit_leases',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('subscription_id', sa.String(64), nullable=False),
        sa.Column('stage_number', sa.Integer(), nullable=False),
        sa.Column('template_id', sa.String(25), sa.ForeignKey('accelerator_stage_templates.id'), nullable=False),
        sa.Column('actor', sa.String(255), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.UniqueConstraint('subscription_id', 'stage_number', name='uq_lease_sub_stage'),
    )

    op.create_table(
        'accelerator_onboarding_checklist',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('subscription_id', sa.String(64), nullable=False, unique=True, index=True),
        sa.Column('client_id', sa.String(64), nullable=False, index=True),
        *[
            column
            for flag in (
                'document_sent',
                'academy_access_granted',
                'contract_sent',
                'highlevel_subaccount_created',
                'discord_groups_created',
                'onboarding_meeting_scheduled',
            )
            for column in (
                sa.Column(flag, sa.Boolean(), nullable=False, server_default=sa.false()),
                sa.Column(f'{flag}_at', sa.DateTime(), nullable=True),
                sa.Column(f'{flag}_by', sa.String(255), nullable=True),
            )
        ],
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
    )

    op.create_table(
        'alerts',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('alert_type', sa.String(40), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('client_id', sa.String(64), nullable=True, index=True),
        sa.Column('subscription_id', sa.String(64), nullable=True, index=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('webhook_url', sa.String(500), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
    )
    op.create_index('ix_alerts_status_created', 'alerts', ['status', 'created_at'])

    op.create_table(
        'provisioned_services',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('subscription_id', sa.String(64), nullable=False, index=True),
        sa.Column('service_type', sa.String(40), nullable=False),
        sa.Column('access_details', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('provisioned_at', sa.DateTime(), server_default=sa.text('now()')),
    )
    op.create_index('ix_provisioned_sub_type', 'provisioned_services', ['subscription_id', 'service_type'])


def downgrade() -> None:
    op.drop_index('ix_provisioned_sub_type', table_name='provisioned_services')
    op.drop_table('provisioned_services')

    op.drop_index('ix_alerts_status_created', table_name='alerts')
    op.drop_table('alerts')

    op.drop_table('accelerator_onboarding_checklist')
    op.drop_table('accelerator_checklist_edit_leases')

    op.drop_index('ix_progress_sub_stage', table_name='accelerator_checklist_progress')
    op.drop_table('accelerator_checklist_progress')

    op.drop_index('ix_template_stage_active', table_name='accelerator_stage_templates')
    op.drop_table('accelerator_stage_templates')

    op.drop_table('accelerator_stages')

    op.drop_index('ix_accelerator_programs_status', table_name='accelerator_programs')
    op.drop_table('accelerator_programs')
