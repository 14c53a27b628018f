"""Create assessment lifecycle tables

Revision ID: 001
Revises:
Create Date: 2025-03-01

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _enum(*values: str, name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    ]


def upgrade() -> None:
    """Create templates, assessments, tokens, reminders, settings and audit tables."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # Create enum types
    op.execute("CREATE TYPE risk_tier AS ENUM ('low', 'medium', 'high', 'critical')")
    op.execute("CREATE TYPE recurrence_unit AS ENUM ('none', 'monthly', 'semiannual', 'annual')")
    op.execute("CREATE TYPE assessment_status AS ENUM ('scheduled', 'sent', 'completed', 'cancelled')")
    op.execute("CREATE TYPE reminder_owner_type AS ENUM ('assessment', 'action_plan')")
    op.execute("""
        CREATE TYPE reminder_type AS ENUM (
            'assessment_due', 'reassessment_due', 'action_plan_overdue', 'high_risk_alert'
        )
    """)
    op.execute("CREATE TYPE reminder_priority AS ENUM ('medium', 'high')")
    op.execute("CREATE TYPE reminder_status AS ENUM ('scheduled', 'sent', 'failed')")
    op.execute("""
        CREATE TYPE audit_action AS ENUM (
            'assessment.schedule', 'assessment.send', 'assessment.complete', 'assessment.cancel',
            'token.issue', 'token.redeem',
            'template.create', 'template.clone',
            'risk_settings.update'
        )
    """)

    # Questionnaire templates
    op.create_table(
        'questionnaire_templates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('scale_min', sa.Integer, nullable=False, server_default='1'),
        sa.Column('scale_max', sa.Integer, nullable=False, server_default='5'),
        sa.Column('version', sa.Integer, nullable=False, server_default='1'),
        sa.Column(
            'parent_template_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('questionnaire_templates.id', ondelete='SET NULL'),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint('scale_min >= 0', name='template_scale_min_non_negative'),
        sa.CheckConstraint('scale_max > scale_min', name='template_scale_ordered'),
    )
    op.create_index('ix_questionnaire_templates_company_id', 'questionnaire_templates', ['company_id'])

    op.create_table(
        'questions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column(
            'template_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('questionnaire_templates.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('position', sa.Integer, nullable=False),
        sa.Column('text', sa.Text, nullable=False),
        sa.Column('category', sa.String(255), nullable=False),
        sa.Column('weight', sa.Integer, nullable=False, server_default='1'),
        *_timestamps(),
        sa.CheckConstraint('weight > 0', name='question_weight_positive'),
    )
    op.create_index('idx_questions_template_key', 'questions', ['template_id', 'key'], unique=True)
    op.create_index('idx_questions_template_position', 'questions', ['template_id', 'position'], unique=True)

    # Assessment instances
    op.create_table(
        'assessment_instances',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            'template_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('questionnaire_templates.id', ondelete='RESTRICT'),
            nullable=False,
        ),
        sa.Column(
            'status',
            _enum('scheduled', 'sent', 'completed', 'cancelled', name='assessment_status'),
            nullable=False,
            server_default='scheduled',
        ),
        sa.Column('scheduled_date', sa.Date, nullable=False),
        sa.Column('recurrence', _enum('none', 'monthly', 'semiannual', 'annual', name='recurrence_unit'), nullable=True),
        sa.Column('recipients', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column(
            'previous_assessment_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('assessment_instances.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('response_json', postgresql.JSONB, nullable=True),
        sa.Column('category_scores', postgresql.JSONB, nullable=True),
        sa.Column('overall_score', sa.Integer, nullable=True),
        sa.Column('risk_tier', _enum('low', 'medium', 'high', 'critical', name='risk_tier'), nullable=True),
        sa.Column('dominant_category', sa.String(255), nullable=True),
        sa.Column('next_due_date', sa.Date, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_assessment_instances_company_id', 'assessment_instances', ['company_id'])
    op.create_index('ix_assessment_instances_employee_id', 'assessment_instances', ['employee_id'])
    op.create_index('idx_assessments_status', 'assessment_instances', ['status'])
    op.create_index('idx_assessments_scheduled_date', 'assessment_instances', ['scheduled_date'])

    # Portal access tokens
    op.create_table(
        'access_tokens',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column(
            'assessment_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('assessment_instances.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('token_hash', sa.String(64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('redeemed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_access_tokens_token_hash', 'access_tokens', ['token_hash'], unique=True)
    op.create_index('ix_access_tokens_assessment_id', 'access_tokens', ['assessment_id'])
    op.create_index('ix_access_tokens_expires_at', 'access_tokens', ['expires_at'])

    # Reminder work items
    op.create_table(
        'reminder_work_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('owner_type', _enum('assessment', 'action_plan', name='reminder_owner_type'), nullable=False),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            'reminder_type',
            _enum('assessment_due', 'reassessment_due', 'action_plan_overdue', 'high_risk_alert', name='reminder_type'),
            nullable=False,
        ),
        sa.Column('priority', _enum('medium', 'high', name='reminder_priority'), nullable=False),
        sa.Column('lead_days', sa.Integer, nullable=False),
        sa.Column('due_date', sa.Date, nullable=False),
        sa.Column('fire_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('recipients', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column(
            'status',
            _enum('scheduled', 'sent', 'failed', name='reminder_status'),
            nullable=False,
            server_default='scheduled',
        ),
        sa.Column('attempts', sa.Integer, nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text, nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('failed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('owner_type', 'owner_id', 'reminder_type', 'lead_days', name='uq_reminder_owner_lead'),
    )
    op.create_index('ix_reminder_work_items_company_id', 'reminder_work_items', ['company_id'])
    op.create_index('idx_reminders_status_fire_at', 'reminder_work_items', ['status', 'fire_at'])

    # Risk settings (company_id NULL = global default)
    op.create_table(
        'risk_settings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=True, unique=True),
        sa.Column('low_risk_threshold', sa.Integer, nullable=False, server_default='30'),
        sa.Column('medium_risk_threshold', sa.Integer, nullable=False, server_default='60'),
        sa.Column(
            'default_recurrence',
            _enum('none', 'monthly', 'semiannual', 'annual', name='recurrence_unit'),
            nullable=False,
            server_default='annual',
        ),
        sa.Column('tier_recurrence', postgresql.JSONB, nullable=False, server_default='{}'),
        *_timestamps(),
    )

    # Audit events
    op.create_table(
        'audit_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('actor', sa.String(255), nullable=True),
        sa.Column(
            'action',
            _enum(
                'assessment.schedule', 'assessment.send', 'assessment.complete', 'assessment.cancel',
                'token.issue', 'token.redeem',
                'template.create', 'template.clone',
                'risk_settings.update',
                name='audit_action',
            ),
            nullable=False,
        ),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('diff_json', postgresql.JSONB, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_audit_events_company_id', 'audit_events', ['company_id'])
    op.create_index('idx_audit_events_entity', 'audit_events', ['entity_type', 'entity_id'])


def downgrade() -> None:
    """Drop all lifecycle tables and enum types."""
    op.drop_table('audit_events')
    op.drop_table('risk_settings')
    op.drop_table('reminder_work_items')
    op.drop_table('access_tokens')
    op.drop_table('assessment_instances')
    op.drop_table('questions')
    op.drop_table('questionnaire_templates')

    for enum_name in (
        'audit_action',
        'reminder_status',
        'reminder_priority',
        'reminder_type',
        'reminder_owner_type',
        'assessment_status',
        'recurrence_unit',
        'risk_tier',
    ):
        op.execute(f'DROP TYPE IF EXISTS {enum_name}')
