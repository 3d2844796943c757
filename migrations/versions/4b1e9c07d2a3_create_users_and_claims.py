"""create users and claims tables

Revision ID: 4b1e9c07d2a3
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '4b1e9c07d2a3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CLAIM_STATUS_VALUES = (
    'Submitted', 'Under Review', 'Pending Documents', 'Approved',
    'Investigation', 'Escalated', 'Denied', 'Paid',
)
WORKFLOW_STATUS_VALUES = ('NOT_STARTED', 'STARTED', 'DEMO')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('policy_number', sa.String(), nullable=True),
        sa.Column('member_since', sa.Date(), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Enums are plain strings, matching native_enum=False on the models
    op.create_table(
        'claims',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('user_name', sa.String(), nullable=False),
        sa.Column('policy_number', sa.String(), nullable=True),
        sa.Column('claim_type', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('incident_date', sa.Date(), nullable=True),
        sa.Column('estimated_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.Enum(*CLAIM_STATUS_VALUES, name='claimstatus', native_enum=False, length=32), nullable=False),
        sa.Column('status_history', sa.JSON(), nullable=False),
        sa.Column('box_folder_id', sa.String(), nullable=True),
        sa.Column('documents', sa.JSON(), nullable=False),
        sa.Column('ai_extraction', sa.JSON(), nullable=True),
        sa.Column('process_instance_key', sa.String(), nullable=True),
        sa.Column('workflow_status', sa.Enum(*WORKFLOW_STATUS_VALUES, name='workflowstatus', native_enum=False, length=16), nullable=False),
        sa.Column('risk_score', sa.Integer(), nullable=True),
        sa.Column('assigned_adjuster_id', sa.String(), nullable=True),
        sa.Column('assigned_adjuster_name', sa.String(), nullable=True),
    )
    op.create_index('ix_claims_user_id', 'claims', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_claims_user_id', table_name='claims')
    op.drop_table('claims')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
