"""Deployment and scorecard records

Revision ID: 001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'deployments',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('service', sa.String(length=255), nullable=False),
        sa.Column('started', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ended', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closure', sa.String(length=14), nullable=False, server_default='open'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_deployments_service', 'deployments', ['service'])
    op.create_index('idx_deployments_service_ended', 'deployments', ['service', 'ended'])

    op.create_table(
        'scorecards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('service', sa.String(length=255), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('rollout_start', sa.Date(), nullable=True),
        sa.Column('total_score', sa.Float(), nullable=True),
        sa.Column('metrics', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_scorecards_service', 'scorecards', ['service'])
    op.create_index('ix_scorecards_date', 'scorecards', ['date'])
    op.create_index('idx_scorecards_service_date', 'scorecards', ['service', 'date'])


def downgrade() -> None:
    op.drop_index('idx_scorecards_service_date', table_name='scorecards')
    op.drop_index('ix_scorecards_date', table_name='scorecards')
    op.drop_index('ix_scorecards_service', table_name='scorecards')
    op.drop_table('scorecards')

    op.drop_index('idx_deployments_service_ended', table_name='deployments')
    op.drop_index('ix_deployments_service', table_name='deployments')
    op.drop_table('deployments')
