"""baseline schema - users and daily plans

Revision ID: 001_baseline
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = '001_baseline'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Users table
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Daily plans table, one row per user per date
    op.create_table('daily_plans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('plan_date', sa.Date(), nullable=False),
        sa.Column('breakfast', sa.String(500), nullable=False, server_default=''),
        sa.Column('lunch', sa.String(500), nullable=False, server_default=''),
        sa.Column('dinner', sa.String(500), nullable=False, server_default=''),
        sa.Column('snacks', sa.String(500), nullable=False, server_default=''),
        sa.Column('mood', sa.String(255), nullable=False, server_default=''),
        sa.Column('weather', sa.String(255), nullable=False, server_default=''),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('high_level_note', sa.Text(), nullable=False, server_default=''),
        sa.Column('water_intake_glasses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('todos', sa.JSON(), nullable=True),
        sa.Column('schedule', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'plan_date', name='uq_daily_plans_user_date')
    )
    op.create_index('ix_daily_plans_user_id', 'daily_plans', ['user_id'])
    op.create_index('ix_daily_plans_plan_date', 'daily_plans', ['plan_date'])


def downgrade():
    op.drop_index('ix_daily_plans_plan_date', table_name='daily_plans')
    op.drop_index('ix_daily_plans_user_id', table_name='daily_plans')
    op.drop_table('daily_plans')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
