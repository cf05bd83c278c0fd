"""initial_schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2025-11-10 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
        sa.Column('settings', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('external_id', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('department', sa.String(length=50), nullable=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('points_balance', sa.Integer(), nullable=False),
        sa.Column('total_points_earned', sa.Integer(), nullable=False),
        sa.Column('current_streak', sa.Integer(), nullable=False),
        sa.Column('longest_streak', sa.Integer(), nullable=False),
        sa.Column('total_check_ins', sa.Integer(), nullable=False),
        sa.Column('last_check_in_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_by', sa.String(length=128), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('points_balance >= 0', name='ck_users_points_balance_non_negative'),
    )
    op.create_index('ix_users_external_id', 'users', ['external_id'], unique=True)
    op.create_index('idx_users_company', 'users', ['company_id'])

    op.create_table(
        'check_ins',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('check_in_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('check_in_date', sa.Date(), nullable=False),
        sa.Column('classification', sa.String(length=10), nullable=False),
        sa.Column('base_points', sa.Integer(), nullable=False),
        sa.Column('bonus_points', sa.Integer(), nullable=False),
        sa.Column('streak_day', sa.Integer(), nullable=False),
        sa.Column('bonus_reason', sa.String(length=200), nullable=True),
        sa.Column('qr_code', sa.String(length=64), nullable=True),
        sa.Column('location', sa.String(length=200), nullable=True),
        sa.UniqueConstraint('user_id', 'check_in_date', name='uq_user_check_in_date'),
    )
    op.create_index('idx_check_ins_date', 'check_ins', ['check_in_date'])

    op.create_table(
        'point_transactions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('transaction_type', sa.String(length=20), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('reference_type', sa.String(length=30), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_point_transactions_user', 'point_transactions', ['user_id'])

    op.create_table(
        'rewards',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('points_cost', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('icon', sa.String(length=50), nullable=True),
        sa.Column('quantity_available', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.CheckConstraint('points_cost >= 1', name='ck_rewards_points_cost_positive'),
    )
    op.create_index('idx_rewards_company', 'rewards', ['company_id'])

    op.create_table(
        'redemptions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reward_id', sa.Integer(), sa.ForeignKey('rewards.id'), nullable=False),
        sa.Column('points_spent', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('processed_by', sa.String(length=128), nullable=True),
        sa.Column('rejection_reason', sa.String(length=500), nullable=True),
        sa.Column('fulfillment_notes', sa.String(length=500), nullable=True),
    )
    op.create_index('idx_redemptions_user', 'redemptions', ['user_id'])
    op.create_index('idx_redemptions_status', 'redemptions', ['status'])

    op.create_table(
        'badges',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(length=50), nullable=False, unique=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('icon', sa.String(length=50), nullable=True),
        sa.Column('criteria_type', sa.String(length=20), nullable=False),
        sa.Column('criteria_value', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )

    op.create_table(
        'user_badges',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('badge_id', sa.Integer(), sa.ForeignKey('badges.id', ondelete='CASCADE'), nullable=False),
        sa.Column('earned_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'badge_id', name='uq_user_badge'),
    )
    op.create_index('idx_user_badges_user', 'user_badges', ['user_id'])

    op.create_table(
        'qr_codes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('valid_from', sa.DateTime(timezone=True), nullable=False),
        sa.Column('valid_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('rotation_strategy', sa.String(length=20), nullable=False),
        sa.Column('usage_count', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.String(length=128), nullable=True),
    )
    op.create_index('ix_qr_codes_code', 'qr_codes', ['code'], unique=True)
    op.create_index('idx_qr_codes_company_active', 'qr_codes', ['company_id', 'is_active'])


def downgrade():
    op.drop_table('qr_codes')
    op.drop_table('user_badges')
    op.drop_table('badges')
    op.drop_table('redemptions')
    op.drop_table('rewards')
    op.drop_table('point_transactions')
    op.drop_table('check_ins')
    op.drop_table('users')
    op.drop_table('companies')
