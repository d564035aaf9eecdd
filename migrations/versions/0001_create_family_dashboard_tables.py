"""create family dashboard tables

Revision ID: 0001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


json_type = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    op.create_table(
        'family_members',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(16), nullable=False, server_default='CHILD'),
        sa.Column('avatar', sa.String(255), nullable=True),
        sa.Column('avatar_type', sa.String(16), nullable=False, server_default='initial'),
        sa.Column('color', sa.String(7), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('birthday', sa.Date(), nullable=True),
        sa.Column('card_id', sa.String(64), nullable=True, unique=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'point_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('member_id', sa.Integer(), nullable=False, index=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(32), nullable=False, index=True),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('chore_completion_id', sa.Integer(), nullable=True),
        sa.Column('habit_log_id', sa.Integer(), nullable=True),
        sa.Column('redemption_id', sa.Integer(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )

    op.create_table(
        'rewards',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('icon', sa.String(32), nullable=True),
        sa.Column('points_cost', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('is_cash_reward', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('cash_value', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'reward_redemptions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('reward_id', sa.Integer(), nullable=False, index=True),
        sa.Column('requested_by_id', sa.Integer(), nullable=False, index=True),
        sa.Column('points_spent', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='PENDING', index=True),
        sa.Column('approved_by_id', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('denial_reason', sa.String(500), nullable=True),
        sa.Column('requested_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'points_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('cash_conversion_rate', sa.Numeric(10, 4), nullable=False, server_default='0.01'),
        sa.Column('min_cashout_points', sa.Integer(), nullable=False, server_default='100'),
    )

    op.create_table(
        'household_settings',
        sa.Column('key', sa.String(32), primary_key=True),
        sa.Column('display_name', sa.String(100), nullable=False, server_default='Family Dashboard'),
        sa.Column('carousel_interval', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('carousel_animation', sa.String(16), nullable=False, server_default='slide'),
        sa.Column('theme', sa.String(32), nullable=False, server_default='auto'),
        sa.Column('header_mode', sa.String(16), nullable=False, server_default='clock'),
        sa.Column('header_alternate_interval', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('weather_lat', sa.Numeric(9, 6), nullable=True),
        sa.Column('weather_lon', sa.Numeric(9, 6), nullable=True),
        sa.Column('weather_city', sa.String(100), nullable=True),
        sa.Column('screensaver_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('screensaver_start_hour', sa.Integer(), nullable=False, server_default='18'),
        sa.Column('screensaver_end_hour', sa.Integer(), nullable=False, server_default='23'),
        sa.Column('screensaver_photo_path', sa.String(500), nullable=True),
        sa.Column('screensaver_interval', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('pin_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('pin_hash', sa.String(255), nullable=True),
        sa.Column('pin_failed_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pin_locked_until', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'pin_sessions',
        sa.Column('token', sa.String(64), primary_key=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('action', sa.String(64), nullable=False, index=True),
        sa.Column('entity_type', sa.String(32), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False),
        sa.Column('old_value', json_type, nullable=True),
        sa.Column('new_value', json_type, nullable=True),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('performed_by', sa.String(64), nullable=True, index=True),
        sa.Column('performed_by_name', sa.String(100), nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])

    op.create_table(
        'chores',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('icon', sa.String(32), nullable=True),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('priority', sa.String(16), nullable=False, server_default='NORMAL'),
        sa.Column('recurrence', sa.String(16), nullable=True),
        sa.Column('recur_days', json_type, nullable=True),
        sa.Column('recur_time', sa.String(5), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'chore_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('chore_id', sa.Integer(), nullable=False, index=True),
        sa.Column('member_id', sa.Integer(), nullable=False, index=True),
        sa.Column('rotation_order', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('chore_id', 'member_id', name='uq_chore_assignment'),
    )

    op.create_table(
        'chore_completions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('chore_id', sa.Integer(), nullable=False, index=True),
        sa.Column('completed_by_id', sa.Integer(), nullable=False),
        sa.Column('completed_date', sa.Date(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=False),
        sa.Column('points_awarded', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('chore_id', 'completed_date', name='uq_chore_completion_day'),
    )

    op.create_table(
        'habits',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('icon', sa.String(32), nullable=True),
        sa.Column('points', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('frequency', sa.String(16), nullable=False, server_default='DAILY'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'habit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('habit_id', sa.Integer(), nullable=False, index=True),
        sa.Column('member_id', sa.Integer(), nullable=False, index=True),
        sa.Column('log_date', sa.Date(), nullable=False),
        sa.Column('points_awarded', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('habit_id', 'member_id', 'log_date', name='uq_habit_log_day'),
    )

    op.create_table(
        'recipes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cuisine', sa.String(64), nullable=True),
        sa.Column('icon', sa.String(32), nullable=True),
        sa.Column('prep_time', sa.Integer(), nullable=True),
        sa.Column('cook_time', sa.Integer(), nullable=True),
        sa.Column('servings', sa.Integer(), nullable=False, server_default='4'),
        sa.Column('difficulty', sa.String(16), nullable=False, server_default='EASY'),
        sa.Column('ingredients', json_type, nullable=False),
        sa.Column('instructions', json_type, nullable=False),
        sa.Column('tips', json_type, nullable=True),
        sa.Column('tags', json_type, nullable=True),
        sa.Column('meal_types', json_type, nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'recipe_ratings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('recipe_id', sa.Integer(), nullable=False, index=True),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('would_make_again', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('recipe_id', 'member_id', name='uq_recipe_rating_member'),
    )

    op.create_table(
        'meal_plan_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('day_of_week', sa.String(3), nullable=False),
        sa.Column('meal_type', sa.String(16), nullable=False),
        sa.Column('recipe_id', sa.Integer(), nullable=True, index=True),
        sa.Column('custom_meal', sa.String(200), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.UniqueConstraint('week_number', 'day_of_week', 'meal_type', name='uq_meal_plan_slot'),
    )

    op.create_table(
        'schedule_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('time', sa.String(5), nullable=False),
        sa.Column('icon', sa.String(32), nullable=True),
        sa.Column('days', json_type, nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
    )

    op.create_table(
        'shopping_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit', sa.String(32), nullable=True),
        sa.Column('store', sa.String(32), nullable=False, server_default='OTHER'),
        sa.Column('notes', sa.String(500), nullable=True),
        sa.Column('checked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('priority', sa.String(16), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('recurrence', sa.String(64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('tasks')
    op.drop_table('shopping_items')
    op.drop_table('schedule_items')
    op.drop_table('meal_plan_items')
    op.drop_table('recipe_ratings')
    op.drop_table('recipes')
    op.drop_table('habit_logs')
    op.drop_table('habits')
    op.drop_table('chore_completions')
    op.drop_table('chore_assignments')
    op.drop_table('chores')
    op.drop_index('ix_audit_logs_entity', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_table('pin_sessions')
    op.drop_table('household_settings')
    op.drop_table('points_settings')
    op.drop_table('reward_redemptions')
    op.drop_table('rewards')
    op.drop_table('family_members')
