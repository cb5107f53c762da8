"""Initial schema: users, preferences, tasks, calendar, health, mood

Every resource table carries user_id → users.id (ON DELETE CASCADE).
health_calendar_events.health_metric_id is cleared (SET NULL) when its
metric goes away.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _owner() -> sa.Column:
    return sa.Column(
        'user_id', sa.Integer(),
        sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
    )


def upgrade() -> None:
    # ─── Users ───────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(50), nullable=False, unique=True),
        sa.Column('email', sa.String(100), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(100), nullable=True),
        sa.Column('avatar', sa.String(255), nullable=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'user_preferences',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'user_id', sa.Integer(),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False, unique=True,
        ),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('school', sa.String(100), nullable=True),
        sa.Column('grade', sa.String(50), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('email_reminders', sa.Boolean(), nullable=True),
        sa.Column('task_notifications', sa.Boolean(), nullable=True),
        sa.Column('health_reminders', sa.Boolean(), nullable=True),
        sa.Column('emotional_support_messages', sa.Boolean(), nullable=True),
        sa.Column('share_health_data', sa.Boolean(), nullable=True),
        sa.Column('share_emotional_data', sa.Boolean(), nullable=True),
        sa.Column('allow_parent_access', sa.Boolean(), nullable=True),
        sa.Column('allow_school_access', sa.Boolean(), nullable=True),
        sa.Column('dark_mode', sa.Boolean(), nullable=True),
        sa.Column('color_theme', sa.String(20), nullable=True),
        *_timestamps(),
    )

    # ─── Tasks ───────────────────────────────────────────
    op.create_table(
        'task_categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('icon', sa.String(50), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_task_categories_user_id', 'task_categories', ['user_id'])

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column(
            'category_id', sa.Integer(),
            sa.ForeignKey('task_categories.id'), nullable=True,
        ),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('priority', sa.String(10), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_tasks_user_id', 'tasks', ['user_id'])
    op.create_index('idx_tasks_user_status', 'tasks', ['user_id', 'status'])
    op.create_index('idx_tasks_user_due', 'tasks', ['user_id', 'due_date'])

    # ─── Calendar ────────────────────────────────────────
    op.create_table(
        'calendar_categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('color', sa.String(20), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_calendar_categories_user_id', 'calendar_categories', ['user_id'])

    op.create_table(
        'calendar_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column(
            'category_id', sa.Integer(),
            sa.ForeignKey('calendar_categories.id'), nullable=True,
        ),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(255), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('all_day', sa.Boolean(), nullable=True),
        sa.Column('reminder', sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_calendar_events_user_id', 'calendar_events', ['user_id'])
    op.create_index(
        'idx_calendar_events_user_start', 'calendar_events', ['user_id', 'start_time']
    )

    # ─── Health ──────────────────────────────────────────
    op.create_table(
        'health_metrics',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(20), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_health_metrics_user_id', 'health_metrics', ['user_id'])
    op.create_index(
        'idx_health_metrics_user_type_date', 'health_metrics', ['user_id', 'type', 'date']
    )

    op.create_table(
        'health_calendar_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('all_day', sa.Boolean(), nullable=True),
        sa.Column(
            'health_metric_id', sa.Integer(),
            sa.ForeignKey('health_metrics.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('metric_value', sa.Float(), nullable=True),
        sa.Column('recurrence_frequency', sa.String(10), nullable=False),
        sa.Column('recurrence_interval', sa.Integer(), nullable=True),
        sa.Column('recurrence_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reminder_time', sa.Integer(), nullable=True),
        sa.Column('reminder_type', sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        'ix_health_calendar_events_user_id', 'health_calendar_events', ['user_id']
    )
    op.create_index(
        'idx_health_events_user_start', 'health_calendar_events', ['user_id', 'start_time']
    )
    op.create_index(
        'idx_health_events_user_category', 'health_calendar_events', ['user_id', 'category']
    )

    # ─── Mood ────────────────────────────────────────────
    op.create_table(
        'mood_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('mood_score', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('factors', sa.JSON(), nullable=False),
        sa.Column('date_time', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_mood_logs_user_id', 'mood_logs', ['user_id'])
    op.create_index('idx_mood_logs_user_time', 'mood_logs', ['user_id', 'date_time'])


def downgrade() -> None:
    op.drop_table('mood_logs')
    op.drop_table('health_calendar_events')
    op.drop_table('health_metrics')
    op.drop_table('calendar_events')
    op.drop_table('calendar_categories')
    op.drop_table('tasks')
    op.drop_table('task_categories')
    op.drop_table('user_preferences')
    op.drop_table('users')
