"""SQLAlchemy ORM models — single source of truth for the database schema.

Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations and the COMPANION_SYNC_DB
startup sync both read Base.metadata.

Key concepts:
- Every resource row carries user_id → users.id. That column is the only
  ownership signal; services scope every query on it.
- Enumerated columns are plain strings here; the allowed values live in
  companion.schemas and are validated before a row is ever built.
- Timestamps are set from Python (utcnow) so they look the same on
  PostgreSQL and SQLite.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _owner_fk() -> Mapped[int]:
    return mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )


# ══════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════


class User(Base):
    """The subject — the authenticated identity that owns everything else.

    role gates admin-only routes; status gates routes composed with
    require_active. password_hash is a bcrypt hash, never the plaintext.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="user"
    )  # user, admin
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active"
    )  # active, inactive, suspended
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class UserPreference(Base):
    """Profile extras, notification and privacy settings — one row per user.

    Created lazily the first time any of them is written; readers fall back
    to the column defaults when the row does not exist yet.
    """

    __tablename__ = "user_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Profile
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    school: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    grade: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Notifications
    email_reminders: Mapped[bool] = mapped_column(Boolean, default=True)
    task_notifications: Mapped[bool] = mapped_column(Boolean, default=True)
    health_reminders: Mapped[bool] = mapped_column(Boolean, default=True)
    emotional_support_messages: Mapped[bool] = mapped_column(Boolean, default=True)

    # Privacy
    share_health_data: Mapped[bool] = mapped_column(Boolean, default=False)
    share_emotional_data: Mapped[bool] = mapped_column(Boolean, default=False)
    allow_parent_access: Mapped[bool] = mapped_column(Boolean, default=False)
    allow_school_access: Mapped[bool] = mapped_column(Boolean, default=False)

    # Theme
    dark_mode: Mapped[bool] = mapped_column(Boolean, default=False)
    color_theme: Mapped[str] = mapped_column(String(20), default="blue")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


# ══════════════════════════════════════════════════════════════
# Tasks
# ══════════════════════════════════════════════════════════════


class TaskCategory(Base):
    __tablename__ = "task_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = _owner_fk()
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(20), default="#4CAF50")
    icon: Mapped[str] = mapped_column(String(50), default="list")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class Task(Base):
    """A to-do item.

    Lifecycle is free-form: any status may follow any other.
    pending → in_progress → completed is the usual path, canceled ends it.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_user_status", "user_id", "status"),
        Index("idx_tasks_user_due", "user_id", "due_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = _owner_fk()
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("task_categories.id"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default="medium"
    )  # low, medium, high
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending"
    )  # pending, in_progress, completed, canceled
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


# ══════════════════════════════════════════════════════════════
# Calendar
# ══════════════════════════════════════════════════════════════


class CalendarCategory(Base):
    __tablename__ = "calendar_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = _owner_fk()
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(20), default="#2196F3")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class CalendarEvent(Base):
    __tablename__ = "calendar_events"
    __table_args__ = (
        Index("idx_calendar_events_user_start", "user_id", "start_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = _owner_fk()
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("calendar_categories.id"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    all_day: Mapped[bool] = mapped_column(Boolean, default=False)
    reminder: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )  # minutes before start
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


# ══════════════════════════════════════════════════════════════
# Health
# ══════════════════════════════════════════════════════════════


class HealthMetric(Base):
    """One measurement: weight, sleep hours, water intake, ...

    Served by both /api/health and /api/health-metrics.
    """

    __tablename__ = "health_metrics"
    __table_args__ = (
        Index("idx_health_metrics_user_type_date", "user_id", "type", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = _owner_fk()
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class HealthCalendarEvent(Base):
    """A health-related calendar entry, optionally linked to a HealthMetric.

    The link is two-way in behavior: recording a metric books an event,
    booking an event with a value records a metric, and deleting the
    event removes its metric.
    """

    __tablename__ = "health_calendar_events"
    __table_args__ = (
        Index("idx_health_events_user_start", "user_id", "start_time"),
        Index("idx_health_events_user_category", "user_id", "category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = _owner_fk()
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    category: Mapped[str] = mapped_column(
        String(20), nullable=False, default="other"
    )  # medication, appointment, exercise, diet, measurement, other
    color: Mapped[str] = mapped_column(String(20), default="#3788d8")
    all_day: Mapped[bool] = mapped_column(Boolean, default=False)
    health_metric_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("health_metrics.id", ondelete="SET NULL"), nullable=True
    )
    metric_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    recurrence_frequency: Mapped[str] = mapped_column(
        String(10), nullable=False, default="none"
    )  # none, daily, weekly, monthly
    recurrence_interval: Mapped[int] = mapped_column(Integer, default=1)
    recurrence_end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reminder_time: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )  # minutes before start
    reminder_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="notification"
    )  # notification, email, sms
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


# ══════════════════════════════════════════════════════════════
# Mood
# ══════════════════════════════════════════════════════════════


class MoodLog(Base):
    __tablename__ = "mood_logs"
    __table_args__ = (
        Index("idx_mood_logs_user_time", "user_id", "date_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = _owner_fk()
    mood_score: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..10
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    factors: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    date_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


# Owned tables in the order they must be cleared when a user is removed.
OWNED_MODELS = (
    HealthCalendarEvent,
    HealthMetric,
    MoodLog,
    CalendarEvent,
    CalendarCategory,
    Task,
    TaskCategory,
    UserPreference,
)
