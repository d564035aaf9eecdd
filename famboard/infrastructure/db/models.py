"""
SQLAlchemy ORM models

Single-household database: no account scoping, plain integer references
between tables. Timestamps the application compares against (expiry,
lockout, completion) are naive UTC set from Python.
"""
from datetime import date as date_type, datetime
from decimal import Decimal
from sqlalchemy import (
    JSON, String, DateTime, Integer, Text, TIMESTAMP, Date, func, Boolean, Numeric,
    UniqueConstraint, Index, false, true,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from famboard.infrastructure.db.session import Base


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in dev/tests)
JsonType = JSON().with_variant(JSONB(), "postgresql")


# ============================================================================
# Family & points
# ============================================================================


class FamilyMember(Base):
    __tablename__ = "family_members"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, server_default="CHILD")  # PARENT / CHILD
    avatar: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_type: Mapped[str] = mapped_column(String(16), nullable=False, server_default="initial")  # initial/emoji/image
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    birthday: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    card_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)  # NFC card UID

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class PointTransaction(Base):
    """
    Points ledger entry (append-only)

    Balance = SUM(amount) per member. Rows are never updated; reversals
    are recorded as compensating entries.
    """
    __tablename__ = "point_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    member_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # signed
    type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    chore_completion_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    habit_log_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    redemption_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)


class Reward(Base):
    __tablename__ = "rewards"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    is_cash_reward: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    cash_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class RewardRedemption(Base):
    """
    Redemption request: PENDING -> APPROVED | DENIED (exactly once)
    """
    __tablename__ = "reward_redemptions"

    id: Mapped[int] = mapped_column(primary_key=True)
    reward_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    requested_by_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    points_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="PENDING", index=True)

    approved_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    denial_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    requested_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class PointsSettings(Base):
    """Points/cash conversion (single row, id=1)"""
    __tablename__ = "points_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    cash_conversion_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False, server_default="0.01")
    min_cashout_points: Mapped[int] = mapped_column(Integer, nullable=False, server_default="100")


# ============================================================================
# Household settings & PIN
# ============================================================================


class HouseholdSettings(Base):
    """
    Household-wide configuration row

    One row keyed by HOUSEHOLD_SETTINGS_KEY. Loaded once per request and
    passed explicitly to the code that needs it.
    """
    __tablename__ = "household_settings"

    key: Mapped[str] = mapped_column(String(32), primary_key=True)

    # Display
    display_name: Mapped[str] = mapped_column(String(100), nullable=False, server_default="Family Dashboard")
    carousel_interval: Mapped[int] = mapped_column(Integer, nullable=False, server_default="30")
    carousel_animation: Mapped[str] = mapped_column(String(16), nullable=False, server_default="slide")
    theme: Mapped[str] = mapped_column(String(32), nullable=False, server_default="auto")
    header_mode: Mapped[str] = mapped_column(String(16), nullable=False, server_default="clock")
    header_alternate_interval: Mapped[int] = mapped_column(Integer, nullable=False, server_default="30")

    # Weather
    weather_lat: Mapped[float | None] = mapped_column(Numeric(9, 6, asdecimal=False), nullable=True)
    weather_lon: Mapped[float | None] = mapped_column(Numeric(9, 6, asdecimal=False), nullable=True)
    weather_city: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Screensaver
    screensaver_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    screensaver_start_hour: Mapped[int] = mapped_column(Integer, nullable=False, server_default="18")
    screensaver_end_hour: Mapped[int] = mapped_column(Integer, nullable=False, server_default="23")
    screensaver_photo_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    screensaver_interval: Mapped[int] = mapped_column(Integer, nullable=False, server_default="15")

    # PIN
    pin_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    pin_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    pin_failed_attempts: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    pin_locked_until: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class PinSession(Base):
    __tablename__ = "pin_sessions"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class AuditLog(Base):
    """
    Audit trail of administrative and points-affecting actions
    """
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    old_value: Mapped[dict | None] = mapped_column(JsonType, nullable=True)
    new_value: Mapped[dict | None] = mapped_column(JsonType, nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    performed_by: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    performed_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )


# ============================================================================
# Chores & habits
# ============================================================================


class Chore(Base):
    __tablename__ = "chores"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    priority: Mapped[str] = mapped_column(String(16), nullable=False, server_default="NORMAL")  # LOW/NORMAL/HIGH
    recurrence: Mapped[str | None] = mapped_column(String(16), nullable=True)  # DAILY/WEEKLY/CUSTOM or one-time
    recur_days: Mapped[list | None] = mapped_column(JsonType, nullable=True)  # ["MON", "WED"]
    recur_time: Mapped[str | None] = mapped_column(String(5), nullable=True)  # HH:MM
    due_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class ChoreAssignment(Base):
    __tablename__ = "chore_assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    chore_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    member_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    rotation_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    __table_args__ = (
        UniqueConstraint("chore_id", "member_id", name="uq_chore_assignment"),
    )


class ChoreCompletion(Base):
    """One completion per chore per (local) day"""
    __tablename__ = "chore_completions"

    id: Mapped[int] = mapped_column(primary_key=True)
    chore_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    completed_by_id: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    points_awarded: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    __table_args__ = (
        UniqueConstraint("chore_id", "completed_date", name="uq_chore_completion_day"),
    )


class Habit(Base):
    __tablename__ = "habits"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    frequency: Mapped[str] = mapped_column(String(16), nullable=False, server_default="DAILY")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class HabitLog(Base):
    """One log per habit per member per day"""
    __tablename__ = "habit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    habit_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    member_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    log_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    points_awarded: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("habit_id", "member_id", "log_date", name="uq_habit_log_day"),
    )


# ============================================================================
# Meals
# ============================================================================


class Recipe(Base):
    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cuisine: Mapped[str | None] = mapped_column(String(64), nullable=True)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    prep_time: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    cook_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    servings: Mapped[int] = mapped_column(Integer, nullable=False, server_default="4")
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False, server_default="EASY")

    # [{"name", "quantity", "unit", "notes"}]
    ingredients: Mapped[list] = mapped_column(JsonType, nullable=False)
    instructions: Mapped[list] = mapped_column(JsonType, nullable=False)
    tips: Mapped[list | None] = mapped_column(JsonType, nullable=True)
    tags: Mapped[list | None] = mapped_column(JsonType, nullable=True)
    meal_types: Mapped[list | None] = mapped_column(JsonType, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class RecipeRating(Base):
    __tablename__ = "recipe_ratings"

    id: Mapped[int] = mapped_column(primary_key=True)
    recipe_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    member_id: Mapped[int] = mapped_column(Integer, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..5
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    would_make_again: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("recipe_id", "member_id", name="uq_recipe_rating_member"),
    )


class MealPlanItem(Base):
    __tablename__ = "meal_plan_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..4
    day_of_week: Mapped[str] = mapped_column(String(3), nullable=False)  # SUN..SAT
    meal_type: Mapped[str] = mapped_column(String(16), nullable=False)  # BREAKFAST/LUNCH/DINNER/SNACK
    recipe_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    custom_meal: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())

    __table_args__ = (
        UniqueConstraint("week_number", "day_of_week", "meal_type", name="uq_meal_plan_slot"),
    )


# ============================================================================
# Household lists
# ============================================================================


class ScheduleItem(Base):
    __tablename__ = "schedule_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    days: Mapped[list | None] = mapped_column(JsonType, nullable=True)  # None = every day
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())


class ShoppingItem(Base):
    __tablename__ = "shopping_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    unit: Mapped[str | None] = mapped_column(String(32), nullable=True)
    store: Mapped[str] = mapped_column(String(32), nullable=False, server_default="OTHER")
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    checked: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    priority: Mapped[str | None] = mapped_column(String(16), nullable=True)
    due_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    start_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    scheduled_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    recurrence: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    source_file: Mapped[str | None] = mapped_column(String(255), nullable=True)  # import origin

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


# ============================================================================
# Backups
# ============================================================================

class Backup(Base):
    """Stored snapshot of the household data (see application/backup.py)"""
    __tablename__ = "backups"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[str] = mapped_column(String(16), nullable=False)
    data: Mapped[dict] = mapped_column(JsonType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
