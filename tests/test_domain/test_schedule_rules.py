"""Tests for chore recurrence, meal plan calendar and role permissions"""
from datetime import date

import pytest

from famboard.domain.chore_schedule import day_code, is_due_on, validate_recur_days
from famboard.domain.meal_plan import current_week_number, day_of_week, parse_weeks
from famboard.domain.member import default_avatar, has_permission


class TestChoreRecurrence:
    def test_daily(self):
        assert is_due_on("DAILY", None, None, date(2026, 3, 4))

    def test_weekly_days(self):
        wednesday = date(2026, 3, 4)
        assert day_code(wednesday) == "WED"
        assert is_due_on("WEEKLY", ["MON", "wed"], None, wednesday)
        assert not is_due_on("CUSTOM", ["MON"], None, wednesday)

    def test_one_time(self):
        assert is_due_on(None, None, date(2026, 3, 4), date(2026, 3, 4))
        assert not is_due_on(None, None, date(2026, 3, 5), date(2026, 3, 4))
        assert not is_due_on(None, None, None, date(2026, 3, 4))

    def test_validate_recur_days(self):
        assert validate_recur_days([" mon", "Fri"]) == ["MON", "FRI"]
        assert validate_recur_days(None) is None
        with pytest.raises(ValueError, match="XYZ"):
            validate_recur_days(["xyz"])


class TestMealPlanCalendar:
    def test_day_of_week(self):
        assert day_of_week(date(2026, 3, 1)) == "SUN"
        assert day_of_week(date(2026, 3, 7)) == "SAT"

    def test_week_number_cycles(self):
        # 2026-01-01 is a Thursday: Jan 1-3 is week 1, Jan 4 starts week 2
        assert current_week_number(date(2026, 1, 1)) == 1
        assert current_week_number(date(2026, 1, 4)) == 2
        assert current_week_number(date(2026, 1, 25)) == 1

    def test_parse_weeks(self):
        assert parse_weeks(None) == [2, 3, 4]
        assert parse_weeks("1, 3, 3, 9, x") == [1, 3]
        with pytest.raises(ValueError, match="Invalid weeks parameter"):
            parse_weeks("7,abc")


class TestPermissions:
    def test_child_permissions(self):
        assert has_permission("CHILD", "chores:complete_own")
        assert not has_permission("CHILD", "chores:complete_any")
        assert not has_permission("CHILD", "points:award")

    def test_parent_permissions(self):
        assert has_permission("PARENT", "audit:view")
        assert not has_permission("PARENT", "rewards:request")

    def test_anonymous(self):
        assert not has_permission(None, "shopping:check")

    def test_default_avatar(self):
        assert default_avatar(" emma") == "E"
        assert default_avatar("") == "?"
