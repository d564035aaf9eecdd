"""
Tests for tasks, the daily schedule and the shopping list
"""
from datetime import date

import pytest

from famboard.application.errors import NotFound
from famboard.application.schedule import (
    CreateScheduleItemUseCase, ScheduleValidationError, UpdateScheduleItemUseCase, list_schedule,
)
from famboard.application.shopping import (
    AddShoppingItemUseCase, AddShoppingItemsUseCase, ClearCheckedItemsUseCase,
    ShoppingValidationError, UpdateShoppingItemUseCase, list_items,
)
from famboard.application.tasks import (
    CreateTaskUseCase, DeleteTaskUseCase, TaskValidationError, UpdateTaskUseCase, list_tasks,
)


class TestTasks:
    def test_ordering_open_first_then_due_date(self, db_session):
        undated = CreateTaskUseCase(db_session).execute("Call plumber")
        later = CreateTaskUseCase(db_session).execute("Taxes", due_date=date(2026, 4, 15))
        sooner = CreateTaskUseCase(db_session).execute("Permission slip", due_date=date(2026, 3, 5))

        assert [t.id for t in list_tasks(db_session)] == [sooner.id, later.id, undated.id]

    def test_completing_stamps_completed_at(self, db_session):
        task = CreateTaskUseCase(db_session).execute("Oil change")
        UpdateTaskUseCase(db_session).execute(task.id, {"completed": True})
        assert task.completed_at is not None
        assert list_tasks(db_session) == []
        assert len(list_tasks(db_session, show_completed=True)) == 1

        UpdateTaskUseCase(db_session).execute(task.id, {"completed": False})
        assert task.completed_at is None

    def test_priority_validated(self, db_session):
        with pytest.raises(TaskValidationError, match="priority must be one of"):
            CreateTaskUseCase(db_session).execute("Oil change", priority="URGENT")

    def test_delete(self, db_session):
        task = CreateTaskUseCase(db_session).execute("Oil change")
        DeleteTaskUseCase(db_session).execute(task.id)
        with pytest.raises(NotFound, match="Task not found"):
            DeleteTaskUseCase(db_session).execute(task.id)


class TestSchedule:
    def test_ordered_by_time(self, db_session):
        CreateScheduleItemUseCase(db_session).execute("Bedtime", "20:30")
        CreateScheduleItemUseCase(db_session).execute("School bus", "07:15", days=["mon", "tue"])
        items = list_schedule(db_session)
        assert [i.title for i in items] == ["School bus", "Bedtime"]
        assert items[0].days == ["MON", "TUE"]

    def test_time_format(self, db_session):
        with pytest.raises(ScheduleValidationError, match="HH:MM"):
            CreateScheduleItemUseCase(db_session).execute("Bedtime", "8:30pm")

    def test_inactive_hidden(self, db_session):
        item = CreateScheduleItemUseCase(db_session).execute("Piano", "16:00")
        UpdateScheduleItemUseCase(db_session).execute(item.id, {"is_active": False})
        assert list_schedule(db_session) == []
        assert len(list_schedule(db_session, active_only=False)) == 1


class TestShopping:
    def test_add_normalizes(self, db_session):
        item = AddShoppingItemUseCase(db_session).execute("  Milk ", quantity=0, store="costco")
        assert item.name == "Milk"
        assert item.quantity == 1
        assert item.store == "COSTCO"

    def test_unknown_store(self, db_session):
        with pytest.raises(ShoppingValidationError, match="store must be one of"):
            AddShoppingItemUseCase(db_session).execute("Milk", store="KROGER")

    def test_list_groups_by_store_unchecked_first(self, db_session):
        milk = AddShoppingItemUseCase(db_session).execute("Milk", store="COSTCO")
        AddShoppingItemUseCase(db_session).execute("Apples", store="WINCO")
        UpdateShoppingItemUseCase(db_session).execute(milk.id, {"checked": True})

        result = list_items(db_session)
        assert [i["name"] for i in result["items"]] == ["Apples", "Milk"]
        assert set(result["byStore"]) == {"COSTCO", "WINCO"}
        assert [i["name"] for i in list_items(db_session, show_checked=False)["items"]] == ["Apples"]

    def test_bulk_add_with_clear(self, db_session):
        kept = AddShoppingItemUseCase(db_session).execute("Paper towels")
        UpdateShoppingItemUseCase(db_session).execute(kept.id, {"checked": True})
        AddShoppingItemUseCase(db_session).execute("Old item")

        created = AddShoppingItemsUseCase(db_session).execute(
            [{"name": "Garlic", "store": "WINCO"}, {"name": "Salmon", "quantity": 2, "store": "COSTCO"}],
            clear_existing=True,
        )

        assert created == 2
        names = sorted(i["name"] for i in list_items(db_session)["items"])
        assert names == ["Garlic", "Paper towels", "Salmon"]

    def test_clear_checked(self, db_session):
        item = AddShoppingItemUseCase(db_session).execute("Eggs")
        AddShoppingItemUseCase(db_session).execute("Bread")
        UpdateShoppingItemUseCase(db_session).execute(item.id, {"checked": True})
        assert ClearCheckedItemsUseCase(db_session).execute() == 1
        assert [i["name"] for i in list_items(db_session)["items"]] == ["Bread"]
