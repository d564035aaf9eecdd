"""
Tests for the Obsidian Tasks markdown import
"""
from datetime import date

import pytest

from famboard.application.task_import import ImportTasksUseCase, parse_markdown, parse_task_line
from famboard.application.tasks import TaskValidationError
from famboard.infrastructure.db.models import Task

CHECKLIST = """# Home

Some notes that are not tasks.

- [ ] Renew passports ⏫ 🛫 2026-04-01 📅 2026-04-30
- [x] Call plumber 🔁 every month ✅ 2026-03-02
* [ ] Sort the garage 🔽 ⏳ 2026-05-09
- [ ] 📅 2026-06-01
"""


class TestParseTaskLine:
    def test_plain_checkbox(self):
        task = parse_task_line("- [ ] Buy stamps")
        assert task.title == "Buy stamps"
        assert task.completed is False
        assert task.priority is None
        assert task.due_date is None

    def test_all_metadata(self):
        task = parse_task_line("- [ ] Renew passports ⏫ 🛫 2026-04-01 ⏳ 2026-04-10 📅 2026-04-30")
        assert task.title == "Renew passports"
        assert task.priority == "HIGH"
        assert task.start_date == date(2026, 4, 1)
        assert task.scheduled_date == date(2026, 4, 10)
        assert task.due_date == date(2026, 4, 30)

    def test_completed_with_recurrence(self):
        task = parse_task_line("  - [X] Call plumber 🔁 every month ✅ 2026-03-02")
        assert task.completed is True
        assert task.recurrence == "every month"
        assert task.title == "Call plumber"

    @pytest.mark.parametrize("marker, priority", [
        ("🔺", "HIGH"), ("⏫", "HIGH"), ("🔼", "MEDIUM"), ("🔽", "LOW"), ("⏬", "LOW"),
    ])
    def test_priorities(self, marker, priority):
        assert parse_task_line(f"- [ ] Water plants {marker}").priority == priority

    def test_impossible_date_is_dropped(self):
        task = parse_task_line("- [ ] Leap day party 📅 2026-02-30")
        assert task.title == "Leap day party"
        assert task.due_date is None

    def test_cancelled_marker_removed(self):
        task = parse_task_line("- [ ] Old idea ❌ 2026-01-05")
        assert task.title == "Old idea"

    @pytest.mark.parametrize("line", ["Just text", "- not a checkbox", "", "- [ ] ⏫ 📅 2026-06-01"])
    def test_skipped_lines(self, line):
        assert parse_task_line(line) is None

    def test_parse_markdown_keeps_order(self):
        titles = [t.title for t in parse_markdown(CHECKLIST)]
        assert titles == ["Renew passports", "Call plumber", "Sort the garage"]


class TestImportTasks:
    def test_preview_saves_nothing(self, db_session):
        parsed, imported = ImportTasksUseCase(db_session).execute(CHECKLIST)
        assert len(parsed) == 3
        assert imported == 0
        assert db_session.query(Task).count() == 0
        assert parsed[0].to_dict()["dueDate"] == "2026-04-30"

    def test_save_creates_tasks(self, db_session):
        parsed, imported = ImportTasksUseCase(db_session).execute(CHECKLIST, save=True, source_file="Home.md")
        assert imported == 3

        tasks = db_session.query(Task).order_by(Task.id).all()
        assert [t.title for t in tasks] == ["Renew passports", "Call plumber", "Sort the garage"]
        assert {t.source_file for t in tasks} == {"Home.md"}
        plumber = tasks[1]
        assert plumber.completed is True
        assert plumber.completed_at is not None
        assert plumber.recurrence == "every month"
        assert tasks[2].scheduled_date == date(2026, 5, 9)

    def test_empty_markdown(self, db_session):
        with pytest.raises(TaskValidationError, match="Markdown content is required"):
            ImportTasksUseCase(db_session).execute("   \n")

    def test_overlong_title_rejects_the_whole_import(self, db_session):
        markdown = "- [ ] Fine\n- [ ] " + "x" * 250
        with pytest.raises(TaskValidationError, match="longer than 200"):
            ImportTasksUseCase(db_session).execute(markdown, save=True)
        assert db_session.query(Task).count() == 0
