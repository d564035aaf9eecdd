"""
Import of Obsidian Tasks checklists

One task per checkbox line. Emoji markers carry the metadata:

    - [ ] Renew passports ⏫ 🛫 2026-04-01 📅 2026-04-30
    - [x] Call plumber 🔁 every month ✅ 2026-03-02

Lines without a checkbox, and checkboxes whose text is only markers, are
skipped.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from famboard.application.tasks import TaskValidationError
from famboard.infrastructure.db.models import Task
from famboard.utils.clock import utc_now
from famboard.utils.validation import TITLE_MAX

logger = logging.getLogger(__name__)

DUE = "📅"
START = "🛫"
SCHEDULED = "⏳"
RECURRENCE = "🔁"
DONE = "✅"
CANCELLED = "❌"

# highest/lowest fold into the three priorities tasks have
PRIORITY_MARKERS = [
    ("🔺", "HIGH"),
    ("⏫", "HIGH"),
    ("🔼", "MEDIUM"),
    ("🔽", "LOW"),
    ("⏬", "LOW"),
]

METADATA_MARKERS = (
    [marker for marker, _ in PRIORITY_MARKERS]
    + [DUE, START, SCHEDULED, RECURRENCE, DONE, CANCELLED]
)

CHECKBOX_RE = re.compile(r"^\s*[-*]\s*\[([ xX])\]\s*")
RECURRENCE_MAX = 64


def _date_re(marker: str) -> re.Pattern:
    return re.compile(re.escape(marker) + r"\ufe0f?\s*(\d{4}-\d{2}-\d{2})")


DUE_RE = _date_re(DUE)
START_RE = _date_re(START)
SCHEDULED_RE = _date_re(SCHEDULED)
DONE_RE = _date_re(DONE)
CANCELLED_RE = _date_re(CANCELLED)
RECURRENCE_RE = re.compile(
    re.escape(RECURRENCE) + r"\ufe0f?\s*([^" + "".join(re.escape(m) for m in METADATA_MARKERS) + r"]+)"
)
LEFTOVER_MARKERS_RE = re.compile("[\ufe0f" + "".join(re.escape(m) for m in METADATA_MARKERS) + "]")


@dataclass
class ParsedTask:
    title: str
    completed: bool = False
    priority: str | None = None
    due_date: date | None = None
    start_date: date | None = None
    scheduled_date: date | None = None
    recurrence: str | None = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "completed": self.completed,
            "priority": self.priority,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "scheduledDate": self.scheduled_date.isoformat() if self.scheduled_date else None,
            "recurrence": self.recurrence,
        }


def _take_date(pattern: re.Pattern, content: str) -> tuple[date | None, str]:
    """
    Pull a dated marker out of `content`

    A marker with an impossible date (2026-02-30) is dropped from the
    title and yields no date.
    """
    match = pattern.search(content)
    if match is None:
        return None, content
    content = (content[:match.start()] + content[match.end():]).strip()
    try:
        return date.fromisoformat(match.group(1)), content
    except ValueError:
        logger.info("Ignoring invalid task date %r", match.group(1))
        return None, content


def parse_task_line(line: str) -> ParsedTask | None:
    """
    Example:
        >>> parse_task_line("- [ ] Pay rent 📅 2026-05-01").due_date
        datetime.date(2026, 5, 1)
        >>> parse_task_line("Just a note") is None
        True
    """
    checkbox = CHECKBOX_RE.match(line)
    if checkbox is None:
        return None
    completed = checkbox.group(1).lower() == "x"
    content = line[checkbox.end():].strip()

    priority = None
    for marker, level in PRIORITY_MARKERS:
        if marker in content:
            priority = level
            content = content.replace(marker, "", 1).strip()
            break

    due_date, content = _take_date(DUE_RE, content)
    start_date, content = _take_date(START_RE, content)
    scheduled_date, content = _take_date(SCHEDULED_RE, content)

    recurrence = None
    match = RECURRENCE_RE.search(content)
    if match is not None:
        recurrence = match.group(1).strip() or None
        content = (content[:match.start()] + content[match.end():]).strip()

    _, content = _take_date(DONE_RE, content)
    _, content = _take_date(CANCELLED_RE, content)
    title = " ".join(LEFTOVER_MARKERS_RE.sub("", content).split())
    if not title:
        return None

    return ParsedTask(
        title=title,
        completed=completed,
        priority=priority,
        due_date=due_date,
        start_date=start_date,
        scheduled_date=scheduled_date,
        recurrence=recurrence,
    )


def parse_markdown(markdown: str) -> list[ParsedTask]:
    tasks = []
    for line in markdown.splitlines():
        task = parse_task_line(line)
        if task is not None:
            tasks.append(task)
    return tasks


class ImportTasksUseCase:
    """Parse a checklist; with save=True create a task per line in one commit"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        markdown: str,
        save: bool = False,
        source_file: str | None = None,
    ) -> tuple[list[ParsedTask], int]:
        """
        Returns:
            (parsed tasks, number of tasks created)

        Raises:
            TaskValidationError: empty input, or a line too long to store
        """
        if not markdown or not markdown.strip():
            raise TaskValidationError("Markdown content is required")

        parsed = parse_markdown(markdown)
        for task in parsed:
            if len(task.title) > TITLE_MAX:
                raise TaskValidationError(f"Task title longer than {TITLE_MAX} characters: {task.title[:40]}...")
            if task.recurrence and len(task.recurrence) > RECURRENCE_MAX:
                raise TaskValidationError(f"Recurrence longer than {RECURRENCE_MAX} characters: {task.title}")

        if not save or not parsed:
            return parsed, 0

        now = utc_now()
        for task in parsed:
            self.db.add(Task(
                title=task.title,
                completed=task.completed,
                completed_at=now if task.completed else None,
                priority=task.priority,
                due_date=task.due_date,
                start_date=task.start_date,
                scheduled_date=task.scheduled_date,
                recurrence=task.recurrence,
                source_file=source_file,
            ))
        self.db.commit()
        logger.info("Imported %d tasks from %s", len(parsed), source_file or "pasted markdown")
        return parsed, len(parsed)
