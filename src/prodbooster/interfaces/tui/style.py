from datetime import datetime, timedelta

from prodbooster.core.models import Event, FilterType, Note, Priority, Task
from prodbooster.core.pipeline import TaskStats
from prodbooster.interfaces.tui.data import ViewId
from prodbooster.util.time import DISPLAY_FMT, in_today, today_window

MAIN_THEME_COLOR = 1
ACTIVE_TAB_COLOR = 2
SUPPRESSED_COLOR = 3
COMPLETED_COLOR = 4
OVERDUE_COLOR = 5
DUE_TODAY_COLOR = 6
UPCOMING_COLOR = 7
NORMAL_COLOR = 8
DIALOG_BG_COLOR = 9
SEARCH_BG_COLOR = 10
FRESH_NOTE_COLOR = 11
WEEK_NOTE_COLOR = 12
ERROR_COLOR = 13

# color pair index -> (foreground, background) in 256-color ANSI codes
COLOR_PAIRS: dict[int, tuple[int, int]] = {
    MAIN_THEME_COLOR: (205, -1),  # topbar
    ACTIVE_TAB_COLOR: (231, 205),  # active tab
    SUPPRESSED_COLOR: (240, -1),  # past events, old notes
    COMPLETED_COLOR: (70, -1),  # done
    OVERDUE_COLOR: (196, -1),  # overdue
    DUE_TODAY_COLOR: (214, -1),  # today
    UPCOMING_COLOR: (147, -1),  # future
    NORMAL_COLOR: (252, -1),  # no due date
    DIALOG_BG_COLOR: (-1, 236),  # form dialog
    SEARCH_BG_COLOR: (-1, 238),  # search box
    FRESH_NOTE_COLOR: (51, -1),  # note < 1 day
    WEEK_NOTE_COLOR: (45, -1),  # note < 7 days
    ERROR_COLOR: (196, -1),  # footer errors
}

MAX_DIALOG_BOX_WIDTH = 80
MAX_SEARCH_BOX_WIDTH = 60

PRIORITY_MARK_MAP = {
    Priority.HIGH: "●",
    Priority.MEDIUM: "◐",
    Priority.LOW: "○",
}
COMPLETED_MARK = "✓"


def task_mark(t: Task) -> str:
    if t.completed:
        return COMPLETED_MARK
    return PRIORITY_MARK_MAP[t.priority]


def task_color(t: Task, current: datetime) -> int:
    if t.completed:
        return COMPLETED_COLOR
    if t.due_at is None:
        return NORMAL_COLOR
    if t.due_at < current:
        return OVERDUE_COLOR
    _, end_of_today = today_window(current)
    if t.due_at < end_of_today:
        return DUE_TODAY_COLOR
    return UPCOMING_COLOR


def event_color(ev: Event, current: datetime) -> int:
    if ev.start_at < current:
        return SUPPRESSED_COLOR
    if in_today(ev.start_at, current):
        return DUE_TODAY_COLOR
    return UPCOMING_COLOR


def note_color(n: Note, current: datetime) -> int:
    age = current - n.created_at
    if age < timedelta(days=1):
        return FRESH_NOTE_COLOR
    if age < timedelta(days=7):
        return WEEK_NOTE_COLOR
    return SUPPRESSED_COLOR


def task_line(t: Task) -> str:
    line = f"{task_mark(t)} {t.title}"
    if t.due_at is not None:
        line += f"  (due {t.due_at.strftime(DISPLAY_FMT)})"
    return line


def event_line(ev: Event) -> str:
    return f"{ev.start_at.strftime(DISPLAY_FMT)} • {ev.title}"


def note_line(n: Note) -> str:
    return f"{n.created_at.strftime('%Y-%m-%d')} {n.title}"


def filter_label(query: str, filter_type: FilterType) -> str:
    parts: list[str] = []
    if query:
        parts.append(f'"{query}"')
    if filter_type is not FilterType.NONE:
        parts.append(filter_type.label)
    return "Filter: " + (" + ".join(parts) if parts else "none")


def task_detail_lines(t: Task) -> list[str]:
    return [
        f"Title   : {t.title}",
        f"Status  : {'completed' if t.completed else 'pending'}",
        f"Priority: {t.priority.label}",
        f"Due     : {t.due_at.strftime(DISPLAY_FMT) if t.due_at else ''}",
        f"Created : {t.created_at.strftime(DISPLAY_FMT)}",
        "",
        t.description,
    ]


def note_detail_lines(n: Note) -> list[str]:
    return [
        f"Title   : {n.title}",
        f"Created : {n.created_at.strftime(DISPLAY_FMT)}",
        "",
        n.content,
    ]


def event_detail_lines(ev: Event) -> list[str]:
    return [
        f"Title   : {ev.title}",
        f"Start   : {ev.start_at.strftime(DISPLAY_FMT)}",
        f"End     : {ev.end_at.strftime(DISPLAY_FMT)}",
        f"Location: {ev.location}",
        "",
        ev.content,
    ]


class HeaderLines:
    """Header lines for the TUI."""

    @classmethod
    def height(cls) -> int:
        return 2

    @classmethod
    def title(cls) -> str:
        return "--- prodbooster ---"

    @classmethod
    def tabs(cls) -> list[tuple[ViewId, str]]:
        return [(v, f" [{i}] {v.label} ") for i, v in enumerate(ViewId, start=1)]

    @classmethod
    def hero(cls, stats: TaskStats) -> str:
        return f"{stats.pending} pending • {stats.overdue} overdue • {stats.due_today} due today"
