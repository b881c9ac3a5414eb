from datetime import datetime, timedelta

from prodbooster.core.models import Event, Note, Priority, Task
from prodbooster.util.time import today_window

SCORE_COMPLETED = 0
SCORE_OVERDUE = 100
SCORE_DUE_TODAY = 90
PRIORITY_SCORES: dict[Priority, int] = {
    Priority.HIGH: 80,
    Priority.MEDIUM: 70,
    Priority.LOW: 60,
}

SCORE_EVENT_TODAY = 100
SCORE_EVENT_THIS_WEEK = 90
SCORE_EVENT_LATER = 80
SCORE_EVENT_PAST = 50
EVENT_WEEK = timedelta(days=7)


def task_score(t: Task, current: datetime) -> int:
    if t.completed:
        return SCORE_COMPLETED
    if t.due_at is not None:
        if t.due_at < current:
            return SCORE_OVERDUE
        _, end_of_today = today_window(current)
        if t.due_at < end_of_today:
            return SCORE_DUE_TODAY
    return PRIORITY_SCORES[t.priority]


def event_score(ev: Event, current: datetime) -> int:
    start, end = today_window(current)
    if start <= ev.start_at < end:
        return SCORE_EVENT_TODAY
    if current < ev.start_at < current + EVENT_WEEK:
        return SCORE_EVENT_THIS_WEEK
    if ev.start_at > current:
        return SCORE_EVENT_LATER
    return SCORE_EVENT_PAST


def task_sort_key(t: Task, current: datetime) -> int:
    # score desc; equal scores keep load order (sorted() is stable)
    return -task_score(t, current)


def event_sort_key(ev: Event, current: datetime) -> tuple[int, float]:
    # score desc, then soonest first for upcoming tiers and most recent first below them
    score = event_score(ev, current)
    ts = ev.start_at.timestamp()
    return (-score, ts if score >= SCORE_EVENT_THIS_WEEK else -ts)


def note_sort_key(n: Note) -> datetime:
    return n.created_at
