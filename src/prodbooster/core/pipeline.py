"""Derive display orderings from a live collection.

Everything here is pure: the input sequence is never reordered or modified,
and the same inputs always give the same output.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from prodbooster.core.models import Entity, Event, FilterType, Note, Priority, Task
from prodbooster.core.sort import event_sort_key, note_sort_key, task_sort_key
from prodbooster.util.time import in_today, now

T = TypeVar("T", Task, Note, Event)

PRIORITY_FILTERS: dict[FilterType, Priority] = {
    FilterType.HIGH_PRIORITY: Priority.HIGH,
    FilterType.MEDIUM_PRIORITY: Priority.MEDIUM,
    FilterType.LOW_PRIORITY: Priority.LOW,
}


def match_query(text: str, query: str) -> bool:
    if not query:
        return True
    return query.lower() in text.lower()


def searchable_text(entity: Entity) -> str:
    match entity:
        case Task():
            return f"{entity.title} {entity.description}"
        case Note():
            return f"{entity.title} {entity.content}"
        case Event():
            return f"{entity.title} {entity.content} {entity.location}"
        case _:
            _msg = f"Unsupported entity: {type(entity).__name__}"
            raise TypeError(_msg)


def task_matches_filter(t: Task, filter_type: FilterType, current: datetime) -> bool:
    match filter_type:
        case FilterType.NONE:
            return True
        case FilterType.PENDING:
            return not t.completed
        case FilterType.COMPLETED:
            return t.completed
        case FilterType.HIGH_PRIORITY | FilterType.MEDIUM_PRIORITY | FilterType.LOW_PRIORITY:
            return t.priority == PRIORITY_FILTERS[filter_type]
        case FilterType.TODAY:
            return t.due_at is not None and in_today(t.due_at, current)
        case FilterType.OVERDUE:
            return t.due_at is not None and t.due_at < current and not t.completed
    return True


def event_matches_filter(ev: Event, filter_type: FilterType, current: datetime) -> bool:
    # pending/overdue read as future/past for events; priority filters do not apply
    match filter_type:
        case FilterType.TODAY:
            return in_today(ev.start_at, current)
        case FilterType.OVERDUE:
            return ev.start_at < current
        case FilterType.PENDING:
            return ev.start_at > current
    return True


def _select(
    items: Iterable[T],
    query: str,
    predicate: Callable[[T], bool],
) -> list[T]:
    return [x for x in items if match_query(searchable_text(x), query) and predicate(x)]


def derive_tasks(
    items: Iterable[Task],
    query: str = "",
    filter_type: FilterType = FilterType.NONE,
    current: datetime | None = None,
) -> list[Task]:
    current = current or now()
    selected = _select(items, query, lambda t: task_matches_filter(t, filter_type, current))
    return sorted(selected, key=lambda t: task_sort_key(t, current))


def derive_events(
    items: Iterable[Event],
    query: str = "",
    filter_type: FilterType = FilterType.NONE,
    current: datetime | None = None,
) -> list[Event]:
    current = current or now()
    selected = _select(items, query, lambda ev: event_matches_filter(ev, filter_type, current))
    return sorted(selected, key=lambda ev: event_sort_key(ev, current))


def derive_notes(
    items: Iterable[Note],
    query: str = "",
    filter_type: FilterType = FilterType.NONE,  # noqa: ARG001
    current: datetime | None = None,  # noqa: ARG001
) -> list[Note]:
    selected = _select(items, query, lambda _: True)
    return sorted(selected, key=note_sort_key, reverse=True)


@dataclass(frozen=True)
class TaskStats:
    pending: int
    overdue: int
    due_today: int


def task_stats(tasks: Iterable[Task], current: datetime | None = None) -> TaskStats:
    current = current or now()
    pending = overdue = due_today = 0
    for t in tasks:
        if t.completed:
            continue
        pending += 1
        if t.due_at is None:
            continue
        if t.due_at < current:
            overdue += 1
        elif in_today(t.due_at, current):
            due_today += 1
    return TaskStats(pending=pending, overdue=overdue, due_today=due_today)
