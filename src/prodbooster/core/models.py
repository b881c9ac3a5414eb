from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from prodbooster.util.time import now


class Priority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_label(cls, label: str) -> "Priority":
        return cls[label.strip().upper()]


class FilterType(Enum):
    """Categorical filter cycled from the search overlay."""

    NONE = "none"
    PENDING = "pending"
    COMPLETED = "completed"
    HIGH_PRIORITY = "high"
    MEDIUM_PRIORITY = "medium"
    LOW_PRIORITY = "low"
    TODAY = "today"
    OVERDUE = "overdue"

    @property
    def label(self) -> str:
        return FILTER_LABELS[self]

    def next(self) -> "FilterType":
        members = list(FilterType)
        return members[(members.index(self) + 1) % len(members)]


FILTER_LABELS: dict[FilterType, str] = {
    FilterType.NONE: "No Filter",
    FilterType.PENDING: "Pending",
    FilterType.COMPLETED: "Completed",
    FilterType.HIGH_PRIORITY: "High Priority",
    FilterType.MEDIUM_PRIORITY: "Medium Priority",
    FilterType.LOW_PRIORITY: "Low Priority",
    FilterType.TODAY: "Due Today",
    FilterType.OVERDUE: "Overdue",
}


@dataclass
class Task:
    id: int
    title: str
    description: str = ""
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    due_at: datetime | None = None
    created_at: datetime = field(default_factory=now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Task":
        return Task(**d)


@dataclass
class Note:
    id: int
    title: str
    content: str = ""
    created_at: datetime = field(default_factory=now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Note":
        return Note(**d)


@dataclass
class Event:
    id: int
    title: str
    start_at: datetime
    end_at: datetime
    content: str = ""
    location: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Event":
        return Event(**d)


Entity = Task | Note | Event
