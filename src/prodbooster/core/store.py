from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Generic, TypeVar

from pyresults import Err, Ok, Result

from prodbooster.core.errors import NotFoundError, ProdBoosterError, StorageError
from prodbooster.core.models import Event, Note, Priority, Task
from prodbooster.storage.base import Row, Storage
from prodbooster.util.logger import setup_logger
from prodbooster.util.time import from_iso, in_today, now, to_iso

logger = setup_logger("prodbooster", is_stream=False, is_file=True)

E = TypeVar("E", Task, Note, Event)


class CollectionStore(ABC, Generic[E]):
    """In-memory mirror of one table, kept in step with durable storage.

    Every mutation writes to storage first and touches the mirror only after
    the write succeeded, so a failed write leaves memory exactly as it was.

    Public API:
        - load(): full re-read from storage
        - find() / count() / items: read access to the mirror (load order)
        - remove(): delete one entity
        - select() / select_next() / select_previous() / selected_item(): cursor
    Subclasses add kind-specific add()/update() (and toggle_completed() for tasks).
    """

    table: ClassVar[str]
    order_key: ClassVar[str]
    kind: ClassVar[str]

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self._items: list[E] = []
        # display order the selection cursor was last synced against
        self._display: list[E] | None = None
        self.selected = 0
        self.next_id = 1
        # a failed initial load leaves an empty collection; the app keeps running
        match self.load():
            case Err(e):
                logger.warning("Failed to load %s: %s", self.table, e)
            case _:
                pass

    @abstractmethod
    def _from_row(self, row: Row) -> E:
        raise NotImplementedError

    # ---- read access ----------------------------------------------------

    @property
    def items(self) -> tuple[E, ...]:
        return tuple(self._items)

    def count(self) -> int:
        return len(self._items)

    def find(self, identity: int) -> E | None:
        for item in self._items:
            if item.id == identity:
                return item
        return None

    # ---- load -----------------------------------------------------------

    def load(self) -> Result[None, StorageError]:
        """Replace the mirror with every row of the table, in order_key order."""
        match self.storage.select_all(self.table, self.order_key):
            case Ok(rows):
                try:
                    items = [self._from_row(row) for row in rows]
                except (KeyError, TypeError, ValueError) as e:
                    msg = f"Error (load/{self.table}): broken row: {e!s}"
                    logger.exception(msg)
                    return Err(StorageError(msg))
                self._items = items
                self._display = None
                self.next_id = max((item.id for item in items), default=0) + 1
                self.select(self.selected)
                logger.debug("loaded %d %s", len(items), self.table)
                return Ok(None)
            case Err(e):
                return Err(e)
            case _:
                return Err(StorageError("Unexpected error"))

    # ---- mutations --------------------------------------------------------

    def _insert(self, fields: Row, build: Callable[[int], E]) -> Result[E, ProdBoosterError]:
        match self.storage.insert(self.table, fields):
            case Ok(identity):
                entity = build(identity)
                self._items.append(entity)
                self.next_id = max(self.next_id, identity + 1)
                logger.info("added %s #%d", self.kind, identity)
                return Ok(entity)
            case Err(e):
                return Err(e)
            case _:
                return Err(StorageError("Unexpected error"))

    def _update(self, identity: int, fields: Row, apply: Callable[[E], None]) -> Result[E, ProdBoosterError]:
        match self.storage.update(self.table, identity, fields):
            case Err(e):
                return Err(e)
            case _:
                pass
        entity = self.find(identity)
        if entity is None:
            return self._resync(identity, "update")
        apply(entity)
        logger.info("updated %s #%d", self.kind, identity)
        return Ok(entity)

    def remove(self, identity: int) -> Result[None, ProdBoosterError]:
        match self.storage.delete(self.table, identity):
            case Err(e):
                return Err(e)
            case _:
                pass
        for idx, item in enumerate(self._items):
            if item.id == identity:
                del self._items[idx]
                break
        else:
            return self._resync(identity, "remove")
        if self._display is not None:
            self._display = [x for x in self._display if x.id != identity]
        self.select(self.selected)
        logger.info("removed %s #%d", self.kind, identity)
        return Ok(None)

    def _resync(self, identity: int, op: str) -> Result[E, ProdBoosterError]:
        """Storage accepted a write for an entity the mirror does not hold: reload."""
        msg = f"{self.kind} #{identity} missing from memory after {op}; reloaded from storage"
        logger.warning(msg)
        match self.load():
            case Err(e):
                return Err(e)
            case _:
                return Err(NotFoundError(msg))

    # ---- selection --------------------------------------------------------

    def _view(self) -> list[E]:
        return self._items if self._display is None else self._display

    def select(self, index: int, display: Sequence[E] | None = None) -> None:
        """Move the cursor to index, clamped to the sequence it points into.

        display is the order the user sees (filtered and sorted); it is kept
        so selected_item() resolves against it. Without it the cursor keeps
        pointing into the last display given, or load order if none was.
        """
        if display is not None:
            self._display = list(display)
        limit = len(self._view())
        if limit <= 0:
            self.selected = 0
            return
        self.selected = max(0, min(index, limit - 1))

    def select_next(self) -> None:
        if self._view():
            self.select(self.selected + 1)

    def select_previous(self) -> None:
        if self._view():
            self.select(self.selected - 1)

    def selected_item(self) -> E | None:
        view = self._view()
        if not (0 <= self.selected < len(view)):
            return None
        return view[self.selected]


class TaskStore(CollectionStore[Task]):
    table = "tasks"
    order_key = "id"
    kind = "task"

    def _from_row(self, row: Row) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            description=row["description"] or "",
            completed=bool(row["completed"]),
            priority=Priority(row["priority"]),
            due_at=from_iso(row["due_at"]),
            created_at=from_iso(row["created_at"]) or now(),
        )

    def add(
        self,
        title: str,
        description: str = "",
        priority: Priority = Priority.MEDIUM,
        due_at: datetime | None = None,
    ) -> Result[Task, ProdBoosterError]:
        created = now()
        fields = {
            "title": title,
            "description": description,
            "completed": 0,
            "priority": int(priority),
            "due_at": to_iso(due_at),
            "created_at": to_iso(created),
            "updated_at": to_iso(created),
        }
        return self._insert(
            fields,
            lambda identity: Task(
                id=identity,
                title=title,
                description=description,
                completed=False,
                priority=priority,
                due_at=due_at,
                created_at=created,
            ),
        )

    def update(
        self,
        identity: int,
        title: str,
        description: str,
        priority: Priority,
        due_at: datetime | None,
    ) -> Result[Task, ProdBoosterError]:
        fields = {
            "title": title,
            "description": description,
            "priority": int(priority),
            "due_at": to_iso(due_at),
            "updated_at": to_iso(now()),
        }

        def _apply(t: Task) -> None:
            t.title = title
            t.description = description
            t.priority = priority
            t.due_at = due_at

        return self._update(identity, fields, _apply)

    def toggle_completed(self, identity: int) -> Result[Task, ProdBoosterError]:
        # the current value can only come from memory, so the lookup happens first
        task = self.find(identity)
        if task is None:
            return Err(NotFoundError(f"Task not found: {identity}"))
        completed = not task.completed
        match self.storage.update(self.table, identity, {"completed": int(completed), "updated_at": to_iso(now())}):
            case Err(e):
                return Err(e)
            case _:
                pass
        task.completed = completed
        logger.info("task #%d completed=%s", identity, completed)
        return Ok(task)

    def pending(self) -> list[Task]:
        return [t for t in self._items if not t.completed]

    def completed(self) -> list[Task]:
        return [t for t in self._items if t.completed]

    def by_priority(self, priority: Priority) -> list[Task]:
        return [t for t in self._items if t.priority == priority]


class NoteStore(CollectionStore[Note]):
    table = "notes"
    order_key = "id"
    kind = "note"

    def _from_row(self, row: Row) -> Note:
        return Note(
            id=row["id"],
            title=row["title"],
            content=row["content"] or "",
            created_at=from_iso(row["created_at"]) or now(),
        )

    def add(self, title: str, content: str = "", created_at: datetime | None = None) -> Result[Note, ProdBoosterError]:
        created = created_at or now()
        fields = {
            "title": title,
            "content": content,
            "created_at": to_iso(created),
            "updated_at": to_iso(created),
        }
        return self._insert(
            fields,
            lambda identity: Note(id=identity, title=title, content=content, created_at=created),
        )

    def update(self, identity: int, title: str, content: str) -> Result[Note, ProdBoosterError]:
        fields = {"title": title, "content": content, "updated_at": to_iso(now())}

        def _apply(n: Note) -> None:
            n.title = title
            n.content = content

        return self._update(identity, fields, _apply)


class EventStore(CollectionStore[Event]):
    table = "events"
    order_key = "start_at"
    kind = "event"

    def _from_row(self, row: Row) -> Event:
        start_at = from_iso(row["start_at"])
        if start_at is None:
            _msg = f"event #{row['id']} has no start time"
            raise ValueError(_msg)
        return Event(
            id=row["id"],
            title=row["title"],
            content=row["description"] or "",
            location=row["location"] or "",
            start_at=start_at,
            end_at=from_iso(row["end_at"]) or start_at,
        )

    def add(
        self,
        title: str,
        content: str,
        location: str,
        start_at: datetime,
        end_at: datetime | None = None,
    ) -> Result[Event, ProdBoosterError]:
        end = end_at or start_at
        created = now()
        fields = {
            "title": title,
            "description": content,
            "location": location,
            "start_at": to_iso(start_at),
            "end_at": to_iso(end),
            "created_at": to_iso(created),
            "updated_at": to_iso(created),
        }
        return self._insert(
            fields,
            lambda identity: Event(
                id=identity,
                title=title,
                content=content,
                location=location,
                start_at=start_at,
                end_at=end,
            ),
        )

    def update(
        self,
        identity: int,
        title: str,
        content: str,
        location: str,
        start_at: datetime,
        end_at: datetime | None = None,
    ) -> Result[Event, ProdBoosterError]:
        end = end_at or start_at
        fields = {
            "title": title,
            "description": content,
            "location": location,
            "start_at": to_iso(start_at),
            "end_at": to_iso(end),
            "updated_at": to_iso(now()),
        }

        def _apply(ev: Event) -> None:
            ev.title = title
            ev.content = content
            ev.location = location
            ev.start_at = start_at
            ev.end_at = end

        return self._update(identity, fields, _apply)

    def today_events(self, current: datetime | None = None) -> list[Event]:
        current = current or now()
        return [ev for ev in self._items if in_today(ev.start_at, current)]

    def upcoming_events(self, count: int, current: datetime | None = None) -> list[Event]:
        current = current or now()
        upcoming = [ev for ev in self._items if ev.start_at > current]
        return sorted(upcoming, key=lambda ev: ev.start_at)[:count]


@dataclass
class Collections:
    tasks: TaskStore
    notes: NoteStore
    events: EventStore


def open_collections(storage: Storage) -> Collections:
    return Collections(
        tasks=TaskStore(storage),
        notes=NoteStore(storage),
        events=EventStore(storage),
    )
