import curses
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, Literal, TypeVar

from pyresults import Err, Ok, Result

from prodbooster.core.errors import ParseError, ProdBoosterError, ValidationError
from prodbooster.core.models import Event, Note, Priority, Task
from prodbooster.core.store import CollectionStore, EventStore, NoteStore, TaskStore
from prodbooster.interfaces.tui.data import KEY_CTRL_S, KEY_ESC, KEY_TAB, KEYS_ENTER, FieldState
from prodbooster.util.logger import setup_logger
from prodbooster.util.time import format_form_datetime, parse_form_datetime

logger = setup_logger("prodbooster", is_stream=False, is_file=True)

E = TypeVar("E", Task, Note, Event)
S = TypeVar("S", bound=CollectionStore[Any])

FormMode = Literal["create", "edit"]
PRIORITY_CHOICES = [p.label for p in Priority]


class EntryForm(ABC, Generic[E, S]):
    """Modal create/edit form bound to one collection store.

    Inactive -> activate()/load_for_edit() -> Active -> (Esc | submit) -> Inactive.
    A submit that fails validation or parsing keeps the form active so the
    user can fix the input; any other submit closes the form.
    """

    kind: ClassVar[str]
    submit_hint: ClassVar[str]

    def __init__(self, store: S) -> None:
        self.store = store
        self.fields: list[FieldState] = self._build_fields()
        self.active = False
        self.field_index = 0
        self.editing_id: int | None = None
        self.last_message: str | None = None
        self.reset()

    @abstractmethod
    def _build_fields(self) -> list[FieldState]:
        raise NotImplementedError

    @abstractmethod
    def _populate(self, entity: E) -> None:
        raise NotImplementedError

    @abstractmethod
    def _parse(self, values: dict[str, str]) -> Result[dict[str, Any], ParseError]:
        raise NotImplementedError

    @abstractmethod
    def _commit(self, parsed: dict[str, Any]) -> Result[E, ProdBoosterError]:
        raise NotImplementedError

    # ---- state ------------------------------------------------------------

    @property
    def mode(self) -> FormMode:
        return "create" if self.editing_id is None else "edit"

    @property
    def heading(self) -> str:
        return f"{'New' if self.mode == 'create' else 'Edit'} {self.kind.capitalize()}"

    @property
    def current_field(self) -> FieldState:
        return self.fields[self.field_index]

    def field(self, name: str) -> FieldState:
        for f in self.fields:
            if f.name == name:
                return f
        _msg = f"Unknown field: {name}"
        raise KeyError(_msg)

    def values(self) -> dict[str, str]:
        return {f.name: f.value.strip() for f in self.fields}

    def reset(self) -> None:
        for f in self.fields:
            f.clear()
            f.blur()
        self.field_index = 0
        self.editing_id = None
        self.fields[0].focus()

    def activate(self) -> None:
        self.reset()
        self.active = True
        self.last_message = None
        logger.debug("%s form: create", self.kind)

    def load_for_edit(self, entity: E) -> None:
        self.reset()
        self._populate(entity)
        self.editing_id = entity.id
        self.fields[0].focus()
        self.active = True
        self.last_message = None
        logger.debug("%s form: edit #%d", self.kind, entity.id)

    def deactivate(self) -> None:
        self.active = False
        self.reset()

    def focus_next(self) -> None:
        self._focus((self.field_index + 1) % len(self.fields))

    def focus_previous(self) -> None:
        self._focus((self.field_index - 1) % len(self.fields))

    def _focus(self, index: int) -> None:
        self.current_field.blur()
        self.field_index = index
        self.current_field.focus()

    # ---- input ------------------------------------------------------------

    def is_submit_key(self, key: int) -> bool:
        return key == KEY_CTRL_S

    def handle_key(self, key: int, ch: str | None = None) -> Result[None, ProdBoosterError]:
        if not self.active:
            return Ok(None)

        # Esc: cancel
        if key == KEY_ESC:
            self.deactivate()
            self.last_message = "Canceled"
            return Ok(None)

        # フィールド移動
        if key == KEY_TAB:
            self.focus_next()
            return Ok(None)
        if key == curses.KEY_BTAB:
            self.focus_previous()
            return Ok(None)

        if self.is_submit_key(key):
            match self.submit():
                case Err(e):
                    return Err(e)
                case _:
                    return Ok(None)

        if self.current_field.handle_key(key, ch):
            return Ok(None)
        # Enter on a single-line field moves on
        if key in KEYS_ENTER:
            self.focus_next()
        return Ok(None)

    def submit(self) -> Result[E, ProdBoosterError]:
        """Validate, parse and apply the form to its store.

        Returns Err(ValidationError) / Err(ParseError) with the form still active,
        otherwise closes the form and returns the store's add/update result.
        """
        values = self.values()
        missing = [f.label.strip() for f in self.fields if f.required and not values[f.name]]
        if missing:
            msg = f"Required: {', '.join(missing)}"
            logger.info("%s form rejected: %s", self.kind, msg)
            return Err(ValidationError(msg))

        parsed = self._parse(values)
        if parsed.is_err():
            return Err(parsed.unwrap_err())

        action = "Added" if self.mode == "create" else "Updated"
        result = self._commit(parsed.unwrap())
        self.deactivate()
        match result:
            case Ok(entity):
                self.last_message = f"{action} {self.kind}: {entity.title}"
            case Err(e):
                self.last_message = None
                logger.warning("%s form: %s failed: %s", self.kind, action.lower(), e)
        return result


def _parse_datetime_field(values: dict[str, str], name: str, label: str) -> Result[Any, ParseError]:
    match parse_form_datetime(values.get(name, "")):
        case Ok(dt):
            return Ok(dt)
        case Err(msg):
            return Err(ParseError(f"{label}: {msg}"))
        case _:
            return Err(ParseError(f"{label}: unexpected error"))


class TaskForm(EntryForm[Task, TaskStore]):
    kind = "task"
    submit_hint = "[Tab: Move, ↑/↓: Priority, Enter on Priority: Save, Esc: Cancel]"

    def _build_fields(self) -> list[FieldState]:
        return [
            FieldState(name="title", label="Title      ", required=True),
            FieldState(name="description", label="Description"),
            FieldState(name="due", label="Due        ", kind="datetime"),
            FieldState(
                name="priority",
                label="Priority   ",
                kind="choice",
                choices=PRIORITY_CHOICES,
                default=Priority.MEDIUM.label,
            ),
        ]

    def is_submit_key(self, key: int) -> bool:
        # Enter submits only from the last field (priority)
        return key in KEYS_ENTER and self.field_index == len(self.fields) - 1

    def _populate(self, entity: Task) -> None:
        self.field("title").set_value(entity.title)
        self.field("description").set_value(entity.description)
        self.field("due").set_value(format_form_datetime(entity.due_at))
        self.field("priority").set_value(entity.priority.label)

    def _parse(self, values: dict[str, str]) -> Result[dict[str, Any], ParseError]:
        due = _parse_datetime_field(values, "due", "Due")
        if due.is_err():
            return Err(due.unwrap_err())
        try:
            priority = Priority.from_label(values["priority"])
        except KeyError:
            return Err(ParseError(f"Priority: unknown value '{values['priority']}'"))
        return Ok(
            {
                "title": values["title"],
                "description": values["description"],
                "priority": priority,
                "due_at": due.unwrap(),
            },
        )

    def _commit(self, parsed: dict[str, Any]) -> Result[Task, ProdBoosterError]:
        if self.editing_id is None:
            return self.store.add(**parsed)
        return self.store.update(self.editing_id, **parsed)


class NoteForm(EntryForm[Note, NoteStore]):
    kind = "note"
    submit_hint = "[Tab: Move, Ctrl+S: Save, Esc: Cancel]"

    def _build_fields(self) -> list[FieldState]:
        return [
            FieldState(name="title", label="Title  ", required=True),
            FieldState(name="content", label="Content", multiline=True),
        ]

    def _populate(self, entity: Note) -> None:
        self.field("title").set_value(entity.title)
        self.field("content").set_value(entity.content)

    def _parse(self, values: dict[str, str]) -> Result[dict[str, Any], ParseError]:
        return Ok({"title": values["title"], "content": values["content"]})

    def _commit(self, parsed: dict[str, Any]) -> Result[Note, ProdBoosterError]:
        if self.editing_id is None:
            return self.store.add(**parsed)
        return self.store.update(self.editing_id, **parsed)


class EventForm(EntryForm[Event, EventStore]):
    kind = "event"
    submit_hint = "[Tab/Enter: Move, Ctrl+S: Save, Esc: Cancel]"

    def _build_fields(self) -> list[FieldState]:
        return [
            FieldState(name="title", label="Title      ", required=True),
            FieldState(name="description", label="Description"),
            FieldState(name="location", label="Location   "),
            FieldState(name="start", label="Start      ", required=True, kind="datetime"),
            FieldState(name="end", label="End        ", kind="datetime"),
        ]

    def _populate(self, entity: Event) -> None:
        self.field("title").set_value(entity.title)
        self.field("description").set_value(entity.content)
        self.field("location").set_value(entity.location)
        self.field("start").set_value(format_form_datetime(entity.start_at))
        self.field("end").set_value(format_form_datetime(entity.end_at))

    def _parse(self, values: dict[str, str]) -> Result[dict[str, Any], ParseError]:
        start = _parse_datetime_field(values, "start", "Start")
        if start.is_err():
            return Err(start.unwrap_err())
        end = _parse_datetime_field(values, "end", "End")
        if end.is_err():
            return Err(end.unwrap_err())
        start_at = start.unwrap()
        end_at = end.unwrap() or start_at
        if end_at < start_at:
            return Err(ParseError("End: must not be before start"))
        return Ok(
            {
                "title": values["title"],
                "content": values["description"],
                "location": values["location"],
                "start_at": start_at,
                "end_at": end_at,
            },
        )

    def _commit(self, parsed: dict[str, Any]) -> Result[Event, ProdBoosterError]:
        if self.editing_id is None:
            return self.store.add(**parsed)
        return self.store.update(self.editing_id, **parsed)
