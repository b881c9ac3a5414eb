import curses
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import Any, ClassVar, Generic, Literal, TypeVar

from pyresults import Err, Ok

from prodbooster.core.errors import ProdBoosterError
from prodbooster.core.models import Event, Note, Task
from prodbooster.core.pipeline import TaskStats, derive_events, derive_notes, derive_tasks, task_stats
from prodbooster.core.store import CollectionStore, Collections, EventStore, NoteStore, TaskStore
from prodbooster.interfaces.tui.data import KEY_TAB, KEYS_ENTER, ListState, ViewId
from prodbooster.interfaces.tui.forms import EntryForm, EventForm, NoteForm, TaskForm
from prodbooster.interfaces.tui.search import SearchBar
from prodbooster.util.logger import setup_logger
from prodbooster.util.time import now

logger = setup_logger("prodbooster", is_stream=False, is_file=True)

E = TypeVar("E", Task, Note, Event)

Clock = Callable[[], datetime]
CardName = Literal["tasks", "events", "notes"]
CARD_ORDER: tuple[CardName, ...] = ("tasks", "events", "notes")

# rows used by topbar/footer etc. when computing the page size for PgUp/PgDn
RESERVED_ROWS = 6

KEYS_UP = (curses.KEY_UP, ord("k"))
KEYS_DOWN = (curses.KEY_DOWN, ord("j"))


def _move_cursor(lst: ListState[Any], key: int, page: int) -> bool:
    """Apply one navigation key to lst. Return False if key is not a navigation key."""
    if key in KEYS_UP:
        lst.move(-1)
    elif key in KEYS_DOWN:
        lst.move(+1)
    elif key == curses.KEY_HOME:
        lst.move_to(0)
    elif key == curses.KEY_END:
        lst.move_to(len(lst) - 1)
    elif key == curses.KEY_PPAGE:
        lst.move(-page)
    elif key == curses.KEY_NPAGE:
        lst.move(+page)
    else:
        return False
    return True


class ListViewController(ABC, Generic[E]):
    """Per-view coordinator: list + detail, search overlay and entry form.

    Input precedence, checked on every key:
        1. active form
        2. active search overlay
        3. command keys (n/e/d/'/')
        4. list navigation
    """

    view_id: ClassVar[ViewId]
    help_line: ClassVar[str] = "[n: New] [e: Edit] [d: Delete] [/: Search] [↑/↓ j/k: Move] [1-4: View] [q: Quit]"

    def __init__(self, store: CollectionStore[E], form: EntryForm[E, Any], clock: Clock = now) -> None:
        self.store = store
        self.form = form
        self.search = SearchBar()
        self.list: ListState[E] = ListState()
        self.clock = clock
        self.msg: str | None = None
        self.width = 0
        self.height = 0
        self.refresh(reset_cursor=True)

    @abstractmethod
    def derive(self) -> list[E]:
        """Current display order for the store, the query and the filter."""
        raise NotImplementedError

    # ---- state ------------------------------------------------------------

    def is_form_active(self) -> bool:
        return self.form.active or self.search.active

    def selected(self) -> E | None:
        return self.list.current()

    @property
    def page_size(self) -> int:
        return max(1, self.height - RESERVED_ROWS)

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def refresh(self, *, reset_cursor: bool = False) -> None:
        self.list.items = self.derive()
        if reset_cursor:
            self.list.reset()
        else:
            self.list.clamp()
        self._sync_selection()

    def _sync_selection(self) -> None:
        self.store.select(self.list.cursor, self.list.items)

    def _report(self, err: ProdBoosterError) -> None:
        logger.warning("%s: %s", self.view_id.value, err)
        self.msg = f"Error: {err}"

    # ---- input ------------------------------------------------------------

    def handle_key(self, key: int, ch: str | None = None) -> None:
        if self.form.active:
            self._handle_form_key(key, ch)
            return
        if self.search.active:
            self.search.handle_key(key, ch)
            # re-derived on every keystroke so the list follows the query live
            self.refresh()
            return
        if self.handle_command(key, ch):
            return
        if _move_cursor(self.list, key, self.page_size):
            self._sync_selection()

    def _handle_form_key(self, key: int, ch: str | None) -> None:
        match self.form.handle_key(key, ch):
            case Err(e):
                self._report(e)
            case _:
                pass
        if not self.form.active:
            if self.form.last_message:
                self.msg = self.form.last_message
            self.refresh(reset_cursor=True)

    def handle_command(self, key: int, ch: str | None = None) -> bool:  # noqa: ARG002
        if key == ord("n"):
            self.form.activate()
            self.msg = None
        elif key == ord("e"):
            item = self.selected()
            if item is None:
                self.msg = "Nothing selected"
            else:
                self.form.load_for_edit(item)
                self.msg = None
        elif key in (ord("d"), curses.KEY_DC):
            self._delete_selected()
        elif key == ord("/"):
            self.search.activate()
            self.msg = None
        else:
            return False
        return True

    def _delete_selected(self) -> None:
        item = self.selected()
        if item is None:
            self.msg = "Nothing selected"
            return
        match self.store.remove(item.id):
            case Ok(_):
                self.msg = f"Deleted: {item.title}"
            case Err(e):
                self._report(e)
        self.refresh()


class TasksController(ListViewController[Task]):
    view_id = ViewId.TASKS
    help_line = (
        "[n: New] [e: Edit] [d: Delete] [Enter/Space: Toggle] [/: Search] [↑/↓ j/k: Move] [1-4: View] [q: Quit]"
    )

    def __init__(self, store: TaskStore, clock: Clock = now) -> None:
        self.tasks = store
        super().__init__(store, TaskForm(store), clock)

    def derive(self) -> list[Task]:
        return derive_tasks(self.tasks.items, self.search.query, self.search.filter_type, self.clock())

    def handle_command(self, key: int, ch: str | None = None) -> bool:
        if key in KEYS_ENTER or key == ord(" "):
            self._toggle_selected()
            return True
        return super().handle_command(key, ch)

    def _toggle_selected(self) -> None:
        task = self.selected()
        if task is None:
            self.msg = "Nothing selected"
            return
        match self.tasks.toggle_completed(task.id):
            case Ok(t):
                self.msg = f"{'Completed' if t.completed else 'Reopened'}: {t.title}"
            case Err(e):
                self._report(e)
        self.refresh()


class NotesController(ListViewController[Note]):
    view_id = ViewId.NOTES

    def __init__(self, store: NoteStore, clock: Clock = now) -> None:
        super().__init__(store, NoteForm(store), clock)

    def derive(self) -> list[Note]:
        return derive_notes(self.store.items, self.search.query, self.search.filter_type, self.clock())


class CalendarController(ListViewController[Event]):
    view_id = ViewId.CALENDAR

    def __init__(self, store: EventStore, clock: Clock = now) -> None:
        super().__init__(store, EventForm(store), clock)

    def derive(self) -> list[Event]:
        return derive_events(self.store.items, self.search.query, self.search.filter_type, self.clock())


class DashboardController:
    """Overview of all three collections with quick-add forms.

    Tab cycles the focused card, 'a' opens the quick-add form of that card,
    navigation keys move inside it.
    """

    view_id = ViewId.DASHBOARD
    help_line = "[Tab: Focus] [a: Quick add] [↑/↓ j/k: Move] [1-4: View] [q: Quit]"

    def __init__(self, collections: Collections, clock: Clock = now) -> None:
        self.collections = collections
        self.clock = clock
        self.focus: CardName = "tasks"
        self.cards: dict[CardName, ListState[Any]] = {name: ListState() for name in CARD_ORDER}
        self.forms: dict[CardName, EntryForm[Any, Any]] = {
            "tasks": TaskForm(collections.tasks),
            "events": EventForm(collections.events),
            "notes": NoteForm(collections.notes),
        }
        self.msg: str | None = None
        self.width = 0
        self.height = 0
        self.refresh(reset_cursor=True)

    def _store(self, name: CardName) -> CollectionStore[Any]:
        match name:
            case "tasks":
                return self.collections.tasks
            case "events":
                return self.collections.events
            case "notes":
                return self.collections.notes
        _msg = f"Unknown card: {name}"
        raise ValueError(_msg)

    def is_form_active(self) -> bool:
        return self.active_form() is not None

    def active_form(self) -> EntryForm[Any, Any] | None:
        for form in self.forms.values():
            if form.active:
                return form
        return None

    def stats(self) -> TaskStats:
        return task_stats(self.collections.tasks.items, self.clock())

    @property
    def page_size(self) -> int:
        return max(1, (self.height - RESERVED_ROWS) // 2)

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def refresh(self, *, reset_cursor: bool = False, reset_card: CardName | None = None) -> None:
        """Re-derive every card; reset_card (or all cards with reset_cursor) jumps back to the top."""
        current = self.clock()
        self.cards["tasks"].items = derive_tasks(self.collections.tasks.items, current=current)
        self.cards["events"].items = derive_events(self.collections.events.items, current=current)
        self.cards["notes"].items = derive_notes(self.collections.notes.items, current=current)
        for name, card in self.cards.items():
            if reset_cursor or name == reset_card:
                card.reset()
            else:
                card.clamp()
            self._store(name).select(card.cursor, card.items)

    def cycle_focus(self) -> None:
        idx = CARD_ORDER.index(self.focus)
        self.focus = CARD_ORDER[(idx + 1) % len(CARD_ORDER)]

    def handle_key(self, key: int, ch: str | None = None) -> None:
        form = self.active_form()
        if form is not None:
            match form.handle_key(key, ch):
                case Err(e):
                    logger.warning("dashboard: %s", e)
                    self.msg = f"Error: {e}"
                case _:
                    pass
            if not form.active:
                if form.last_message:
                    self.msg = form.last_message
                # only the card that was added to jumps back to the top
                self.refresh(reset_card=self.focus)
            return

        if key == KEY_TAB:
            self.cycle_focus()
            return
        if key == ord("a"):
            self.forms[self.focus].activate()
            self.msg = None
            return

        card = self.cards[self.focus]
        if _move_cursor(card, key, self.page_size):
            self._store(self.focus).select(card.cursor, card.items)
