import curses
import tempfile
import unittest
from datetime import timedelta

from helpers import FIXED_NOW, BrokenStorage, fixed_clock, make_sqlite

from prodbooster.core.models import Priority
from prodbooster.core.store import EventStore, NoteStore, TaskStore, open_collections
from prodbooster.interfaces.tui.controllers import (
    CalendarController,
    DashboardController,
    NotesController,
    TasksController,
)
from prodbooster.interfaces.tui.data import KEY_CTRL_S, KEY_ESC, KEY_TAB

ENTER = 10


def press(controller: object, text: str) -> None:
    for c in text:
        controller.handle_key(ord(c), c)  # type: ignore[attr-defined]


class ControllerTestBase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.storage = make_sqlite(self.tmpdir.name)

    def tearDown(self) -> None:
        self.storage.close()
        self.tmpdir.cleanup()


class TestTasksController(ControllerTestBase):
    def setUp(self) -> None:
        super().setUp()
        self.store = TaskStore(self.storage)
        self.store.add("low later", priority=Priority.LOW)
        self.store.add("overdue bill", due_at=FIXED_NOW - timedelta(days=1))
        self.store.add("high plan", priority=Priority.HIGH)
        self.ctl = TasksController(self.store, fixed_clock)

    def titles(self) -> list[str]:
        return [t.title for t in self.ctl.list.items]

    def test_initial_order_and_selection(self) -> None:
        assert self.titles() == ["overdue bill", "high plan", "low later"]
        assert self.ctl.list.cursor == 0
        assert self.store.selected == 0

    def test_navigation_syncs_store_selection(self) -> None:
        self.ctl.handle_key(ord("j"))
        self.ctl.handle_key(curses.KEY_DOWN)
        assert self.ctl.selected().title == "low later"  # type: ignore[union-attr]
        assert self.store.selected == 2
        self.ctl.handle_key(curses.KEY_DOWN)
        assert self.ctl.list.cursor == 2
        self.ctl.handle_key(curses.KEY_HOME)
        assert self.store.selected == 0
        self.ctl.handle_key(curses.KEY_END)
        assert self.ctl.list.cursor == 2
        self.ctl.handle_key(ord("k"))
        assert self.ctl.list.cursor == 1

    def test_store_selection_matches_displayed_row(self) -> None:
        # load order is low, overdue, high; the list shows overdue, high, low
        assert self.store.selected_item() == self.ctl.selected()
        for _ in range(2):
            self.ctl.handle_key(curses.KEY_DOWN)
            assert self.store.selected_item() == self.ctl.selected()
        assert self.store.selected_item().title == "low later"  # type: ignore[union-attr]
        self.ctl.handle_key(ord("/"))
        press(self.ctl, "plan")
        assert self.store.selected_item().title == "high plan"  # type: ignore[union-attr]

    def test_page_keys_are_clamped(self) -> None:
        self.ctl.resize(80, 10)
        self.ctl.handle_key(curses.KEY_NPAGE)
        assert self.ctl.list.cursor == 2
        self.ctl.handle_key(curses.KEY_PPAGE)
        assert self.ctl.list.cursor == 0

    def test_enter_toggles_and_keeps_cursor_in_range(self) -> None:
        self.ctl.handle_key(ENTER)
        assert self.ctl.msg == "Completed: overdue bill"
        # completed task drops to the bottom; cursor stays at index 0
        assert self.titles() == ["high plan", "low later", "overdue bill"]
        assert self.ctl.list.cursor == 0
        self.ctl.handle_key(curses.KEY_END)
        self.ctl.handle_key(ord(" "))
        assert self.ctl.msg == "Reopened: overdue bill"

    def test_delete_clamps_cursor(self) -> None:
        self.ctl.handle_key(curses.KEY_END)
        self.ctl.handle_key(ord("d"))
        assert self.ctl.msg == "Deleted: low later"
        assert self.store.count() == 2
        assert self.ctl.list.cursor == 1
        assert self.store.selected == 1

    def test_delete_failure_reports_error(self) -> None:
        store = TaskStore(BrokenStorage(self.storage, fail={"delete"}))
        ctl = TasksController(store, fixed_clock)
        ctl.handle_key(curses.KEY_DC)
        assert ctl.msg is not None
        assert ctl.msg.startswith("Error:")
        assert store.count() == 3

    def test_commands_on_empty_list(self) -> None:
        ctl = TasksController(TaskStore(make_sqlite(self.tmpdir.name, "empty.db")), fixed_clock)
        for key in (ord("e"), ord("d"), ENTER):
            ctl.msg = None
            ctl.handle_key(key)
            assert ctl.msg == "Nothing selected"
        assert ctl.form.active is False

    def test_form_has_precedence_over_commands(self) -> None:
        self.ctl.handle_key(ord("n"))
        assert self.ctl.is_form_active()
        press(self.ctl, "do dishes")
        # 'd' and 'j' went into the title, nothing was deleted
        assert self.store.count() == 3
        assert self.ctl.form.field("title").value == "do dishes"
        for _ in range(3):
            self.ctl.handle_key(KEY_TAB)
        self.ctl.handle_key(ENTER)
        assert not self.ctl.is_form_active()
        assert self.ctl.msg == "Added task: do dishes"
        assert self.store.count() == 4
        assert "do dishes" in self.titles()
        assert self.ctl.list.cursor == 0

    def test_form_validation_error_keeps_form_open(self) -> None:
        self.ctl.handle_key(ord("n"))
        self.ctl.handle_key(curses.KEY_BTAB)
        self.ctl.handle_key(ENTER)
        assert self.ctl.is_form_active()
        assert self.ctl.msg == "Error: Required: Title"
        self.ctl.handle_key(KEY_ESC)
        assert not self.ctl.is_form_active()
        assert self.ctl.msg == "Canceled"

    def test_edit_selected(self) -> None:
        self.ctl.handle_key(ord("e"))
        assert self.ctl.form.mode == "edit"
        assert self.ctl.form.field("title").value == "overdue bill"
        self.ctl.handle_key(KEY_ESC)
        assert self.store.find(2).title == "overdue bill"  # type: ignore[union-attr]

    def test_search_filters_live_and_has_precedence(self) -> None:
        self.ctl.handle_key(ord("/"))
        assert self.ctl.is_form_active()
        press(self.ctl, "pl")
        assert self.titles() == ["high plan"]
        # 'n' is text while searching
        press(self.ctl, "n")
        assert not self.ctl.form.active
        assert self.titles() == []
        self.ctl.handle_key(curses.KEY_BACKSPACE)
        self.ctl.handle_key(ENTER)
        assert not self.ctl.is_form_active()
        assert self.titles() == ["high plan"]
        self.ctl.handle_key(ord("/"))
        self.ctl.handle_key(KEY_ESC)
        assert len(self.titles()) == 3

    def test_search_filter_cycle(self) -> None:
        self.store.toggle_completed(1)
        self.ctl.handle_key(ord("/"))
        self.ctl.handle_key(KEY_TAB)  # Pending
        assert len(self.titles()) == 2
        self.ctl.handle_key(KEY_TAB)  # Completed
        assert self.titles() == ["low later"]


class TestNotesAndCalendarControllers(ControllerTestBase):
    def test_notes_newest_first_and_add(self) -> None:
        store = NoteStore(self.storage)
        store.add("older", "", FIXED_NOW - timedelta(days=2))
        store.add("newer", "", FIXED_NOW)
        ctl = NotesController(store, fixed_clock)
        assert [n.title for n in ctl.list.items] == ["newer", "older"]
        ctl.handle_key(ord("n"))
        press(ctl, "fresh")
        ctl.handle_key(KEY_CTRL_S)
        assert ctl.msg == "Added note: fresh"
        assert store.count() == 3

    def test_calendar_order_and_delete(self) -> None:
        store = EventStore(self.storage)
        store.add("past", "", "", FIXED_NOW - timedelta(days=3))
        store.add("today", "", "", FIXED_NOW + timedelta(hours=1))
        ctl = CalendarController(store, fixed_clock)
        assert [e.title for e in ctl.list.items] == ["today", "past"]
        ctl.handle_key(ord("d"))
        assert [e.title for e in ctl.list.items] == ["past"]
        assert store.count() == 1


class TestDashboardController(ControllerTestBase):
    def setUp(self) -> None:
        super().setUp()
        self.c = open_collections(self.storage)
        self.c.tasks.add("overdue", due_at=FIXED_NOW - timedelta(hours=1))
        self.c.tasks.add("today", due_at=FIXED_NOW + timedelta(hours=1))
        self.c.tasks.add("someday")
        self.c.events.add("standup", "", "", FIXED_NOW + timedelta(hours=2))
        self.c.notes.add("idea")
        self.dash = DashboardController(self.c, fixed_clock)

    def test_cards_and_stats(self) -> None:
        assert [t.title for t in self.dash.cards["tasks"].items] == ["overdue", "today", "someday"]
        assert [e.title for e in self.dash.cards["events"].items] == ["standup"]
        stats = self.dash.stats()
        assert (stats.pending, stats.overdue, stats.due_today) == (3, 1, 1)

    def test_tab_cycles_focus(self) -> None:
        assert self.dash.focus == "tasks"
        self.dash.handle_key(KEY_TAB)
        assert self.dash.focus == "events"
        self.dash.handle_key(KEY_TAB)
        assert self.dash.focus == "notes"
        self.dash.handle_key(KEY_TAB)
        assert self.dash.focus == "tasks"

    def test_navigation_moves_focused_card(self) -> None:
        self.dash.handle_key(curses.KEY_DOWN)
        assert self.dash.cards["tasks"].cursor == 1
        assert self.c.tasks.selected == 1
        assert self.dash.cards["events"].cursor == 0

    def test_quick_add_event(self) -> None:
        self.dash.handle_key(KEY_TAB)
        self.dash.handle_key(ord("a"))
        form = self.dash.active_form()
        assert form is not None
        assert form.kind == "event"
        assert self.dash.is_form_active()
        press(self.dash, "lunch")
        form.field("start").set_value("2025-06-18 13:00")
        self.dash.handle_key(KEY_CTRL_S)
        assert not self.dash.is_form_active()
        assert self.dash.msg == "Added event: lunch"
        assert [e.title for e in self.dash.cards["events"].items] == ["lunch", "standup"]

    def test_quick_add_resets_only_the_focused_card(self) -> None:
        self.c.events.add("review", "", "", FIXED_NOW + timedelta(hours=3))
        self.dash.refresh()
        self.dash.handle_key(KEY_TAB)
        self.dash.handle_key(curses.KEY_DOWN)
        assert self.dash.cards["events"].cursor == 1
        self.dash.handle_key(KEY_TAB)
        self.dash.handle_key(KEY_TAB)
        self.dash.handle_key(curses.KEY_DOWN)
        self.dash.handle_key(curses.KEY_DOWN)
        assert self.dash.cards["tasks"].cursor == 2
        self.dash.handle_key(KEY_TAB)
        self.dash.handle_key(ord("a"))
        press(self.dash, "lunch")
        self.dash.active_form().field("start").set_value("2025-06-18 13:00")  # type: ignore[union-attr]
        self.dash.handle_key(KEY_CTRL_S)
        assert not self.dash.is_form_active()
        assert self.dash.cards["events"].cursor == 0
        assert self.c.events.selected_item().title == "lunch"  # type: ignore[union-attr]
        assert self.dash.cards["tasks"].cursor == 2
        assert self.c.tasks.selected_item().title == "someday"  # type: ignore[union-attr]

    def test_quick_add_error_is_reported(self) -> None:
        self.dash.handle_key(ord("a"))
        self.dash.handle_key(curses.KEY_BTAB)
        self.dash.handle_key(ENTER)
        assert self.dash.is_form_active()
        assert self.dash.msg == "Error: Required: Title"


if __name__ == "__main__":
    unittest.main()
