import tempfile
import unittest
from datetime import datetime, timedelta

from helpers import FIXED_NOW, BrokenStorage, make_sqlite

from prodbooster.core.errors import NotFoundError, StorageError
from prodbooster.core.models import Priority
from prodbooster.core.pipeline import derive_tasks
from prodbooster.core.store import EventStore, NoteStore, TaskStore, open_collections


class StoreTestBase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.storage = make_sqlite(self.tmpdir.name)

    def tearDown(self) -> None:
        self.storage.close()
        self.tmpdir.cleanup()


class TestTaskStore(StoreTestBase):
    def test_empty_store(self) -> None:
        store = TaskStore(self.storage)
        assert store.count() == 0
        assert store.next_id == 1
        assert store.selected_item() is None

    def test_add_assigns_storage_identity(self) -> None:
        store = TaskStore(self.storage)
        r = store.add("Write report", "quarterly", Priority.HIGH, FIXED_NOW)
        assert r.is_ok()
        task = r.unwrap()
        assert task.id == 1
        assert task.priority == Priority.HIGH
        assert task.due_at == FIXED_NOW
        assert store.items == (task,)
        assert store.next_id == 2

    def test_next_id_exceeds_max_identity(self) -> None:
        store = TaskStore(self.storage)
        for i in range(5):
            store.add(f"t{i}")
        assert store.next_id > max(t.id for t in store.items)
        store.remove(5)
        store.add("again")
        assert store.next_id > max(t.id for t in store.items)

    def test_load_restores_from_storage(self) -> None:
        store = TaskStore(self.storage)
        store.add("one", "d1", Priority.LOW, FIXED_NOW)
        store.add("two")
        reloaded = TaskStore(self.storage)
        assert [t.title for t in reloaded.items] == ["one", "two"]
        assert reloaded.items[0].priority == Priority.LOW
        assert reloaded.items[0].due_at == FIXED_NOW
        assert reloaded.items[1].due_at is None
        assert reloaded.next_id == 3

    def test_update_writes_through(self) -> None:
        store = TaskStore(self.storage)
        tid = store.add("old").unwrap().id
        r = store.update(tid, "new", "desc", Priority.HIGH, None)
        assert r.is_ok()
        assert store.find(tid).title == "new"  # type: ignore[union-attr]
        assert TaskStore(self.storage).find(tid).title == "new"  # type: ignore[union-attr]

    def test_toggle_completed_twice_restores_state(self) -> None:
        store = TaskStore(self.storage)
        tid = store.add("t").unwrap().id
        assert store.toggle_completed(tid).unwrap().completed is True
        assert TaskStore(self.storage).find(tid).completed is True  # type: ignore[union-attr]
        assert store.toggle_completed(tid).unwrap().completed is False
        assert TaskStore(self.storage).find(tid).completed is False  # type: ignore[union-attr]

    def test_toggle_unknown_id_is_not_found(self) -> None:
        store = TaskStore(self.storage)
        r = store.toggle_completed(42)
        assert r.is_err()
        assert isinstance(r.unwrap_err(), NotFoundError)

    def test_remove_clamps_selection(self) -> None:
        store = TaskStore(self.storage)
        for i in range(3):
            store.add(f"t{i}")
        store.select(2)
        assert store.remove(3).is_ok()
        assert store.selected == 1
        store.remove(1)
        store.remove(2)
        assert store.count() == 0
        assert store.selected == 0

    def test_selection_moves_are_clamped(self) -> None:
        store = TaskStore(self.storage)
        store.select_next()
        assert store.selected == 0
        for i in range(3):
            store.add(f"t{i}")
        store.select_previous()
        assert store.selected == 0
        for _ in range(10):
            store.select_next()
        assert store.selected == 2
        store.select(1, store.items[:1])
        assert store.selected == 0

    def test_selected_item_follows_display_order(self) -> None:
        store = TaskStore(self.storage)
        low = store.add("low", priority=Priority.LOW).unwrap()
        high = store.add("high", priority=Priority.HIGH).unwrap()
        # without a display the cursor points into load order
        assert store.selected_item() == low
        display = derive_tasks(store.items, current=FIXED_NOW)
        assert [t.title for t in display] == ["high", "low"]
        store.select(0, display)
        assert store.selected_item() == high
        store.select_next()
        assert store.selected_item() == low

    def test_filtered_display_bounds_the_cursor(self) -> None:
        store = TaskStore(self.storage)
        for i in range(3):
            store.add(f"t{i}")
        store.select(2, [store.items[1]])
        assert store.selected == 0
        assert store.selected_item().title == "t1"  # type: ignore[union-attr]

    def test_removed_entity_leaves_display(self) -> None:
        store = TaskStore(self.storage)
        a = store.add("a", priority=Priority.LOW).unwrap()
        b = store.add("b", priority=Priority.HIGH).unwrap()
        store.select(1, [b, a])
        assert store.remove(a.id).is_ok()
        assert store.selected == 0
        assert store.selected_item() == b

    def test_helpers(self) -> None:
        store = TaskStore(self.storage)
        store.add("a", priority=Priority.HIGH)
        b = store.add("b", priority=Priority.LOW).unwrap()
        store.toggle_completed(b.id)
        assert [t.title for t in store.pending()] == ["a"]
        assert [t.title for t in store.completed()] == ["b"]
        assert [t.title for t in store.by_priority(Priority.HIGH)] == ["a"]


class TestDualWriteAtomicity(StoreTestBase):
    def test_failed_insert_leaves_memory_untouched(self) -> None:
        store = TaskStore(BrokenStorage(self.storage, fail={"insert"}))
        r = store.add("never")
        assert r.is_err()
        assert isinstance(r.unwrap_err(), StorageError)
        assert store.count() == 0
        assert store.next_id == 1

    def test_failed_update_leaves_memory_untouched(self) -> None:
        TaskStore(self.storage).add("orig", "d", Priority.LOW, None)
        store = TaskStore(BrokenStorage(self.storage, fail={"update"}))
        r = store.update(1, "changed", "x", Priority.HIGH, FIXED_NOW)
        assert r.is_err()
        task = store.find(1)
        assert task is not None
        assert task.title == "orig"
        assert task.priority == Priority.LOW
        assert task.due_at is None

    def test_failed_toggle_leaves_memory_untouched(self) -> None:
        TaskStore(self.storage).add("t")
        store = TaskStore(BrokenStorage(self.storage, fail={"update"}))
        assert store.toggle_completed(1).is_err()
        assert store.find(1).completed is False  # type: ignore[union-attr]

    def test_failed_remove_leaves_memory_untouched(self) -> None:
        TaskStore(self.storage).add("t")
        store = TaskStore(BrokenStorage(self.storage, fail={"delete"}))
        assert store.remove(1).is_err()
        assert store.count() == 1

    def test_failed_initial_load_gives_empty_collection(self) -> None:
        TaskStore(self.storage).add("t")
        store = TaskStore(BrokenStorage(self.storage, fail={"select_all"}))
        assert store.count() == 0
        assert store.next_id == 1

    def test_failed_reload_keeps_previous_items(self) -> None:
        broken = BrokenStorage(self.storage)
        store = TaskStore(broken)
        store.add("t")
        broken.fail.add("select_all")
        assert store.load().is_err()
        assert store.count() == 1

    def test_storage_is_written_before_memory(self) -> None:
        broken = BrokenStorage(self.storage)
        store = NoteStore(broken)
        broken.calls.clear()
        store.add("n")
        assert broken.calls == ["insert"]


class TestDesyncRecovery(StoreTestBase):
    def test_update_of_entity_missing_in_memory_resyncs(self) -> None:
        stale = NoteStore(self.storage)
        # another handle adds a row the stale mirror has never seen
        NoteStore(self.storage).add("external")
        r = stale.update(1, "edited", "body")
        assert r.is_err()
        assert isinstance(r.unwrap_err(), NotFoundError)
        # the forced reload picked up the row and the write reached storage
        assert stale.count() == 1
        assert stale.find(1).title == "edited"  # type: ignore[union-attr]

    def test_remove_of_entity_missing_in_memory_resyncs(self) -> None:
        stale = NoteStore(self.storage)
        other = NoteStore(self.storage)
        other.add("a")
        other.add("b")
        r = stale.remove(1)
        assert r.is_err()
        assert isinstance(r.unwrap_err(), NotFoundError)
        assert [n.title for n in stale.items] == ["b"]


class TestEventStore(StoreTestBase):
    def test_loaded_in_start_order(self) -> None:
        store = EventStore(self.storage)
        store.add("later", "", "", FIXED_NOW + timedelta(days=2))
        store.add("sooner", "", "", FIXED_NOW + timedelta(hours=1))
        assert [e.title for e in EventStore(self.storage).items] == ["sooner", "later"]

    def test_end_defaults_to_start(self) -> None:
        store = EventStore(self.storage)
        ev = store.add("e", "", "Room 1", FIXED_NOW).unwrap()
        assert ev.end_at == FIXED_NOW
        assert EventStore(self.storage).find(ev.id).end_at == FIXED_NOW  # type: ignore[union-attr]

    def test_content_round_trips_through_description_column(self) -> None:
        store = EventStore(self.storage)
        store.add("e", "agenda", "Zoom", FIXED_NOW, FIXED_NOW + timedelta(hours=1))
        ev = EventStore(self.storage).items[0]
        assert ev.content == "agenda"
        assert ev.location == "Zoom"

    def test_today_and_upcoming(self) -> None:
        store = EventStore(self.storage)
        store.add("yesterday", "", "", FIXED_NOW - timedelta(days=1))
        store.add("this morning", "", "", datetime(2025, 6, 18, 8, 0))
        store.add("tonight", "", "", datetime(2025, 6, 18, 20, 0))
        store.add("next week", "", "", FIXED_NOW + timedelta(days=8))
        assert [e.title for e in store.today_events(FIXED_NOW)] == ["this morning", "tonight"]
        assert [e.title for e in store.upcoming_events(1, FIXED_NOW)] == ["tonight"]
        assert [e.title for e in store.upcoming_events(5, FIXED_NOW)] == ["tonight", "next week"]


class TestNoteStore(StoreTestBase):
    def test_add_and_update(self) -> None:
        store = NoteStore(self.storage)
        note = store.add("Meeting NOTES", "line1\nline2").unwrap()
        assert store.update(note.id, "Meeting", "body").is_ok()
        reloaded = NoteStore(self.storage).items[0]
        assert reloaded.title == "Meeting"
        assert reloaded.content == "body"

    def test_explicit_created_at(self) -> None:
        store = NoteStore(self.storage)
        created = FIXED_NOW - timedelta(days=3)
        store.add("old", "", created)
        assert NoteStore(self.storage).items[0].created_at == created


class TestOpenCollections(StoreTestBase):
    def test_builds_three_stores_on_one_storage(self) -> None:
        c = open_collections(self.storage)
        c.tasks.add("t")
        c.notes.add("n")
        c.events.add("e", "", "", FIXED_NOW)
        again = open_collections(self.storage)
        assert (again.tasks.count(), again.notes.count(), again.events.count()) == (1, 1, 1)
