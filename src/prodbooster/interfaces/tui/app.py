from collections.abc import Mapping
from typing import Protocol

from prodbooster.core.store import Collections
from prodbooster.interfaces.tui.controllers import (
    CalendarController,
    Clock,
    DashboardController,
    NotesController,
    TasksController,
)
from prodbooster.interfaces.tui.data import ViewId
from prodbooster.util.logger import setup_logger
from prodbooster.util.time import now

logger = setup_logger("prodbooster", is_stream=False, is_file=True)

VIEW_KEYS: dict[int, ViewId] = {
    ord("1"): ViewId.DASHBOARD,
    ord("2"): ViewId.TASKS,
    ord("3"): ViewId.NOTES,
    ord("4"): ViewId.CALENDAR,
}
KEYS_QUIT = (ord("q"),)


class Controller(Protocol):
    view_id: ViewId
    msg: str | None

    def handle_key(self, key: int, ch: str | None = None) -> None: ...

    def is_form_active(self) -> bool: ...

    def resize(self, width: int, height: int) -> None: ...

    def refresh(self, *, reset_cursor: bool = False) -> None: ...


class App:
    """Top-level router: owns every view controller and the active view.

    While the active controller has a form or search overlay open, every key
    goes to it and the global keys (quit, view switch) are suppressed.
    """

    def __init__(
        self,
        controllers: Mapping[ViewId, Controller],
        start: ViewId = ViewId.DASHBOARD,
    ) -> None:
        missing = [v.value for v in ViewId if v not in controllers]
        if missing:
            _msg = f"Missing controller(s): {', '.join(missing)}"
            raise ValueError(_msg)
        self.controllers = dict(controllers)
        self.active = start

    @classmethod
    def from_collections(
        cls,
        collections: Collections,
        start: ViewId = ViewId.DASHBOARD,
        clock: Clock = now,
    ) -> "App":
        return cls(
            {
                ViewId.DASHBOARD: DashboardController(collections, clock),
                ViewId.TASKS: TasksController(collections.tasks, clock),
                ViewId.NOTES: NotesController(collections.notes, clock),
                ViewId.CALENDAR: CalendarController(collections.events, clock),
            },
            start,
        )

    @property
    def current(self) -> Controller:
        return self.controllers[self.active]

    def switch_to(self, view: ViewId) -> None:
        if view is self.active:
            return
        logger.debug("view: %s -> %s", self.active.value, view.value)
        self.active = view
        # ビュー切替時は他ビューでの変更を反映する
        self.current.refresh()

    def handle_resize(self, width: int, height: int) -> None:
        for c in self.controllers.values():
            c.resize(width, height)

    def handle_key(self, key: int, ch: str | None = None) -> bool:
        """Route one key. Return False to quit."""
        if self.current.is_form_active():
            self.current.handle_key(key, ch)
            return True
        if key in KEYS_QUIT:
            return False
        if key in VIEW_KEYS:
            self.switch_to(VIEW_KEYS[key])
            return True
        self.current.handle_key(key, ch)
        return True
