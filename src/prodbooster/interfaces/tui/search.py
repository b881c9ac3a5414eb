from dataclasses import dataclass, field

from prodbooster.core.models import FilterType
from prodbooster.interfaces.tui.data import KEY_ESC, KEY_TAB, KEYS_ENTER, FieldState


@dataclass
class SearchBar:
    """Search overlay: free-text query plus one categorical filter.

    - Enter: close, keep query and filter
    - Esc: close, clear query and filter
    - Tab: cycle the categorical filter
    - other keys edit the query
    """

    active: bool = False
    input: FieldState = field(default_factory=lambda: FieldState(name="query", label="Search"))
    query: str = ""
    filter_type: FilterType = FilterType.NONE

    def activate(self) -> None:
        self.active = True
        self.input.set_value(self.query)
        self.input.focus()

    def deactivate(self) -> None:
        self.active = False
        self.query = ""
        self.filter_type = FilterType.NONE
        self.input.clear()
        self.input.blur()

    def close(self) -> None:
        self.active = False
        self.input.blur()

    def cycle_filter(self) -> None:
        self.filter_type = self.filter_type.next()

    def handle_key(self, key: int, ch: str | None = None) -> None:
        if not self.active:
            return
        if key == KEY_ESC:
            self.deactivate()
            return
        if key in KEYS_ENTER:
            self.close()
            return
        if key == KEY_TAB:
            self.cycle_filter()
            return
        self.input.handle_key(key, ch)
        self.query = self.input.value

    @property
    def is_filtering(self) -> bool:
        return bool(self.query) or self.filter_type is not FilterType.NONE
