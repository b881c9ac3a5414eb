import unittest

from prodbooster.core.models import FilterType
from prodbooster.interfaces.tui.data import KEY_ESC, KEY_TAB
from prodbooster.interfaces.tui.search import SearchBar


def type_text(bar: SearchBar, text: str) -> None:
    for c in text:
        bar.handle_key(ord(c), c)


class TestSearchBar(unittest.TestCase):
    def setUp(self) -> None:
        self.bar = SearchBar()

    def test_inactive_ignores_keys(self) -> None:
        type_text(self.bar, "abc")
        assert self.bar.query == ""

    def test_query_follows_typing(self) -> None:
        self.bar.activate()
        type_text(self.bar, "mee")
        assert self.bar.query == "mee"
        assert self.bar.is_filtering

    def test_enter_closes_and_keeps_query(self) -> None:
        self.bar.activate()
        type_text(self.bar, "notes")
        self.bar.handle_key(KEY_TAB)
        self.bar.handle_key(10)
        assert self.bar.active is False
        assert self.bar.query == "notes"
        assert self.bar.filter_type == FilterType.PENDING
        # reopening resumes editing the kept query
        self.bar.activate()
        type_text(self.bar, "!")
        assert self.bar.query == "notes!"

    def test_escape_clears(self) -> None:
        self.bar.activate()
        type_text(self.bar, "x")
        self.bar.handle_key(KEY_TAB)
        self.bar.handle_key(KEY_ESC)
        assert self.bar.active is False
        assert self.bar.query == ""
        assert self.bar.filter_type == FilterType.NONE
        assert not self.bar.is_filtering

    def test_tab_cycles_all_filters(self) -> None:
        self.bar.activate()
        for _ in range(len(FilterType)):
            self.bar.handle_key(KEY_TAB)
        assert self.bar.filter_type == FilterType.NONE


if __name__ == "__main__":
    unittest.main()
