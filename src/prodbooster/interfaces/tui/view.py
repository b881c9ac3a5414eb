import curses
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from prodbooster.core.models import Event, Note, Task
from prodbooster.interfaces.tui.app import App
from prodbooster.interfaces.tui.controllers import CARD_ORDER, Clock, DashboardController, ListViewController
from prodbooster.interfaces.tui.data import FieldState, ListState
from prodbooster.interfaces.tui.forms import EntryForm
from prodbooster.interfaces.tui.helper import _string_width, fit_width, wrap_width
from prodbooster.interfaces.tui.search import SearchBar
from prodbooster.interfaces.tui.style import (
    ACTIVE_TAB_COLOR,
    DIALOG_BG_COLOR,
    ERROR_COLOR,
    MAIN_THEME_COLOR,
    MAX_DIALOG_BOX_WIDTH,
    MAX_SEARCH_BOX_WIDTH,
    NORMAL_COLOR,
    SEARCH_BG_COLOR,
    SUPPRESSED_COLOR,
    HeaderLines,
    event_color,
    event_detail_lines,
    event_line,
    filter_label,
    note_color,
    note_detail_lines,
    note_line,
    task_color,
    task_detail_lines,
    task_line,
)
from prodbooster.util.logger import setup_logger
from prodbooster.util.time import now

logger = setup_logger("prodbooster", is_stream=False, is_file=True)

CARD_TITLES = {"tasks": "Tasks", "events": "Events", "notes": "Notes"}
NEWLINE_MARK = "⏎"


def row_for(item: Any, current: datetime) -> tuple[str, int]:
    """Return (label, color pair) for one list row."""
    match item:
        case Task():
            return task_line(item), task_color(item, current)
        case Event():
            return event_line(item), event_color(item, current)
        case Note():
            return note_line(item), note_color(item, current)
    return str(item), NORMAL_COLOR


def detail_for(item: Any) -> list[str]:
    match item:
        case Task():
            return task_detail_lines(item)
        case Event():
            return event_detail_lines(item)
        case Note():
            return note_detail_lines(item)
    return []


@dataclass
class AppView:
    """AppView class to draw overall app screen.

    Attributes:
        stdscr: curses.window
        app: App (read-only; the view never changes controller state except scroll offsets)
        clock: time source shared with the controllers
    """

    stdscr: curses.window
    app: App
    clock: Clock = now

    def draw(self) -> None:
        """Draw overall app screen."""
        self.stdscr.erase()
        max_y, max_x = self.stdscr.getmaxyx()
        if max_y < 4 or max_x < 10:
            # give up drawing if terminal size is too small
            self.stdscr.refresh()
            return

        header_height = HeaderLines.height()
        footer_height = 1
        content_height = max_y - header_height - footer_height
        ctl = self.app.current
        current = self.clock()

        self._draw_topbar(0, max_x)
        if isinstance(ctl, DashboardController):
            self._draw_dashboard(ctl, header_height, content_height, max_x, current)
        elif isinstance(ctl, ListViewController):
            self._draw_list_view(ctl, header_height, content_height, max_x, current)
        self._draw_footer(ctl.msg, ctl.help_line, max_y - 1, max_x)

        form = self._active_form()
        search = ctl.search if isinstance(ctl, ListViewController) else None
        if form is not None:
            self._draw_dialog(form, header_height, content_height, max_x)
        elif search is not None and search.active:
            self._draw_search(search, max_y - 2, max_x)
        else:
            self._cursor_off()

        self.stdscr.refresh()

    def _active_form(self) -> EntryForm[Any, Any] | None:
        ctl = self.app.current
        if isinstance(ctl, DashboardController):
            return ctl.active_form()
        if isinstance(ctl, ListViewController) and ctl.form.active:
            return ctl.form
        return None

    def _attr(self, color: int) -> int:
        if curses.has_colors():
            return curses.color_pair(color)
        return 0

    def _safe_addnstr(self, y: int, x: int, s: str, n: int, attr: int = 0) -> None:
        """Add a string to the screen safely."""
        max_y, max_x = self.stdscr.getmaxyx()
        # 画面外なら描かない
        if y < 0 or y >= max_y or x < 0 or x >= max_x:
            return
        # 右端を超えないようにクリップ
        limit = max_x - x
        if limit <= 0 or n <= 0:
            return
        # 最終行では右端1マスを開ける
        if y == max_y - 1 and limit == max_x:
            limit -= 1

        s = s.replace("\t", " ")
        n = min(n, len(s), limit)
        if n <= 0:
            return

        # nを減らしながらトライ (例外が発生したら1文字ずつ減らして再試行)
        while n > 0:
            chunk = s[:n]
            try:
                self.stdscr.addnstr(y, x, chunk, n, attr)
            except curses.error:
                n -= 1
            else:
                return

    # topbar/footer
    def _draw_topbar(self, y: int, width: int) -> None:
        theme = self._attr(MAIN_THEME_COLOR)
        self._safe_addnstr(y, 0, fit_width(HeaderLines.title(), width), width, theme | curses.A_BOLD)
        x = _string_width(HeaderLines.title()) + 1
        for view_id, label in HeaderLines.tabs():
            attr = self._attr(ACTIVE_TAB_COLOR) | curses.A_BOLD if view_id is self.app.active else theme
            self._safe_addnstr(y, x, label, width - x, attr)
            x += _string_width(label) + 1
        self._safe_addnstr(y + 1, 0, "─" * width, width, theme)

    def _draw_footer(self, msg: str | None, help_line: str, y: int, width: int) -> None:
        if msg:
            attr = self._attr(ERROR_COLOR) if msg.startswith("Error") else 0
            self._safe_addnstr(y, 0, fit_width(msg, width), width, attr)
            return
        self._safe_addnstr(y, 0, fit_width(help_line, width), width, self._attr(SUPPRESSED_COLOR))

    # list + detail
    def _draw_list_view(
        self,
        ctl: ListViewController[Any],
        y: int,
        height: int,
        width: int,
        current: datetime,
    ) -> None:
        if height <= 1:
            return
        list_width = width // 2
        detail_width = width - list_width - 1

        label = f"{ctl.view_id.label} ({len(ctl.list)}/{ctl.store.count()})  {filter_label(ctl.search.query, ctl.search.filter_type)}"
        self._safe_addnstr(y, 0, fit_width(label, width), width, curses.A_BOLD)
        self._draw_rows(ctl.list, y + 1, height - 1, 0, list_width, current, focused=True)

        # separator
        for row in range(1, height):
            self._safe_addnstr(y + row, list_width, "│", 1, self._attr(MAIN_THEME_COLOR))

        item = ctl.selected()
        lines = ["(empty)"] if item is None else self._detail_lines(item, detail_width)
        for row, line in enumerate(lines[: height - 1]):
            self._safe_addnstr(y + 1 + row, list_width + 1, fit_width(line, detail_width), detail_width)

    def _detail_lines(self, item: Any, width: int) -> list[str]:
        visual: list[str] = []
        for line in detail_for(item):
            visual.extend(wrap_width(line, width) or [""])
        return visual

    def _draw_rows(  # noqa: PLR0913
        self,
        lst: ListState[Any],
        y: int,
        height: int,
        x: int,
        width: int,
        current: datetime,
        *,
        focused: bool,
    ) -> None:
        if height <= 0 or width <= 0:
            return
        if not lst.items:
            self._safe_addnstr(y, x, fit_width("(no items)", width), width, self._attr(SUPPRESSED_COLOR))
            return

        # list.offsetをclamp (カーソルが可視範囲に入るように)
        if lst.cursor < lst.offset:
            lst.offset = lst.cursor
        elif lst.cursor >= lst.offset + height:
            lst.offset = lst.cursor - height + 1
        lst.offset = max(0, min(lst.offset, max(0, len(lst.items) - height)))

        start = lst.offset
        end = min(start + height, len(lst.items))
        for i, idx in enumerate(range(start, end)):
            text, color = row_for(lst.items[idx], current)
            attr = self._attr(color)
            if focused and idx == lst.cursor:
                attr |= curses.A_REVERSE
            self._safe_addnstr(y + i, x, fit_width(text, width), width, attr)

    # dashboard
    def _draw_dashboard(
        self,
        ctl: DashboardController,
        y: int,
        height: int,
        width: int,
        current: datetime,
    ) -> None:
        if height <= 2:
            return
        hero = HeaderLines.hero(ctl.stats())
        self._safe_addnstr(y, 0, fit_width(hero, width), width, curses.A_BOLD)

        card_width = width // len(CARD_ORDER)
        for i, name in enumerate(CARD_ORDER):
            x = i * card_width
            card = ctl.cards[name]
            focused = name == ctl.focus
            title = f"{'▶ ' if focused else '  '}{CARD_TITLES[name]} ({len(card)})"
            attr = self._attr(MAIN_THEME_COLOR) | (curses.A_BOLD if focused else 0)
            self._safe_addnstr(y + 2, x, fit_width(title, card_width - 1), card_width - 1, attr)
            self._draw_rows(card, y + 3, height - 3, x, card_width - 1, current, focused=focused)

    # dialog
    def _draw_dialog(  # noqa: C901
        self,
        form: EntryForm[Any, Any],
        content_y: int,
        content_height: int,
        max_x: int,
    ) -> None:
        """Draw the entry form centred in the content area."""
        num_fields = len(form.fields)
        box_width = min(MAX_DIALOG_BOX_WIDTH, max_x - 4)
        # title(1) + empty(1) + fields(num_fields) + empty(1) + hint(1)
        box_height = min(4 + num_fields, content_height)
        if box_width <= 0 or box_height <= 0:
            return
        top = content_y + max(0, (content_height - box_height) // 2)
        left = max(2, (max_x - box_width) // 2)
        attr = self._attr(DIALOG_BG_COLOR)

        # 枠をクリア
        for row in range(box_height):
            self._safe_addnstr(top + row, left, " " * box_width, box_width, attr)

        self._safe_addnstr(top, left, fit_width(f"[{form.heading}]", box_width), box_width, attr | curses.A_BOLD)

        label_width = max(_string_width(self._field_label(f, marker=">")) for f in form.fields)
        input_width = max(1, box_width - label_width)
        for idx, fs in enumerate(form.fields):
            row = top + 2 + idx
            if row >= top + box_height - 1:
                break
            marker = ">" if idx == form.field_index else " "
            value = self._field_value(fs)
            # show last part if input overflows
            if _string_width(value) > input_width:
                value = value[-input_width:]
            line = self._field_label(fs, marker=marker) + value
            self._safe_addnstr(row, left, fit_width(line, box_width), box_width, attr)

        self._safe_addnstr(top + box_height - 1, left, fit_width(form.submit_hint, box_width), box_width, attr)

        # ---- draw text cursor ---------------------------------------------
        fs = form.current_field
        if fs.kind == "choice":
            self._cursor_off()
            return
        cursor_row = top + 2 + form.field_index
        shown = self._field_value(fs)
        before = fs.buffer[: fs.cursor].replace("\n", NEWLINE_MARK)
        cursor_col = left + label_width + _string_width(before)
        if _string_width(shown) > input_width:
            cursor_col = left + label_width + min(input_width, _string_width(before))
        try:
            max_y, max_x2 = self.stdscr.getmaxyx()
            if 0 <= cursor_row < max_y and 0 <= cursor_col < max_x2:
                curses.curs_set(1)
                self.stdscr.move(cursor_row, cursor_col)
            else:
                _msg = f"Cursor position out of screen: row={cursor_row}, col={cursor_col}"
                logger.warning(_msg)
        except curses.error:
            # cursor control may be failed depending on the terminal environment
            logger.warning("Error (cursor on)")

    @staticmethod
    def _field_label(fs: FieldState, marker: str) -> str:
        required = "*" if fs.required else " "
        return f"{marker} {fs.label}{required}: "

    @staticmethod
    def _field_value(fs: FieldState) -> str:
        if fs.kind == "choice":
            return f"< {fs.buffer} >"
        if fs.kind == "datetime" and not fs.buffer and not fs.focused:
            return "YYYY-MM-DD HH:MM"
        return fs.buffer.replace("\n", NEWLINE_MARK)

    # search
    def _draw_search(self, search: SearchBar, y: int, max_x: int) -> None:
        box_width = min(MAX_SEARCH_BOX_WIDTH, max_x)
        attr = self._attr(SEARCH_BG_COLOR)
        prefix = "/ "
        suffix = f"  [Tab: {search.filter_type.label}]"
        input_width = max(1, box_width - _string_width(prefix) - _string_width(suffix))
        query = search.input.buffer
        if _string_width(query) > input_width:
            query = query[-input_width:]
        line = prefix + fit_width(query, input_width) + suffix
        self._safe_addnstr(y, 0, fit_width(line, box_width), box_width, attr)
        try:
            curses.curs_set(1)
            offset = min(input_width, _string_width(search.input.buffer[: search.input.cursor]))
            self.stdscr.move(y, _string_width(prefix) + offset)
        except curses.error:
            logger.warning("Error (cursor on)")

    def _cursor_off(self) -> None:
        """Turn off cursor."""
        try:
            curses.curs_set(0)
        except curses.error:
            logger.debug("cursor visibility not supported")
