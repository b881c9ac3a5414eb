import curses
import locale
import os

from prodbooster.core.store import Collections
from prodbooster.interfaces.tui.app import App
from prodbooster.interfaces.tui.data import ViewId
from prodbooster.interfaces.tui.style import COLOR_PAIRS
from prodbooster.interfaces.tui.view import AppView
from prodbooster.util.logger import setup_logger

logger = setup_logger("prodbooster", is_stream=False, is_file=True)

# ms to wait for the rest of an escape sequence before reporting a bare Esc
ESCDELAY_MS = "25"


def _init_curses(stdscr: curses.window) -> None:
    curses.curs_set(0)
    # Ctrl+S を端末のフロー制御に取られないようにする
    curses.raw()
    stdscr.keypad(True)  # noqa: FBT003

    if curses.has_colors():
        curses.start_color()
        curses.use_default_colors()
        for idx, (fg, bg) in COLOR_PAIRS.items():
            # 256色未満の端末ではデフォルト色にフォールバック
            fg_ = fg if fg < curses.COLORS else -1
            bg_ = bg if bg < curses.COLORS else -1
            curses.init_pair(idx, fg_, bg_)


def main(stdscr: curses.window, collections: Collections, start: ViewId = ViewId.DASHBOARD) -> int:
    _init_curses(stdscr)
    app = App.from_collections(collections, start)
    view = AppView(stdscr, app)
    max_y, max_x = stdscr.getmaxyx()
    app.handle_resize(max_x, max_y)
    logger.info("session started (view=%s)", start.value)
    while True:
        view.draw()
        key_raw = stdscr.get_wch()
        if key_raw == curses.KEY_RESIZE:
            max_y, max_x = stdscr.getmaxyx()
            app.handle_resize(max_x, max_y)
            continue
        key = ord(key_raw) if isinstance(key_raw, str) else key_raw
        ch = key_raw if isinstance(key_raw, str) else None
        cont = app.handle_key(key, ch)
        if not cont:
            break
    logger.info("session ended")
    return 0


def run(collections: Collections, start: ViewId = ViewId.DASHBOARD) -> int:
    locale.setlocale(locale.LC_ALL, "")
    os.environ.setdefault("ESCDELAY", ESCDELAY_MS)
    return curses.wrapper(main, collections, start)
