import curses
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Literal, TypeVar

T = TypeVar("T")

FieldKind = Literal[
    "text",
    "datetime",
    "choice",
]

KEY_TAB = 9
KEY_CTRL_S = 19
KEY_ESC = 27
KEYS_ENTER = (curses.KEY_ENTER, 10, 13)
KEYS_BACKSPACE = (curses.KEY_BACKSPACE, 127, 8)


class ViewId(Enum):
    DASHBOARD = "dashboard"
    TASKS = "tasks"
    NOTES = "notes"
    CALENDAR = "calendar"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass
class FieldState:
    """Editable field in a form or the search box."""

    name: str  # title, description, dueなど
    label: str  # 画面表示用ラベル
    buffer: str = ""  # 編集中テキスト
    cursor: int = 0  # カーソル位置
    required: bool = False
    kind: FieldKind = "text"
    multiline: bool = False  # Enterで改行を挿入する
    choices: list[str] = field(default_factory=list)  # kind == "choice" の選択肢
    default: str = ""  # clear() で戻る値
    focused: bool = False

    @property
    def value(self) -> str:
        return self.buffer

    def set_value(self, value: str) -> None:
        self.buffer = value
        # カーソルは語尾におく
        self.cursor = len(value)

    def clear(self) -> None:
        self.set_value(self.default)

    def focus(self) -> None:
        self.focused = True
        self.cursor = len(self.buffer)

    def blur(self) -> None:
        self.focused = False

    def handle_key(self, key: int, ch: str | None = None) -> bool:  # noqa: C901, PLR0911
        """Edit the buffer for one key press. Return True if the key was consumed."""
        if self.kind == "choice":
            return self._handle_choice_key(key)

        # Enter: multi-line fields only
        if key in KEYS_ENTER:
            if not self.multiline:
                return False
            self._insert("\n")
            return True

        # Backspace: delete left char
        if key in KEYS_BACKSPACE:
            if self.cursor > 0:
                self.buffer = self.buffer[: self.cursor - 1] + self.buffer[self.cursor :]
                self.cursor -= 1
            return True
        # Delete: delete right char
        if key == curses.KEY_DC:
            if self.cursor < len(self.buffer):
                self.buffer = self.buffer[: self.cursor] + self.buffer[self.cursor + 1 :]
            return True

        # 左右移動
        if key == curses.KEY_LEFT:
            if self.cursor > 0:
                self.cursor -= 1
            return True
        if key == curses.KEY_RIGHT:
            if self.cursor < len(self.buffer):
                self.cursor += 1
            return True
        if key == curses.KEY_HOME:
            self.cursor = 0
            return True
        if key == curses.KEY_END:
            self.cursor = len(self.buffer)
            return True

        # 文字入力
        # chがstrのときはget_wch()からきた通常文字として扱う
        insert_ch: str | None = None
        if ch is not None:
            insert_ch = ch
        elif 32 <= key <= 126:
            insert_ch = chr(key)

        if insert_ch is None or len(insert_ch) == 0 or insert_ch < " " or insert_ch == "\x7f":
            return False
        self._insert(insert_ch)
        return True

    def _insert(self, s: str) -> None:
        self.buffer = self.buffer[: self.cursor] + s + self.buffer[self.cursor :]
        self.cursor += len(s)

    def _handle_choice_key(self, key: int) -> bool:
        if not self.choices:
            return False
        try:
            idx = self.choices.index(self.buffer)
        except ValueError:
            idx = 0
        if key == curses.KEY_UP:
            idx = (idx + 1) % len(self.choices)
        elif key == curses.KEY_DOWN:
            idx = (idx - 1) % len(self.choices)
        else:
            return False
        self.set_value(self.choices[idx])
        return True


@dataclass
class ListState(Generic[T]):
    """Display order of one list plus the cursor into it."""

    items: list[T] = field(default_factory=list)
    cursor: int = 0
    offset: int = 0  # 描画開始行のオフセット

    def __len__(self) -> int:
        return len(self.items)

    def current(self) -> T | None:
        if not (0 <= self.cursor < len(self.items)):
            return None
        return self.items[self.cursor]

    def move(self, delta: int) -> None:
        self.move_to(self.cursor + delta)

    def move_to(self, index: int) -> None:
        self.cursor = max(0, min(index, len(self.items) - 1))

    def clamp(self) -> None:
        self.move_to(self.cursor)

    def reset(self) -> None:
        self.cursor = 0
        self.offset = 0
