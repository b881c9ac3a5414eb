import unicodedata


def _char_width(ch: str) -> int:
    """Calculate the width of a character in the terminal."""
    if len(ch) == 0:
        return 0
    # 制御文字
    if ch < " ":
        return 0
    # 結合文字 (濁点など)
    if unicodedata.combining(ch):
        return 0
    # 東アジア文字幅プロパティ
    # F: full-width, W: wide を2倍にして返す
    if unicodedata.east_asian_width(ch) in ("F", "W"):
        return 2
    return 1


def _string_width(s: str) -> int:
    """Calculate the width of a string in the terminal."""
    return sum(map(_char_width, s))


def fit_width(s: str, width: int) -> str:
    """Cut s to at most width terminal cells and pad the rest with spaces."""
    if width <= 0:
        return ""
    out: list[str] = []
    used = 0
    for ch in s.replace("\t", " ").replace("\n", " "):
        w = _char_width(ch)
        if used + w > width:
            break
        out.append(ch)
        used += w
    return "".join(out) + " " * (width - used)


def wrap_width(s: str, width: int) -> list[str]:
    """Split s into lines of at most width cells, keeping explicit newlines."""
    if width <= 0:
        return []
    lines: list[str] = []
    for raw in s.split("\n"):
        line = ""
        used = 0
        for ch in raw.replace("\t", " "):
            w = _char_width(ch)
            if used + w > width:
                lines.append(line)
                line, used = "", 0
            line += ch
            used += w
        lines.append(line)
    return lines
