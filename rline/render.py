"""Rendering of prompt and input line on a POSIX terminal."""

from __future__ import annotations

import enum
import logging
import os
import sys
import threading
from typing import Any, Protocol

from .layout import Layout, Position, Renderer, WidthCounter, graphemes

log = logging.getLogger(__name__)

# Set by the SIGWINCH handler; consumed by `PosixRenderer.sigwinch`.
SIGWINCH = threading.Event()
_SIGWINCH_LOCK = threading.Lock()


class OutputStream(enum.Enum):
    """Standard stream the editor writes to, valued by file descriptor."""

    STDOUT = 1
    STDERR = 2


class BellStyle(enum.Enum):
    """How to signal the user."""

    AUDIBLE = "audible"
    NONE = "none"
    VISIBLE = "visible"


class CursorReportReader(Protocol):
    """What is needed to read the terminal's cursor position report."""

    def poll(self, timeout_ms: int) -> int:
        ...

    def next_char(self) -> str:
        ...


def get_win_size(stream: OutputStream) -> tuple[int, int]:
    """Return (columns, rows) of the terminal behind `stream`.

    A zero width counts as 80 columns and a zero height as unlimited rows;
    when the size cannot be read, (80, 24) is assumed.
    """
    try:
        size = os.get_terminal_size(stream.value)
    except (OSError, ValueError):
        return 80, 24
    cols = size.columns or 80
    rows = size.lines or sys.maxsize
    return cols, rows


def write_and_flush(stream: OutputStream, data: bytes) -> None:
    """Write `data` to `stream` and flush it."""
    target = sys.stdout if stream is OutputStream.STDOUT else sys.stderr
    raw = getattr(target, "buffer", None)
    if raw is not None:
        target.flush()
        raw.write(data)
        raw.flush()
    else:
        target.write(data.decode("utf-8", "replace"))
        target.flush()


def _read_digits_until(reader: CursorReportReader, sep: str) -> int | None:
    num = 0
    while True:
        c = reader.next_char()
        if c in "0123456789" and len(c) == 1:
            num = num * 10 + int(c)
        elif c == sep:
            return num
        else:
            return None


def _relative_move(shift: int, code: str) -> str:
    return f"\x1b[{code}" if shift == 1 else f"\x1b[{shift}{code}"


class PosixRenderer(Renderer):
    """Draws prompt, line and hint with ANSI escape sequences."""

    def __init__(
        self,
        stream: OutputStream = OutputStream.STDOUT,
        tab_stop: int = 8,
        colors_enabled: bool = True,
        bell_style: BellStyle = BellStyle.AUDIBLE,
        cols: int | None = None,
    ) -> None:
        self.stream = stream
        self.cols = cols if cols is not None else get_win_size(stream)[0]
        self.buffer = ""
        self.tab_stop = tab_stop
        self._colors_enabled = colors_enabled
        self.bell_style = bell_style

    def _clear_old_rows(self, layout: Layout) -> str:
        current_row = layout.cursor.row
        old_rows = layout.end.row
        # old_rows < current_row when a multi-line prompt is the default state
        movement = max(old_rows - current_row, 0)
        parts = []
        if movement > 0:
            parts.append(f"\x1b[{movement}B")
        parts.append("\r\x1b[0K\x1b[A" * old_rows)
        parts.append("\r\x1b[0K")
        return "".join(parts)

    def move_cursor(self, old: Position, new: Position) -> None:
        """Move the cursor from `old` to `new` with relative motions."""
        parts = []
        if new.row > old.row:
            parts.append(_relative_move(new.row - old.row, "B"))
        elif new.row < old.row:
            parts.append(_relative_move(old.row - new.row, "A"))
        if new.col > old.col:
            parts.append(_relative_move(new.col - old.col, "C"))
        elif new.col < old.col:
            parts.append(_relative_move(old.col - new.col, "D"))
        self.buffer = "".join(parts)
        self.write_and_flush(self.buffer.encode("utf-8"))

    def refresh_line(
        self,
        prompt: str,
        line: str,
        pos: int,
        hint: str | None,
        old_layout: Layout,
        new_layout: Layout,
        highlighter: Any = None,
    ) -> None:
        """Redraw prompt, `line` and `hint`, leaving the cursor at its new place."""
        cursor = new_layout.cursor
        end_pos = new_layout.end
        parts = [self._clear_old_rows(old_layout)]

        if highlighter is not None:
            parts.append(highlighter.highlight_prompt(prompt, new_layout.default_prompt))
            parts.append(highlighter.highlight(line, pos))
        else:
            parts.append(prompt)
            parts.append(line)
        if hint is not None:
            parts.append(highlighter.highlight_hint(hint) if highlighter is not None else hint)

        # generate our own newline on line wrap
        ends_with_newline = hint.endswith("\n") if hint is not None else line.endswith("\n")
        if end_pos.col == 0 and end_pos.row > 0 and not ends_with_newline:
            parts.append("\n")

        row_movement = end_pos.row - cursor.row
        if row_movement > 0:
            parts.append(f"\x1b[{row_movement}A")
        parts.append(f"\r\x1b[{cursor.col}C" if cursor.col > 0 else "\r")

        self.buffer = "".join(parts)
        self.write_and_flush(self.buffer.encode("utf-8"))

    def calculate_position(self, s: str, orig: Position) -> Position:
        """Control characters have no width; wide characters are never split."""
        col, row = orig.col, orig.row
        counter = WidthCounter()
        for grapheme in graphemes(s):
            if grapheme == "\n":
                row += 1
                col = 0
                continue
            if grapheme == "\t":
                cw = self.tab_stop - (col % self.tab_stop)
            else:
                cw = counter.width(grapheme)
            col += cw
            if col > self.cols:
                row += 1
                col = cw
        if col == self.cols:
            col = 0
            row += 1
        return Position(col, row)

    def write_and_flush(self, data: bytes) -> None:
        write_and_flush(self.stream, data)

    def beep(self) -> None:
        """Ring the bell on stderr when the bell style is audible."""
        if self.bell_style is BellStyle.AUDIBLE:
            write_and_flush(OutputStream.STDERR, b"\x07")

    def clear_screen(self) -> None:
        self.write_and_flush(b"\x1b[H\x1b[2J")

    def sigwinch(self) -> bool:
        """Return True once for each window resize signal received."""
        with _SIGWINCH_LOCK:
            if SIGWINCH.is_set():
                SIGWINCH.clear()
                return True
            return False

    def update_size(self) -> None:
        self.cols = get_win_size(self.stream)[0]

    def get_columns(self) -> int:
        return self.cols

    def get_rows(self) -> int:
        return get_win_size(self.stream)[1]

    def colors_enabled(self) -> bool:
        return self._colors_enabled

    def move_cursor_at_leftmost(self, reader: CursorReportReader) -> None:
        """Start a new line unless the cursor is already in the first column."""
        if reader.poll(0) != 0:
            log.debug("cannot request cursor location")
            return
        self.write_and_flush(b"\x1b[6n")
        if (
            reader.poll(100) == 0
            or reader.next_char() != "\x1b"
            or reader.next_char() != "["
            or _read_digits_until(reader, ";") is None
        ):
            log.warning("cannot read initial cursor location")
            return
        col = _read_digits_until(reader, "R")
        log.debug("initial cursor location: %r", col)
        if col != 1:
            self.write_and_flush(b"\n")