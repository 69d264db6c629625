"""An in-memory terminal fed from a list of keys, with output discarded."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping

from .escapes import KeyCode, KeyEvent, Modifiers
from .layout import Layout, Position, Renderer


class KeyListReader:
    """Hands out prepared key events one by one."""

    def __init__(
        self,
        keys: Iterable[KeyEvent],
        bindings: Mapping[KeyEvent, Any] | None = None,
    ) -> None:
        self._keys = iter(keys)
        self._bindings = dict(bindings or {})

    def _next(self) -> KeyEvent:
        try:
            return next(self._keys)
        except StopIteration:
            raise EOFError("no more keys") from None

    def next_key(self, single_esc_abort: bool = False) -> KeyEvent:
        """Return the next key; raise EOFError when none are left."""
        return self._next()

    def next_char(self) -> str:
        """Return the character of the next key, which must be a plain character."""
        key = self._next()
        if key.code is KeyCode.CHAR and key.mods == Modifiers.NONE:
            return key.arg  # type: ignore[return-value]
        raise ValueError(f"not a plain character key: {key!r}")

    def find_binding(self, key: KeyEvent) -> Any:
        """Return the command bound to `key` at terminal level, if any (none by default)."""
        return self._bindings.get(key)


class Sink(Renderer):
    """A renderer that draws nothing and measures one column per character."""

    def move_cursor(self, old: Position, new: Position) -> None:
        pass

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
        pass

    def calculate_position(self, s: str, orig: Position) -> Position:
        return replace(orig, col=orig.col + len(s))

    def write_and_flush(self, data: bytes) -> None:
        pass

    def beep(self) -> None:
        pass

    def clear_screen(self) -> None:
        pass

    def sigwinch(self) -> bool:
        return False

    def update_size(self) -> None:
        pass

    def get_columns(self) -> int:
        return 80

    def get_rows(self) -> int:
        return 24

    def colors_enabled(self) -> bool:
        return False

    def move_cursor_at_leftmost(self, reader: KeyListReader) -> None:
        pass


@dataclass
class _NoRawMode:
    """Raw-mode token of the dummy terminal; only tracks whether it is active."""

    active: bool = True

    def disable_raw_mode(self) -> None:
        self.active = False


@dataclass
class DummyTerminal:
    """A terminal whose input is `keys` and whose output goes nowhere."""

    keys: list[KeyEvent] = field(default_factory=list)
    cursor: int = 0  # cursor position before the last command
    color_mode: Any = None
    bell_style: Any = None

    def is_unsupported(self) -> bool:
        return False

    def is_stdin_tty(self) -> bool:
        return True

    def is_output_tty(self) -> bool:
        return False

    def enable_raw_mode(self) -> tuple[_NoRawMode, None]:
        return _NoRawMode(), None

    def create_reader(self) -> KeyListReader:
        return KeyListReader(list(self.keys))

    def create_writer(self) -> Sink:
        return Sink()