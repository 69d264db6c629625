"""Screen positions, line layout and display-width measurement."""

from __future__ import annotations

import abc
import functools
from dataclasses import dataclass, field
from typing import Iterator

import regex
from wcwidth import wcwidth

_GRAPHEME = regex.compile(r"\X")

_PLAIN, _AFTER_ESC, _IN_CSI = 0, 1, 2


@functools.total_ordering
@dataclass(frozen=True)
class Position:
    """A cell on screen; ordered by row first, then column."""

    col: int = 0
    row: int = 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return (self.row, self.col) < (other.row, other.col)


@dataclass(frozen=True)
class Layout:
    """Where the prompt ends, where the cursor is and where the input ends."""

    prompt_size: Position = field(default_factory=Position)
    default_prompt: bool = False
    cursor: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)


def graphemes(text: str) -> Iterator[str]:
    """Yield the extended grapheme clusters of `text`."""
    for match in _GRAPHEME.finditer(text):
        yield match.group()


def _display_width(text: str) -> int:
    return sum(max(wcwidth(ch), 0) for ch in text)


class WidthCounter:
    """Measures graphemes one after another, giving ANSI escapes no width."""

    def __init__(self) -> None:
        self._state = _PLAIN

    def width(self, grapheme: str) -> int:
        """Display width of `grapheme`, given the graphemes measured before it."""
        if self._state == _AFTER_ESC:
            # CSI, or else a two-character sequence
            self._state = _IN_CSI if grapheme == "[" else _PLAIN
            return 0
        if self._state == _IN_CSI:
            if not (grapheme == ";" or grapheme[:1] in "0123456789" and grapheme):
                self._state = _PLAIN
            return 0
        if grapheme == "\x1b":
            self._state = _AFTER_ESC
            return 0
        if grapheme == "\n":
            return 0
        return _display_width(grapheme)


class Renderer(abc.ABC):
    """Displays prompt, line and cursor on a terminal."""

    def compute_layout(
        self,
        prompt_size: Position,
        default_prompt: bool,
        line: str,
        pos: int,
        info: str | None = None,
    ) -> Layout:
        """Lay out the prompt, `line` with the cursor at `pos`, and `info` after it."""
        cursor = self.calculate_position(line[:pos], prompt_size)
        end = cursor if pos == len(line) else self.calculate_position(line[pos:], cursor)
        if info is not None:
            end = self.calculate_position(info, end)
        layout = Layout(prompt_size, default_prompt, cursor, end)
        assert layout.prompt_size <= layout.cursor <= layout.end
        return layout

    @abc.abstractmethod
    def calculate_position(self, s: str, orig: Position) -> Position:
        """Position reached after displaying `s` starting at `orig`."""