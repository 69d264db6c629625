"""Undo/redo history for edits made to a line buffer."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Protocol, Union

import regex

log = logging.getLogger(__name__)

_GRAPHEME = regex.compile(r"\X")


class EditableLine(Protocol):
    """What a line buffer must offer so that changes can be undone and redone."""

    def insert_str(self, idx: int, text: str) -> None:
        ...

    def delete_range(self, start: int, end: int) -> None:
        ...

    def replace(self, start: int, end: int, text: str) -> None:
        ...

    def set_pos(self, pos: int) -> None:
        ...


class _Marker(enum.Enum):
    BEGIN = "begin"
    END = "end"


@dataclass
class _Insert:
    idx: int
    text: str

    def undo(self, line: EditableLine) -> None:
        line.delete_range(self.idx, self.idx + len(self.text))

    def redo(self, line: EditableLine) -> None:
        line.insert_str(self.idx, self.text)

    def continues_at(self, idx: int) -> bool:
        return self.idx + len(self.text) == idx


@dataclass
class _Delete:
    idx: int
    text: str

    def undo(self, line: EditableLine) -> None:
        line.insert_str(self.idx, self.text)
        line.set_pos(self.idx + len(self.text))

    def redo(self, line: EditableLine) -> None:
        line.delete_range(self.idx, self.idx + len(self.text))

    def continues_at(self, idx: int, length: int) -> bool:
        # forward delete or backspace
        return self.idx == idx or self.idx == idx + length


@dataclass
class _Replace:
    idx: int
    old: str
    new: str

    def undo(self, line: EditableLine) -> None:
        line.replace(self.idx, self.idx + len(self.new), self.old)

    def redo(self, line: EditableLine) -> None:
        line.replace(self.idx, self.idx + len(self.old), self.new)

    def continues_at(self, idx: int) -> bool:
        return self.idx + len(self.new) == idx


_Change = Union[_Marker, _Insert, _Delete, _Replace]


def _single_char(text: str) -> bool:
    """True when `text` is exactly one grapheme made only of alphanumerics."""
    clusters = _GRAPHEME.findall(text)
    return len(clusters) == 1 and all(ch.isalnum() for ch in clusters[0])


class Changeset:
    """Records edits so that they can be undone (and redone)."""

    def __init__(self) -> None:
        self.undo_group_level = 0
        self.undos: list[_Change] = []
        self.redos: list[_Change] = []

    def begin(self) -> int:
        """Open an undo group and return a mark usable with `truncate`."""
        log.debug("Changeset::begin")
        self.redos.clear()
        mark = len(self.undos)
        self.undos.append(_Marker.BEGIN)
        self.undo_group_level += 1
        return mark

    def end(self) -> bool:
        """Close open groups; return True if anything changed since `begin`."""
        log.debug("Changeset::end")
        self.redos.clear()
        touched = False
        while self.undo_group_level > 0:
            self.undo_group_level -= 1
            if self.undos and self.undos[-1] is _Marker.BEGIN:
                self.undos.pop()
            else:
                self.undos.append(_Marker.END)
                touched = True
        return touched

    def insert(self, idx: int, c: str) -> None:
        """Record insertion of a single character `c` at `idx`."""
        log.debug("Changeset::insert(%d, %r)", idx, c)
        self.redos.clear()
        last = self.undos[-1] if self.undos else None
        if c.isalnum() and isinstance(last, _Insert) and last.continues_at(idx):
            # merge consecutive alphanumeric insertions
            last.text += c
            return
        self.undos.append(_Insert(idx, c))

    def insert_str(self, idx: int, string: str) -> None:
        """Record insertion of `string` at `idx`."""
        log.debug("Changeset::insert_str(%d, %r)", idx, string)
        self.redos.clear()
        if not string:
            return
        self.undos.append(_Insert(idx, string))

    def delete(self, idx: int, string: str) -> None:
        """Record deletion of `string` that started at `idx`."""
        log.debug("Changeset::delete(%d, %r)", idx, string)
        self.redos.clear()
        if not string:
            return
        last = self.undos[-1] if self.undos else None
        if (
            _single_char(string)
            and isinstance(last, _Delete)
            and last.continues_at(idx, len(string))
        ):
            # merge consecutive single-character deletions
            if last.idx == idx:
                last.text += string
            else:
                last.text = string + last.text
                last.idx = idx
            return
        self.undos.append(_Delete(idx, string))

    def replace(self, idx: int, old: str, new: str) -> None:
        """Record replacement of `old` by `new` at `idx`."""
        log.debug("Changeset::replace(%d, %r, %r)", idx, old, new)
        self.redos.clear()
        last = self.undos[-1] if self.undos else None
        if isinstance(last, _Replace) and last.continues_at(idx):
            # merge consecutive replacements
            last.old += old
            last.new += new
            return
        self.undos.append(_Replace(idx, old, new))

    def undo(self, line: EditableLine, n: int = 1) -> bool:
        """Undo up to `n` changes or groups; return True if the line changed."""
        log.debug("Changeset::undo")
        count = 0
        waiting_for_begin = 0
        undone = False
        while self.undos:
            change = self.undos.pop()
            if change is _Marker.BEGIN:
                waiting_for_begin -= 1
            elif change is _Marker.END:
                waiting_for_begin += 1
            else:
                change.undo(line)
                undone = True
            self.redos.append(change)
            if waiting_for_begin <= 0:
                count += 1
                if count >= n:
                    break
        return undone

    def redo(self, line: EditableLine) -> bool:
        """Redo the last undone change or group; return True if the line changed."""
        waiting_for_end = 0
        redone = False
        while self.redos:
            change = self.redos.pop()
            if change is _Marker.BEGIN:
                waiting_for_end += 1
            elif change is _Marker.END:
                waiting_for_end -= 1
            else:
                change.redo(line)
                redone = True
            self.undos.append(change)
            if waiting_for_end <= 0:
                break
        return redone

    def truncate(self, length: int) -> None:
        """Drop recorded changes beyond the first `length`."""
        log.debug("Changeset::truncate(%d)", length)
        del self.undos[length:]

    def last_insert(self) -> str | None:
        """Text inserted by the most recent change, if that change inserted text."""
        for change in reversed(self.undos):
            if isinstance(change, _Insert):
                return change.text
            if isinstance(change, _Replace):
                return change.new
            if change is _Marker.END:
                continue
            return None
        return None

    def insert_char(self, idx: int, c: str) -> None:
        """Listener hook used by a line buffer: same as `insert`."""
        self.insert(idx, c)