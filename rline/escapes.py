"""Key events and decoding of terminal input sequences into them."""

from __future__ import annotations

import enum
import logging
import unicodedata
from dataclasses import dataclass
from typing import Callable, ClassVar, Union

log = logging.getLogger(__name__)


class Utf8Error(ValueError):
    """Raised when terminal input is not valid UTF-8."""


class KeyCode(enum.Enum):
    """Which key was pressed."""

    BACKSPACE = enum.auto()
    BACK_TAB = enum.auto()
    BRACKETED_PASTE_START = enum.auto()
    BRACKETED_PASTE_END = enum.auto()
    CHAR = enum.auto()
    DELETE = enum.auto()
    DOWN = enum.auto()
    END = enum.auto()
    ENTER = enum.auto()
    ESC = enum.auto()
    F = enum.auto()
    HOME = enum.auto()
    INSERT = enum.auto()
    LEFT = enum.auto()
    NULL = enum.auto()
    PAGE_DOWN = enum.auto()
    PAGE_UP = enum.auto()
    RIGHT = enum.auto()
    TAB = enum.auto()
    UNKNOWN_ESC_SEQ = enum.auto()
    UP = enum.auto()


class Modifiers(enum.Flag):
    """Modifier keys held together with a key."""

    NONE = 0
    SHIFT = enum.auto()
    ALT = enum.auto()
    CTRL = enum.auto()
    ALT_SHIFT = ALT | SHIFT
    CTRL_SHIFT = CTRL | SHIFT
    CTRL_ALT = CTRL | ALT
    CTRL_ALT_SHIFT = CTRL | ALT | SHIFT


@dataclass(frozen=True)
class KeyEvent:
    """A key with its modifiers.

    `arg` carries the character for `KeyCode.CHAR` and the number for
    `KeyCode.F`; it is None for every other key.
    """

    code: KeyCode
    mods: Modifiers = Modifiers.NONE
    arg: Union[str, int, None] = None

    ESC: ClassVar[KeyEvent]
    ENTER: ClassVar[KeyEvent]
    BACKSPACE: ClassVar[KeyEvent]

    @classmethod
    def of_char(cls, c: str, mods: Modifiers = Modifiers.NONE) -> KeyEvent:
        """Build the key event produced by character `c` with `mods`."""
        if unicodedata.category(c) != "Cc":
            if mods:
                mods &= ~Modifiers.SHIFT
            return cls(KeyCode.CHAR, mods, c)
        code = ord(c)
        if c == "\x00":
            return cls(KeyCode.CHAR, mods | Modifiers.CTRL, " ")
        if c in ("\x08", "\x7f"):
            return cls(KeyCode.BACKSPACE, mods)
        if c == "\t":
            if Modifiers.SHIFT in mods:
                return cls(KeyCode.BACK_TAB, mods & ~Modifiers.SHIFT)
            return cls(KeyCode.TAB, mods)
        if c == "\r":
            return cls(KeyCode.ENTER, mods)
        if c == "\x1b":
            return cls(KeyCode.ESC, mods)
        if 0x01 <= code <= 0x1F:
            return cls(KeyCode.CHAR, mods | Modifiers.CTRL, chr(0x40 + code))
        if c == "\x9b":
            return cls(KeyCode.ESC, mods | Modifiers.SHIFT)
        return cls(KeyCode.NULL, mods)

    @classmethod
    def ctrl(cls, c: str) -> KeyEvent:
        return cls.of_char(c, Modifiers.CTRL)

    @classmethod
    def alt(cls, c: str) -> KeyEvent:
        return cls.of_char(c, Modifiers.ALT)


KeyEvent.ESC = KeyEvent(KeyCode.ESC)
KeyEvent.ENTER = KeyEvent(KeyCode.ENTER)
KeyEvent.BACKSPACE = KeyEvent(KeyCode.BACKSPACE)

_UNKNOWN = KeyEvent(KeyCode.UNKNOWN_ESC_SEQ)

_DIGITS = "0123456789"

# final letters of cursor-key sequences
_CURSOR = {
    "A": KeyCode.UP,
    "B": KeyCode.DOWN,
    "C": KeyCode.RIGHT,
    "D": KeyCode.LEFT,
    "F": KeyCode.END,
    "H": KeyCode.HOME,
}
_ARROWS = {k: v for k, v in _CURSOR.items() if k in "ABCD"}

# xterm modifier parameter
_MODIFIER_PARAM = {
    "2": Modifiers.SHIFT,
    "3": Modifiers.ALT,
    "4": Modifiers.ALT_SHIFT,
    "5": Modifiers.CTRL,
    "6": Modifiers.CTRL_SHIFT,
    "7": Modifiers.CTRL_ALT,
    "8": Modifiers.CTRL_ALT_SHIFT,
}

# keypad digits sent as letters p..y
_KEYPAD_DIGITS = {chr(ord("p") + i): str(i) for i in range(10)}
_KEYPAD_MODS = {"5", "6", "7", "8"}

_TILDE_KEYS = {
    "1": KeyCode.HOME,
    "7": KeyCode.HOME,
    "2": KeyCode.INSERT,
    "3": KeyCode.DELETE,
    "4": KeyCode.END,
    "8": KeyCode.END,
    "5": KeyCode.PAGE_UP,
    "6": KeyCode.PAGE_DOWN,
}

_TILDE_MOD_KEYS = {
    "2": KeyCode.INSERT,
    "3": KeyCode.DELETE,
    "5": KeyCode.PAGE_UP,
    "6": KeyCode.PAGE_DOWN,
}

_FUNCTION_KEYS = {
    "11": 1,
    "12": 2,
    "13": 3,
    "14": 4,
    "15": 5,
    "17": 6,
    "18": 7,
    "19": 8,
    "20": 9,
    "21": 10,
    "23": 11,
    "24": 12,
}

_CTRL_FUNCTION_KEYS = {
    code: number for code, number in _FUNCTION_KEYS.items() if number >= 5
}

_LINUX_CONSOLE = {"A": 1, "B": 2, "C": 3, "D": 4, "E": 5}

_ANSI = {
    "A": KeyEvent(KeyCode.UP),
    "B": KeyEvent(KeyCode.DOWN),
    "C": KeyEvent(KeyCode.RIGHT),
    "D": KeyEvent(KeyCode.LEFT),
    "F": KeyEvent(KeyCode.END),
    "H": KeyEvent(KeyCode.HOME),
    "Z": KeyEvent(KeyCode.BACK_TAB),
    "a": KeyEvent(KeyCode.UP, Modifiers.SHIFT),
    "b": KeyEvent(KeyCode.DOWN, Modifiers.SHIFT),
    "c": KeyEvent(KeyCode.RIGHT, Modifiers.SHIFT),
    "d": KeyEvent(KeyCode.LEFT, Modifiers.SHIFT),
}

_SS3 = {
    "A": KeyEvent(KeyCode.UP),
    "B": KeyEvent(KeyCode.DOWN),
    "C": KeyEvent(KeyCode.RIGHT),
    "D": KeyEvent(KeyCode.LEFT),
    "F": KeyEvent(KeyCode.END),
    "H": KeyEvent(KeyCode.HOME),
    "M": KeyEvent(KeyCode.ENTER),
    "P": KeyEvent(KeyCode.F, Modifiers.NONE, 1),
    "Q": KeyEvent(KeyCode.F, Modifiers.NONE, 2),
    "R": KeyEvent(KeyCode.F, Modifiers.NONE, 3),
    "S": KeyEvent(KeyCode.F, Modifiers.NONE, 4),
    "a": KeyEvent(KeyCode.UP, Modifiers.CTRL),
    "b": KeyEvent(KeyCode.DOWN, Modifiers.CTRL),
    "c": KeyEvent(KeyCode.RIGHT, Modifiers.CTRL),
    "d": KeyEvent(KeyCode.LEFT, Modifiers.CTRL),
    "l": KeyEvent(KeyCode.F, Modifiers.NONE, 8),
    "t": KeyEvent(KeyCode.F, Modifiers.NONE, 5),
    "u": KeyEvent(KeyCode.F, Modifiers.NONE, 6),
    "v": KeyEvent(KeyCode.F, Modifiers.NONE, 7),
    "w": KeyEvent(KeyCode.F, Modifiers.NONE, 9),
    "x": KeyEvent(KeyCode.F, Modifiers.NONE, 10),
}

# rxvt: key digit followed by a modifier marker
_RXVT_SHIFT = "$"
_RXVT_CTRL = "\x1e"
_RXVT_CTRL_SHIFT = "@"
_RXVT = {
    ("3", _RXVT_CTRL): KeyEvent(KeyCode.DELETE, Modifiers.CTRL),
    ("3", _RXVT_CTRL_SHIFT): KeyEvent(KeyCode.DELETE, Modifiers.CTRL_SHIFT),
    **{("5", k): KeyEvent(code, Modifiers.CTRL) for k, code in _ARROWS.items()},
}
for _digit, _code in (
    ("5", KeyCode.PAGE_UP),
    ("6", KeyCode.PAGE_DOWN),
    ("7", KeyCode.HOME),
    ("8", KeyCode.END),
):
    _RXVT[(_digit, _RXVT_CTRL)] = KeyEvent(_code, Modifiers.CTRL)
    _RXVT[(_digit, _RXVT_SHIFT)] = KeyEvent(_code, Modifiers.SHIFT)
    _RXVT[(_digit, _RXVT_CTRL_SHIFT)] = KeyEvent(_code, Modifiers.CTRL_SHIFT)


def _is_digit(c: str) -> bool:
    return len(c) == 1 and c in _DIGITS


def _unknown(sequence: str) -> KeyEvent:
    log.debug("unsupported esc sequence: %r", sequence)
    return _UNKNOWN


class EscapeDecoder:
    """Turns characters read from a terminal into key events.

    `next_char` returns the next input character (raising at end of input);
    `poll(timeout_ms)` returns how many bytes are ready within the timeout.
    A negative `timeout_ms` waits indefinitely for the rest of a sequence.
    """

    def __init__(
        self,
        next_char: Callable[[], str],
        poll: Callable[[int], int],
        timeout_ms: int = -1,
    ) -> None:
        self._next_char = next_char
        self._poll = poll
        self.timeout_ms = timeout_ms

    def next_key(self, single_esc_abort: bool = False) -> KeyEvent:
        """Read one key, decoding an escape sequence if one follows ESC."""
        c = self._next_char()
        key = KeyEvent.of_char(c)
        if key == KeyEvent.ESC:
            timeout = 0 if single_esc_abort and self.timeout_ms == -1 else self.timeout_ms
            if self._poll(timeout) != 0:
                key = self.escape_sequence()
        log.debug("c: %r => key: %r", c, key)
        return key

    def escape_sequence(self) -> KeyEvent:
        """Decode the sequence that follows an ESC already read."""
        return self._escape(allow_recurse=True)

    def read_pasted_text(self) -> str:
        """Read bracketed-paste text up to its end marker."""
        chunks: list[str] = []
        while True:
            c = self._next_char()
            if c == "\x1b":
                if self.escape_sequence().code is KeyCode.BRACKETED_PASTE_END:
                    break
                continue
            chunks.append(c)
        return "".join(chunks).replace("\r\n", "\n").replace("\r", "\n")

    def _escape(self, allow_recurse: bool) -> KeyEvent:
        seq1 = self._next_char()
        if seq1 == "[":
            return self._csi()
        if seq1 == "O":
            return self._ss3()
        if seq1 == "\x1b":
            # ESC ESC <seq> adds ALT to <seq>; a lone ESC ESC is the escape key
            if not allow_recurse:
                return KeyEvent.ESC
            timeout = 100 if self.timeout_ms < 0 else self.timeout_ms
            try:
                ready = self._poll(timeout)
            except OSError:
                return KeyEvent.ESC
            if ready == 0:
                return KeyEvent.ESC
            key = self._escape(allow_recurse=False)
            return KeyEvent(key.code, key.mods | Modifiers.ALT, key.arg)
        return KeyEvent.alt(seq1)

    def _csi(self) -> KeyEvent:
        seq2 = self._next_char()
        if _is_digit(seq2):
            if seq2 in "09":
                return _unknown("\\E[" + seq2)
            return self._extended(seq2)
        if seq2 == "[":
            seq3 = self._next_char()
            number = _LINUX_CONSOLE.get(seq3)
            if number is None:
                return _unknown("\\E[[" + seq3)
            return KeyEvent(KeyCode.F, Modifiers.NONE, number)
        return _ANSI.get(seq2) or _unknown("\\E[" + seq2)

    def _extended(self, seq2: str) -> KeyEvent:
        seq3 = self._next_char()
        if seq3 == "~":
            code = _TILDE_KEYS.get(seq2)
            return KeyEvent(code) if code else _unknown(f"\\E[{seq2}~")
        if _is_digit(seq3):
            return self._two_digits(seq2, seq3)
        if seq3 == ";":
            return self._modified(seq2)
        return _RXVT.get((seq2, seq3)) or _unknown(f"\\E[{seq2}{seq3}")

    def _two_digits(self, seq2: str, seq3: str) -> KeyEvent:
        seq4 = self._next_char()
        if seq4 == "~":
            number = _FUNCTION_KEYS.get(seq2 + seq3)
            if number is None:
                return _unknown(f"\\E[{seq2}{seq3}~")
            return KeyEvent(KeyCode.F, Modifiers.NONE, number)
        if seq4 == ";":
            seq5 = self._next_char()
            if not _is_digit(seq5):
                return _unknown(f"\\E[{seq2}{seq3};{seq5}")
            seq6 = self._next_char()
            if _is_digit(seq6):
                self._next_char()  # 'R' expected
                return _UNKNOWN
            if seq6 == "R":
                return _UNKNOWN
            if seq6 == "~":
                number = _CTRL_FUNCTION_KEYS.get(seq2 + seq3)
                if number is None or seq5 != "5":
                    return _unknown(f"\\E[{seq2}{seq3};{seq5}~")
                return KeyEvent(KeyCode.F, Modifiers.CTRL, number)
            return _unknown(f"\\E[{seq2}{seq3};{seq5}{seq6}")
        if _is_digit(seq4):
            seq5 = self._next_char()
            if seq5 != "~":
                return _unknown(f"\\E[{seq2}{seq3}{seq4}{seq5}")
            number = seq2 + seq3 + seq4
            if number == "200":
                return KeyEvent(KeyCode.BRACKETED_PASTE_START)
            if number == "201":
                return KeyEvent(KeyCode.BRACKETED_PASTE_END)
            return _unknown(f"\\E[{number}~")
        return _unknown(f"\\E[{seq2}{seq3}{seq4}")

    def _modified(self, seq2: str) -> KeyEvent:
        seq4 = self._next_char()
        if not _is_digit(seq4):
            return _unknown(f"\\E[{seq2};{seq4}")
        seq5 = self._next_char()
        if _is_digit(seq5):
            self._next_char()  # 'R' expected
            return _UNKNOWN
        if seq2 == "1":
            return self._modified_cursor(seq4, seq5)
        if seq5 == "~":
            code = _TILDE_MOD_KEYS.get(seq2)
            mods = _MODIFIER_PARAM.get(seq4)
            if code is None or mods is None:
                return _unknown(f"\\E[{seq2};{seq4}~")
            return KeyEvent(code, mods)
        return _unknown(f"\\E[{seq2};{seq4}{seq5}")

    @staticmethod
    def _modified_cursor(param: str, final: str) -> KeyEvent:
        mods = _MODIFIER_PARAM.get(param)
        if mods is not None:
            if final in _CURSOR:
                return KeyEvent(_CURSOR[final], mods)
            if param == "5" and final in "PQS":
                return KeyEvent(KeyCode.F, mods, {"P": 1, "Q": 2, "S": 4}[final])
            if param in _KEYPAD_MODS and final in _KEYPAD_DIGITS:
                return KeyEvent(KeyCode.CHAR, mods, _KEYPAD_DIGITS[final])
        elif param == "9" and final in _ARROWS:
            # Meta + arrow with some terminal defaults
            return KeyEvent(_ARROWS[final], Modifiers.ALT)
        return _unknown(f"\\E[1;{param}{final}")

    def _ss3(self) -> KeyEvent:
        seq2 = self._next_char()
        return _SS3.get(seq2) or _unknown("\\EO" + seq2)