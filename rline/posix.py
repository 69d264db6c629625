"""POSIX terminal: raw mode, keyboard input and terminal capabilities."""

from __future__ import annotations

import codecs
import enum
import errno
import logging
import os
import select
import signal
import termios
import threading
from dataclasses import dataclass
from typing import Any, Protocol

from .escapes import EscapeDecoder, KeyEvent, Utf8Error
from .render import (
    SIGWINCH,
    BellStyle,
    OutputStream,
    PosixRenderer,
    write_and_flush,
)

log = logging.getLogger(__name__)

STDIN_FILENO = 0

# Terminals that cannot be driven in raw mode
_UNSUPPORTED_TERMS = ("dumb", "cons25", "emacs")

BRACKETED_PASTE_ON = b"\x1b[?2004h"
BRACKETED_PASTE_OFF = b"\x1b[?2004l"

# Commands bound by the terminal's own special characters
_END_OF_FILE = "EndOfFile"
_INTERRUPT = "Interrupt"
_SUSPEND = "Suspend"

_U32_MAX = 2**32 - 1

_sigwinch_lock = threading.Lock()
_sigwinch_installed = False


class ColorMode(enum.Enum):
    """Whether colors are used."""

    ENABLED = "enabled"
    FORCED = "forced"
    DISABLED = "disabled"


class _CharReader(Protocol):
    def next_char(self) -> str:
        ...


def is_unsupported_term() -> bool:
    """True when the TERM environment variable names a terminal without raw mode."""
    term = os.environ.get("TERM")
    if term is None:
        return False
    return term.lower() in _UNSUPPORTED_TERMS


def suspend() -> None:
    """Suspend the whole process group."""
    os.kill(0, signal.SIGTSTP)


def read_digits_until(reader: _CharReader, sep: str) -> int | None:
    """Read decimal digits up to `sep`; None if anything else comes first."""
    num = 0
    while True:
        c = reader.next_char()
        if len(c) == 1 and c in "0123456789":
            num = min(num * 10 + int(c), _U32_MAX)
        elif c == sep:
            return num
        else:
            return None


def _sigwinch_handler(signum: int, frame: Any) -> None:
    SIGWINCH.set()
    log.debug("SIGWINCH")


def _install_sigwinch_handler() -> None:
    global _sigwinch_installed
    with _sigwinch_lock:
        if _sigwinch_installed:
            return
        _sigwinch_installed = True
        try:
            signal.signal(signal.SIGWINCH, _sigwinch_handler)
        except (ValueError, OSError) as exc:
            log.debug("cannot install SIGWINCH handler: %s", exc)


def _control_char(value: bytes | int) -> str:
    if isinstance(value, (bytes, bytearray)):
        return chr(value[0])
    return chr(value)


def _control_key_map(cc: list[Any]) -> dict[KeyEvent, str]:
    """Map the terminal's EOF, interrupt, quit and suspend characters to commands."""
    key_map: dict[KeyEvent, str] = {}
    for index, name, cmd in (
        (termios.VEOF, "VEOF", _END_OF_FILE),
        (termios.VINTR, "VINTR", _INTERRUPT),
        (termios.VQUIT, "VQUIT", _INTERRUPT),
        (termios.VSUSP, "VSUSP", _SUSPEND),
    ):
        key = KeyEvent.of_char(_control_char(cc[index]))
        log.debug("%s: %r", name, key)
        key_map[key] = cmd
    return key_map


@dataclass
class PosixMode:
    """The terminal settings to restore when leaving raw mode."""

    termios: list[Any]
    out: OutputStream | None = None
    fd: int = STDIN_FILENO

    def disable_raw_mode(self) -> None:
        """Restore the original terminal settings and turn bracketed paste off."""
        termios.tcsetattr(self.fd, termios.TCSADRAIN, self.termios)
        if self.out is not None:
            write_and_flush(self.out, BRACKETED_PASTE_OFF)

    def __enter__(self) -> PosixMode:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disable_raw_mode()


class PosixRawReader:
    """Reads keys from a terminal file descriptor."""

    def __init__(
        self,
        timeout_ms: int = -1,
        key_map: dict[KeyEvent, Any] | None = None,
        fd: int = STDIN_FILENO,
    ) -> None:
        self._fd = fd
        self._buffer = b""
        self._offset = 0
        self._utf8 = codecs.getincrementaldecoder("utf-8")("strict")
        self.key_map = dict(key_map or {})
        self.timeout_ms = timeout_ms
        self._decoder = EscapeDecoder(self.next_char, self.poll, timeout_ms)

    def _buffered(self) -> int:
        return len(self._buffer) - self._offset

    def _read_byte(self) -> bytes:
        if not self._buffered():
            data = os.read(self._fd, 1024)
            if not data:
                raise EOFError("end of input")
            self._buffer = data
            self._offset = 0
        byte = self._buffer[self._offset : self._offset + 1]
        self._offset += 1
        return byte

    def next_key(self, single_esc_abort: bool = False) -> KeyEvent:
        """Block until a key is pressed and return it."""
        return self._decoder.next_key(single_esc_abort)

    def next_char(self) -> str:
        """Read one character; raise EOFError at end of input, Utf8Error on bad bytes."""
        while True:
            byte = self._read_byte()
            try:
                text = self._utf8.decode(byte)
            except UnicodeDecodeError as exc:
                self._utf8.reset()
                raise Utf8Error("invalid UTF-8 input") from exc
            if text:
                return text

    def read_pasted_text(self) -> str:
        """Read bracketed-paste text up to its end marker."""
        return self._decoder.read_pasted_text()

    def find_binding(self, key: KeyEvent) -> Any:
        """Command bound to `key` by the terminal itself, if any."""
        cmd = self.key_map.get(key)
        if cmd is not None:
            log.debug("terminal key binding: %r => %r", key, cmd)
        return cmd

    def poll(self, timeout_ms: int) -> int:
        """Number of bytes (or ready descriptors) available within `timeout_ms`."""
        buffered = self._buffered()
        if buffered > 0:
            return buffered
        timeout = None if timeout_ms < 0 else timeout_ms / 1000
        ready, _, _ = select.select([self._fd], [], [], timeout)
        return len(ready)


class PosixTerminal:
    """A POSIX terminal on standard input and one standard output stream."""

    def __init__(
        self,
        color_mode: ColorMode = ColorMode.ENABLED,
        stream: OutputStream = OutputStream.STDOUT,
        tab_stop: int = 8,
        bell_style: BellStyle = BellStyle.AUDIBLE,
        enable_bracketed_paste: bool = True,
        stdin_fd: int = STDIN_FILENO,
    ) -> None:
        self._stdin_fd = stdin_fd
        self.unsupported = is_unsupported_term()
        self.stdin_isatty = os.isatty(stdin_fd)
        self.stdstream_isatty = os.isatty(stream.value)
        self.color_mode = color_mode
        self.stream = stream
        self.tab_stop = tab_stop
        self.bell_style = bell_style
        self.enable_bracketed_paste = enable_bracketed_paste
        if not self.unsupported and self.stdin_isatty and self.stdstream_isatty:
            _install_sigwinch_handler()

    def is_unsupported(self) -> bool:
        """True when the terminal cannot offer rich line editing."""
        return self.unsupported

    def is_stdin_tty(self) -> bool:
        return self.stdin_isatty

    def is_output_tty(self) -> bool:
        return self.stdstream_isatty

    def colors_enabled(self) -> bool:
        if self.color_mode is ColorMode.ENABLED:
            return self.stdstream_isatty
        return self.color_mode is ColorMode.FORCED

    def enable_raw_mode(self) -> tuple[PosixMode, dict[KeyEvent, str]]:
        """Switch the terminal to raw mode; return the mode to restore and key bindings."""
        if not self.stdin_isatty:
            raise OSError(errno.ENOTTY, os.strerror(errno.ENOTTY))
        original = termios.tcgetattr(self._stdin_fd)
        iflag, oflag, cflag, lflag, ispeed, ospeed, cc = original
        original = original[:6] + [list(cc)]
        # no BREAK interrupt, CR to NL, parity check, high-bit strip or flow control
        iflag &= ~(
            termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON
        )
        cflag |= termios.CS8
        # no echo, canonical mode, extended processing or signals
        lflag &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
        cc = list(cc)
        cc[termios.VMIN] = 1
        cc[termios.VTIME] = 0

        key_map = _control_key_map(cc)
        termios.tcsetattr(
            self._stdin_fd,
            termios.TCSADRAIN,
            [iflag, oflag, cflag, lflag, ispeed, ospeed, cc],
        )

        out: OutputStream | None = None
        if self.enable_bracketed_paste:
            try:
                write_and_flush(self.stream, BRACKETED_PASTE_ON)
            except OSError as exc:
                log.debug("Cannot enable bracketed paste: %s", exc)
            else:
                out = self.stream
        return PosixMode(original, out, self._stdin_fd), key_map

    def create_reader(
        self, timeout_ms: int = -1, key_map: dict[KeyEvent, Any] | None = None
    ) -> PosixRawReader:
        return PosixRawReader(timeout_ms, key_map, self._stdin_fd)

    def create_writer(self) -> PosixRenderer:
        return PosixRenderer(
            self.stream, self.tab_stop, self.colors_enabled(), self.bell_style
        )