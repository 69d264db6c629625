# rline

Building blocks for an interactive line editor on POSIX terminals: undo
history, input validation, decoding of keyboard escape sequences, screen
layout and rendering, and raw-mode terminal handling.

## Modules

- `rline.undo`: `Changeset` records insertions (`insert`, `insert_str`),
  deletions (`delete`) and replacements (`replace`) made to a line. It merges
  consecutive single-character edits. `begin()` / `end()` group changes, and
  `end()` reports whether anything changed inside the group. `undo(line, n)`
  and `redo(line)` apply the recorded changes to any object that offers the
  `EditableLine` methods (`insert_str`, `delete_range`, `replace`, `set_pos`).
  `truncate(length)` drops changes beyond a mark returned by `begin()`, and
  `last_insert()` returns the most recently inserted text, or `None`.
- `rline.validate`: `ValidationResult` (built with `incomplete()`,
  `invalid(message)` or `valid(message)`), `ValidationContext`, the
  `Validator` base class and `MatchingBracketValidator`.
  `validate_brackets(text)` reports unpaired or mismatched `()`, `[]` and `{}`.
  It calls input with unclosed brackets incomplete.
- `rline.escapes`: `KeyEvent`, `KeyCode`, `Modifiers`, `Utf8Error` and
  `EscapeDecoder`. The decoder reads characters through a `next_char` callable
  and a `poll(timeout_ms)` callable and turns them into key events. It
  understands xterm, rxvt, tmux and Linux-console sequences and bracketed
  paste (`read_pasted_text`).
- `rline.layout`: `Position`, `Layout`, `WidthCounter`, `graphemes(text)` and
  the `Renderer` base class. `compute_layout` works out where the cursor and
  the end of the input fall on screen.
- `rline.render`: `PosixRenderer` draws the prompt, line and hint on stdout or
  stderr with ANSI escape sequences. It wraps lines at the terminal width,
  expands tabs, never splits wide characters and gives escape sequences no
  width. The module also has `OutputStream`, `BellStyle`, `get_win_size` and
  `write_and_flush`.
- `rline.posix`: `PosixTerminal` checks whether stdin and the output stream are
  terminals and whether `TERM` names an unsupported terminal (`dumb`, `cons25`,
  `emacs`).
  - `enable_raw_mode()` switches the terminal to raw mode and turns on
    bracketed paste. It returns a `PosixMode` together with a map from the
    terminal's EOF, interrupt, quit and suspend keys to the command names
    `"EndOfFile"`, `"Interrupt"` and `"Suspend"`.
  - `PosixMode` restores the terminal, either through `disable_raw_mode()` or
    when used as a context manager.
  - `PosixRawReader` reads keys from the terminal. It raises `EOFError` at the
    end of input and `Utf8Error` on bytes that are not valid UTF-8.
- `rline.dummy`: `DummyTerminal`, `KeyListReader` and `Sink` replay a fixed
  list of key events without a real terminal. `Sink` draws nothing and counts
  one column per character. Use them in tests.

## Installation

```
pip install .
```

Install with `pip install .[test]` to get the test dependencies.

## Examples

Undo an edit:

```python
from rline.undo import Changeset

changes = Changeset()
changes.begin()
changes.insert_str(0, "Bye")
changes.end()
print(changes.last_insert())  # Bye
```

Check bracket balance:

```python
from rline.validate import validate_brackets

result = validate_brackets("(a + b]")
print(result.is_valid(), result.message)
# False Mismatched brackets: '(' is not properly closed
```

Decode an escape sequence:

```python
from rline.escapes import EscapeDecoder

chars = iter("\x1b[A")
decoder = EscapeDecoder(lambda: next(chars), lambda timeout_ms: 1)
print(decoder.next_key().code)  # KeyCode.UP
```

Lay out a line that wraps on an 80-column terminal:

```python
from rline.layout import Position
from rline.render import PosixRenderer

renderer = PosixRenderer(tab_stop=4, cols=80)
prompt_size = renderer.calculate_position("> ", Position())
layout = renderer.compute_layout(prompt_size, True, "a" * 79, 79)
print(layout.cursor)  # Position(col=1, row=1)
```

## What it does not do

rline has no complete line editor. It has no `readline`-style loop, no key
bindings for Emacs or vi, no history, no completion and no highlighting. A
renderer takes an optional highlighter object but the package does not
supply one. The terminal modules use `termios` and work only on POSIX
systems.

## Running the tests

```
pytest
```