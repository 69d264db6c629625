import pytest

from rline.dummy import DummyTerminal, KeyListReader, Sink
from rline.escapes import KeyCode, KeyEvent
from rline.layout import Position


def test_reader_returns_keys_in_order_then_eof():
    keys = [KeyEvent.of_char("a"), KeyEvent.ENTER]
    reader = KeyListReader(keys)
    assert reader.next_key() == keys[0]
    assert reader.next_key(True) == KeyEvent.ENTER
    with pytest.raises(EOFError):
        reader.next_key()


def test_next_char_plain_character():
    reader = KeyListReader([KeyEvent.of_char("\t" if False else "z")])
    assert reader.next_char() == "z"
    with pytest.raises(EOFError):
        reader.next_char()


def test_next_char_rejects_non_character_key():
    reader = KeyListReader([KeyEvent.ENTER])
    with pytest.raises(ValueError):
        reader.next_char()


def test_next_char_rejects_modified_character():
    reader = KeyListReader([KeyEvent.ctrl("A")])
    with pytest.raises(ValueError):
        reader.next_char()


def test_find_binding_is_none():
    reader = KeyListReader([])
    assert reader.find_binding(KeyEvent.ENTER) is None


def test_sink_measures_by_length():
    sink = Sink()
    pos = sink.calculate_position(">>", Position(col=1, row=3))
    assert pos == Position(col=1 + len(">>"), row=3)


def test_sink_terminal_size():
    sink = Sink()
    assert sink.get_columns() == 80
    assert sink.get_rows() == 24
    assert sink.colors_enabled() is False
    assert sink.sigwinch() is False


def test_sink_compute_layout():
    sink = Sink()
    prompt = sink.calculate_position(">> ", Position())
    layout = sink.compute_layout(prompt, True, "Hi", 1)
    assert layout.cursor == sink.calculate_position("H", prompt)
    assert layout.end == sink.calculate_position("i", layout.cursor)


def test_terminal_checks():
    term = DummyTerminal()
    assert term.is_unsupported() is False
    assert term.is_stdin_tty() is True
    assert term.is_output_tty() is False
    assert term.cursor == 0


def test_terminal_reader_copies_keys():
    term = DummyTerminal(keys=[KeyEvent.of_char("a")])
    reader = term.create_reader()
    term.keys.append(KeyEvent.ENTER)
    assert reader.next_key().code is KeyCode.CHAR
    with pytest.raises(EOFError):
        reader.next_key()
    again = term.create_reader()
    assert [again.next_key(), again.next_key()] == term.keys


def test_terminal_raw_mode_and_writer():
    term = DummyTerminal()
    mode, key_map = term.enable_raw_mode()
    assert key_map is None
    assert mode.disable_raw_mode() is None
    assert term.create_writer().get_columns() == 80