import pytest

from rline.layout import Layout, Position, Renderer, WidthCounter, graphemes


class ColumnRenderer(Renderer):
    def calculate_position(self, s, orig):
        return Position(col=orig.col + len(s), row=orig.row)


def total_width(text):
    counter = WidthCounter()
    return sum(counter.width(g) for g in graphemes(text))


def test_position_orders_by_row_then_column():
    assert Position(col=50, row=0) < Position(col=0, row=1)
    assert Position(col=1, row=2) > Position(col=0, row=2)
    assert Position(col=3, row=4) == Position(col=3, row=4)
    assert Position() <= Position(col=0, row=0)


def test_layout_defaults():
    layout = Layout()
    assert layout.cursor == Position()
    assert layout.end == layout.prompt_size
    assert layout.default_prompt is False


def test_graphemes_round_trip():
    text = "e\u0301x\u6f22\n"
    parts = list(graphemes(text))
    assert "".join(parts) == text
    assert parts[0] == "e\u0301"
    assert len(parts) == 4


def test_ansi_prompt_width():
    assert total_width("\x1b[1;32m>>\x1b[0m ") == 3


def test_plain_ascii_width_matches_length():
    assert total_width("hello world") == len("hello world")


def test_newline_and_escape_have_no_width():
    counter = WidthCounter()
    assert counter.width("\n") == 0
    assert counter.width("\x1b") == 0


def test_two_character_escape_is_skipped():
    counter = WidthCounter()
    assert counter.width("\x1b") == 0
    assert counter.width("c") == 0
    assert counter.width("a") == 1


def test_unsupported_csi_ends_sequence():
    counter = WidthCounter()
    for g in ("\x1b", "[", "1"):
        assert counter.width(g) == 0
    assert counter.width("m") == 0
    assert counter.width("x") == 1


def test_wide_character():
    assert total_width("\u6f22") == 2


def test_compute_layout_cursor_at_end():
    r = ColumnRenderer()
    prompt = r.calculate_position("> ", Position())
    layout = r.compute_layout(prompt, True, "hello", 5)
    assert layout.cursor == r.calculate_position("hello", prompt)
    assert layout.end == layout.cursor
    assert layout.default_prompt is True
    assert layout.prompt_size == prompt


def test_compute_layout_cursor_in_middle():
    r = ColumnRenderer()
    prompt = r.calculate_position("> ", Position())
    layout = r.compute_layout(prompt, False, "hello", 2)
    assert layout.cursor == r.calculate_position("he", prompt)
    assert layout.end == r.calculate_position("llo", layout.cursor)
    assert layout.prompt_size <= layout.cursor <= layout.end


def test_compute_layout_with_info():
    r = ColumnRenderer()
    without = r.compute_layout(Position(), False, "ab", 2)
    with_info = r.compute_layout(Position(), False, "ab", 2, " hint")
    assert with_info.cursor == without.cursor
    assert with_info.end == r.calculate_position(" hint", without.end)


def test_renderer_requires_calculate_position():
    with pytest.raises(TypeError):
        Renderer()