import pytest

from rline.undo import Changeset


class Line:
    def __init__(self, text=""):
        self.text = text
        self.pos = len(text)

    def insert_str(self, idx, text):
        self.text = self.text[:idx] + text + self.text[idx:]
        self.pos = idx + len(text)

    def delete_range(self, start, end):
        self.text = self.text[:start] + self.text[end:]
        self.pos = start

    def replace(self, start, end, text):
        self.text = self.text[:start] + text + self.text[end:]
        self.pos = start + len(text)

    def set_pos(self, pos):
        self.pos = pos


def test_insert_chars():
    cs = Changeset()
    cs.insert(0, "H")
    cs.insert(1, "i")
    assert len(cs.undos) == 1
    assert len(cs.redos) == 0
    cs.insert(0, " ")
    assert len(cs.undos) == 2


def test_insert_strings():
    cs = Changeset()
    cs.insert_str(0, "Hello")
    cs.insert_str(5, ", ")
    assert len(cs.undos) == 2
    assert len(cs.redos) == 0


def test_undo_insert():
    buf = Line("Hello, world!")
    cs = Changeset()
    cs.insert_str(5, ", world!")

    cs.undo(buf, 1)
    assert len(cs.undos) == 0
    assert len(cs.redos) == 1
    assert buf.text == "Hello"

    cs.redo(buf)
    assert len(cs.undos) == 1
    assert len(cs.redos) == 0
    assert buf.text == "Hello, world!"


def test_undo_delete():
    buf = Line("Hello")
    cs = Changeset()
    cs.delete(5, ", world!")

    cs.undo(buf, 1)
    assert buf.text == "Hello, world!"
    assert buf.pos == 13

    cs.redo(buf)
    assert buf.text == "Hello"


def test_delete_chars():
    buf = Line("Hlo")
    cs = Changeset()
    cs.delete(1, "e")
    cs.delete(1, "l")
    assert len(cs.undos) == 1

    cs.undo(buf, 1)
    assert buf.text == "Hello"


def test_backspace_chars():
    buf = Line("Hlo")
    cs = Changeset()
    cs.delete(2, "l")
    cs.delete(1, "e")
    assert len(cs.undos) == 1

    cs.undo(buf, 1)
    assert buf.text == "Hello"


def test_undo_replace():
    buf = Line("Hello, world!")
    cs = Changeset()
    buf.replace(1, 5, "i")
    assert buf.text == "Hi, world!"
    cs.replace(1, "ello", "i")

    cs.undo(buf, 1)
    assert buf.text == "Hello, world!"

    cs.redo(buf)
    assert buf.text == "Hi, world!"


def test_last_insert():
    cs = Changeset()
    cs.begin()
    cs.delete(0, "Hello")
    cs.insert_str(0, "Bye")
    cs.end()
    assert cs.last_insert() == "Bye"


def test_last_insert_after_delete_is_none():
    cs = Changeset()
    cs.insert_str(0, "Bye")
    cs.delete(0, "B")
    assert cs.last_insert() is None


def test_end():
    cs = Changeset()
    cs.begin()
    assert not cs.end()
    cs.begin()
    cs.insert_str(0, "Hi")
    assert cs.end()


def test_non_alnum_delete_not_merged():
    cs = Changeset()
    cs.delete(1, ",")
    cs.delete(1, ",")
    assert len(cs.undos) == 2


def test_empty_strings_ignored():
    cs = Changeset()
    cs.insert_str(0, "")
    cs.delete(0, "")
    assert cs.undos == []


def test_group_undone_at_once():
    buf = Line("")
    cs = Changeset()
    cs.begin()
    buf.insert_str(0, "Hello")
    cs.insert_str(0, "Hello")
    buf.insert_str(5, " world")
    cs.insert_str(5, " world")
    cs.end()
    assert buf.text == "Hello world"
    assert cs.undo(buf, 1)
    assert buf.text == ""
    assert cs.redo(buf)
    assert buf.text == "Hello world"


def test_undo_on_empty_returns_false():
    buf = Line("abc")
    cs = Changeset()
    assert not cs.undo(buf, 1)
    assert buf.text == "abc"


@pytest.mark.parametrize("n, expected", [(1, "ab"), (2, "a"), (5, "")])
def test_undo_count(n, expected):
    buf = Line("abc")
    cs = Changeset()
    cs.insert_str(0, "a")
    cs.insert_str(1, "b")
    cs.insert_str(2, "c")
    cs.undo(buf, n)
    assert buf.text == expected


def test_truncate_and_new_change_clears_redo():
    buf = Line("ab")
    cs = Changeset()
    cs.insert_str(0, "a")
    cs.insert_str(1, "b")
    cs.truncate(1)
    assert len(cs.undos) == 1
    cs.undo(buf, 1)
    assert buf.text == "b"
    cs.insert_str(0, "x")
    assert cs.redos == []