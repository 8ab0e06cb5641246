from __future__ import annotations

from pathlib import Path

import pytest

from pdf2note.editor import MarkdownNote, Position, ScrollOffset
from pdf2note.errors import StorageError


def test_cursor_defaults_to_end_of_text() -> None:
    note = MarkdownNote("first\nsecond")
    assert note.cursor() == Position(1, 6)


def test_offsets_and_positions_round_trip() -> None:
    note = MarkdownNote("ab\ncde\n\nf")
    for offset in range(len(note.text) + 1):
        assert note.pos_to_offset(note.offset_to_pos(offset)) == offset
    assert note.offset_to_pos(3) == Position(1, 0)
    assert note.pos_to_offset(Position(3, 1)) == len(note.text)


def test_positions_are_clipped_to_the_document() -> None:
    note = MarkdownNote("ab\ncd")
    assert note.clip(Position(9, 9)) == Position(1, 2)
    assert note.clip(Position(0, 40)) == Position(0, 2)
    assert note.clip(Position(-1, -1)) == Position(0, 0)


def test_insert_returns_position_after_inserted_text() -> None:
    note = MarkdownNote("hello world", cursor=Position(0, 5))
    end = note.insert_at(note.cursor(), ",\nbig")
    assert note.text == "hello,\nbig world"
    assert end == Position(1, 3)
    # Inserting does not move the cursor by itself.
    assert note.cursor() == Position(0, 5)


def test_scroll_offset_is_stored() -> None:
    note = MarkdownNote()
    note.set_scroll_offset(ScrollOffset(0, 120.5))
    assert note.scroll_offset() == ScrollOffset(0, 120.5)


def test_load_and_save(tmp_path: Path) -> None:
    path = tmp_path / "notes" / "new.md"
    note = MarkdownNote.load(path)
    assert note.text == ""
    note.insert_at(note.cursor(), "text\n")
    note.save()
    assert path.read_text(encoding="utf-8") == "text\n"

    reloaded = MarkdownNote.load(path, cursor=Position(0, 2))
    assert reloaded.cursor() == Position(0, 2)


def test_unreadable_note_is_a_storage_error(tmp_path: Path) -> None:
    latin1 = tmp_path / "latin1.md"
    latin1.write_bytes("café".encode("latin-1"))
    with pytest.raises(StorageError):
        MarkdownNote.load(latin1)
    with pytest.raises(StorageError):
        MarkdownNote.load(tmp_path)
