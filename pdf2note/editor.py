"""Target editing surface: a markdown note held in memory.

Positions are 0-based ``(line, column)`` pairs. Columns and offsets count
characters of the Python string. The scroll offset is carried as state so a
front-end can restore the view after an insertion.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pdf2note.errors import StorageError


@dataclass(frozen=True, slots=True, order=True)
class Position:
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class ScrollOffset:
    x: float = 0.0
    y: float = 0.0


class EditorSurface(Protocol):
    def cursor(self) -> Position: ...

    def set_cursor(self, position: Position) -> None: ...

    def insert_at(self, position: Position, text: str) -> Position: ...

    def scroll_offset(self) -> ScrollOffset: ...

    def set_scroll_offset(self, offset: ScrollOffset) -> None: ...


class MarkdownNote:
    """Editable text buffer, optionally backed by a file on disk."""

    def __init__(
        self,
        text: str = "",
        *,
        path: Path | None = None,
        cursor: Position | None = None,
    ) -> None:
        self._text = text
        self.path = path
        self._cursor = self.clip(cursor) if cursor is not None else self.offset_to_pos(len(text))
        self._scroll = ScrollOffset()

    @classmethod
    def load(cls, path: str | Path, *, cursor: Position | None = None) -> MarkdownNote:
        """Read ``path`` (missing files start empty); the cursor defaults to the end."""
        note_path = Path(path)
        try:
            text = note_path.read_text(encoding="utf-8") if note_path.exists() else ""
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Cannot read note {note_path}: {exc}") from exc
        return cls(text, path=note_path, cursor=cursor)

    @property
    def text(self) -> str:
        return self._text

    def save(self) -> Path:
        if self.path is None:
            raise ValueError("This note has no backing file.")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self._text, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot write note {self.path}: {exc}") from exc
        return self.path

    def _line_starts(self) -> list[int]:
        starts = [0]
        for index, char in enumerate(self._text):
            if char == "\n":
                starts.append(index + 1)
        return starts

    def clip(self, position: Position) -> Position:
        """Clamp ``position`` to an existing line and column."""
        starts = self._line_starts()
        line = min(max(position.line, 0), len(starts) - 1)
        line_end = starts[line + 1] - 1 if line + 1 < len(starts) else len(self._text)
        column = min(max(position.column, 0), line_end - starts[line])
        return Position(line, column)

    def pos_to_offset(self, position: Position) -> int:
        clipped = self.clip(position)
        return self._line_starts()[clipped.line] + clipped.column

    def offset_to_pos(self, offset: int) -> Position:
        offset = min(max(offset, 0), len(self._text))
        line = self._text.count("\n", 0, offset)
        line_start = self._text.rfind("\n", 0, offset) + 1
        return Position(line, offset - line_start)

    def cursor(self) -> Position:
        return self._cursor

    def set_cursor(self, position: Position) -> None:
        self._cursor = self.clip(position)

    def insert_at(self, position: Position, text: str) -> Position:
        """Insert ``text`` at ``position`` and return the position right after it."""
        offset = self.pos_to_offset(position)
        self._text = self._text[:offset] + text + self._text[offset:]
        return self.offset_to_pos(offset + len(text))

    def scroll_offset(self) -> ScrollOffset:
        return self._scroll

    def set_scroll_offset(self, offset: ScrollOffset) -> None:
        self._scroll = offset


__all__ = ["EditorSurface", "MarkdownNote", "Position", "ScrollOffset"]
