"""Strategies that place page links into the target note."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from pdf2note.config.settings import InsertionMethod
from pdf2note.editor import EditorSurface, Position
from pdf2note.utils.log_utils import logger

from .models import LinkRecord


class InsertionStrategy(Protocol):
    def begin(self) -> None: ...

    def consume(self, records: Sequence[LinkRecord]) -> None: ...

    def finish(self) -> None: ...


class ProceduralInsertion:
    """Insert each link as soon as its chunk is post-processed.

    Every link is followed by the separator, and the cursor moves to the end
    of the inserted text so later links land after it.
    """

    def __init__(self, editor: EditorSurface, separator: str) -> None:
        self._editor = editor
        self._separator = separator
        self._cursor: Position | None = None

    @property
    def cursor(self) -> Position | None:
        return self._cursor

    def begin(self) -> None:
        self._cursor = self._editor.cursor()

    def consume(self, records: Sequence[LinkRecord]) -> None:
        cursor = self._cursor if self._cursor is not None else self._editor.cursor()
        for record in records:
            cursor = self._editor.insert_at(cursor, record.markdown_link + self._separator)
            self._editor.set_cursor(cursor)
        self._cursor = cursor

    def finish(self) -> None:
        pass


class BatchInsertion:
    """Collect every link and insert them once at the cursor captured up front.

    The scroll offset read just before the insertion is restored afterwards.
    """

    def __init__(self, editor: EditorSurface, separator: str) -> None:
        self._editor = editor
        self._separator = separator
        self._cursor: Position | None = None
        self._links: list[str] = []

    def begin(self) -> None:
        self._cursor = self._editor.cursor()
        self._links = []

    def consume(self, records: Sequence[LinkRecord]) -> None:
        self._links.extend(record.markdown_link for record in records)

    def finish(self) -> None:
        if not self._links:
            logger.debug("Batch insertion has nothing to insert.")
            return
        cursor = self._cursor if self._cursor is not None else self._editor.cursor()
        scroll = self._editor.scroll_offset()
        self._editor.insert_at(cursor, self._separator.join(self._links))
        self._editor.set_scroll_offset(scroll)


def create_insertion_strategy(
    method: InsertionMethod, editor: EditorSurface, separator: str
) -> InsertionStrategy:
    if method is InsertionMethod.BATCH:
        return BatchInsertion(editor, separator)
    return ProceduralInsertion(editor, separator)


__all__ = [
    "BatchInsertion",
    "InsertionStrategy",
    "ProceduralInsertion",
    "create_insertion_strategy",
]
