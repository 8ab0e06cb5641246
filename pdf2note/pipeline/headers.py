"""Heuristic page title detection and order-dependent header deduplication."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from pdf2note.utils.pdf.document import TextFragment


DEFAULT_SENSITIVITY = 1.2


def extract_header(fragments: Sequence[TextFragment], sensitivity: float) -> str:
    """Return the page title, or ``""`` when the page has none.

    The title is the text of every fragment sharing the largest font size. It
    is kept only when that size stands out from the page average by a factor
    of ``sensitivity``, except on pages where every visible fragment has the
    largest size (title-only pages, whose average equals the maximum).
    """
    ordered = sorted(fragments, key=lambda fragment: fragment.font_size, reverse=True)
    largest = ordered[0].font_size if ordered else 0.0

    header_fragments = [f for f in ordered if f.font_size == largest and f.text.strip()]
    header = " ".join(f.text for f in header_fragments).strip()
    if not header:
        return ""

    visible = [f for f in ordered if f.text.strip()]
    if visible and len(header_fragments) == len(visible):
        return header

    average = sum(f.font_size for f in ordered) / len(ordered)
    if largest < average * sensitivity:
        return ""
    return header


@dataclass(frozen=True)
class DedupPolicy:
    """Suppress a header that repeats the last accepted one.

    ``apply`` is a pure fold step: the caller threads the returned state into
    the next call, strictly in page order. With ``reset_on_empty`` a page
    without a header clears the memory, so a header seen before that page is
    emitted again; without it the memory survives header-less pages.
    """

    enabled: bool
    reset_on_empty: bool = True

    def apply(self, raw_header: str, state: str) -> tuple[str, str]:
        if not self.enabled:
            return raw_header, state
        if not raw_header:
            return "", ("" if self.reset_on_empty else state)
        if raw_header == state:
            return "", state
        return raw_header, raw_header

    def run(self, raw_headers: Iterable[str], state: str = "") -> tuple[list[str], str]:
        emitted: list[str] = []
        for raw_header in raw_headers:
            header, state = self.apply(raw_header, state)
            emitted.append(header)
        return emitted, state


__all__ = ["DEFAULT_SENSITIVITY", "DedupPolicy", "extract_header"]
