"""Dataclasses passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RenderJob:
    """One page to render; ``page_number`` is 1-based."""

    page_number: int
    scale: float

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")
        if self.scale <= 0:
            raise ValueError(f"scale must be positive, got {self.scale}")


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Output of a page worker, produced once per page."""

    page_number: int
    image_path: str
    image_name: str
    raw_header: str = ""
    display_width_hint: int | None = None


@dataclass(frozen=True, slots=True)
class LinkRecord:
    page_number: int
    final_header: str
    markdown_link: str


__all__ = ["LinkRecord", "RenderJob", "RenderResult"]
