"""Markdown text emitted for each rendered page."""

from __future__ import annotations

from urllib.parse import quote

from pdf2note.config.settings import ImageSeparator

from .models import RenderResult


# Characters left untouched by ECMAScript ``encodeURI`` besides alphanumerics and ``_.-~``.
_URI_SAFE = ";,/?:@&=+$!*'()#"


def encode_uri(path: str) -> str:
    return quote(path, safe=_URI_SAFE)


def image_reference(result: RenderResult) -> str:
    alt = result.image_name
    if result.display_width_hint is not None:
        alt = f"{alt}|{result.display_width_hint}"
    return f"![{alt}]({encode_uri(result.image_path)})"


def build_link(result: RenderResult, final_header: str, heading_prefix: str) -> str:
    """Return the optional heading line followed by the page's image reference."""
    reference = image_reference(result)
    if final_header:
        return f"{heading_prefix} {final_header}\n{reference}"
    return reference


def separator_text(separator: ImageSeparator | int) -> str:
    return ImageSeparator(separator).literal


__all__ = ["build_link", "encode_uri", "image_reference", "separator_text"]
