from __future__ import annotations

import pytest

from pdf2note.config.settings import ImageSeparator
from pdf2note.pipeline.links import build_link, encode_uri, separator_text
from pdf2note.pipeline.models import RenderResult


def _result(path: str = "Report/page_1.png", width: int | None = None) -> RenderResult:
    return RenderResult(
        page_number=1,
        image_path=path,
        image_name=path.rsplit("/", 1)[-1],
        display_width_hint=width,
    )


def test_link_without_header_is_just_the_image() -> None:
    assert build_link(_result(), "", "#") == "![page_1.png](Report/page_1.png)"


def test_link_with_header_adds_heading_line() -> None:
    link = build_link(_result(), "Chapter 1", "###")
    assert link == "### Chapter 1\n![page_1.png](Report/page_1.png)"


def test_width_hint_is_embedded_in_alt_text() -> None:
    link = build_link(_result(width=612), "", "#")
    assert link == "![page_1.png|612](Report/page_1.png)"


def test_paths_are_encoded_like_encode_uri() -> None:
    assert encode_uri("My Notes/Über plan/page_1.png") == (
        "My%20Notes/%C3%9Cber%20plan/page_1.png"
    )
    assert encode_uri("a/b;c,d?e=f&g+h$i!j*k'(l)#m") == "a/b;c,d?e=f&g+h$i!j*k'(l)#m"
    assert encode_uri("100%/[x]") == "100%25/%5Bx%5D"


@pytest.mark.parametrize(
    ("separator", "expected"),
    [
        (ImageSeparator.NONE, "\n"),
        (ImageSeparator.BLANK_LINE, "\n\n"),
        (ImageSeparator.RULE_LINE, "\n***\n"),
        (ImageSeparator.BLANK_LINE_AND_RULE, "\n\n***\n"),
        (1, "\n\n"),
    ],
)
def test_separator_literals(separator: ImageSeparator | int, expected: str) -> None:
    assert separator_text(separator) == expected
