"""Document source backed by PyMuPDF.

Page geometry is read from a document opened in the calling process. Text
extraction and rasterization are CPU-bound and PyMuPDF is not safe to drive
from several threads, so both run as module-level functions submitted to an
executor that opens its own handle on the file. The default executor is a
``spawn`` process pool.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor, ProcessPoolExecutor
from dataclasses import dataclass
import multiprocessing
from pathlib import Path
from types import TracebackType
from typing import Protocol

import fitz  # PyMuPDF
from PIL import Image

from pdf2note.errors import ConversionError, RenderError
from pdf2note.utils.log_utils import logger


@dataclass(frozen=True, slots=True)
class TextFragment:
    """A run of text on a page and a scalar proxy for its glyph size."""

    text: str
    font_size: float


@dataclass(frozen=True, slots=True)
class Viewport:
    width: int
    height: int
    scale: float


class PageHandle(Protocol):
    page_number: int

    def viewport(self, scale: float) -> Viewport: ...

    async def text_fragments(self) -> list[TextFragment]: ...
    async def render(self, surface: Image.Image, viewport: Viewport) -> None: ...

    def release_resources(self) -> None: ...


class DocumentSource(Protocol):
    source_name: str

    @property
    def page_count(self) -> int: ...

    def get_page(self, page_number: int) -> PageHandle: ...


def source_name_for(pdf_path: str | Path) -> str:
    """Return the file name without a trailing ``.pdf`` extension."""
    name = Path(pdf_path).name
    if name.lower().endswith(".pdf"):
        return name[: -len(".pdf")]
    return name


def _rasterize_page(pdf_path: str, page_index: int, zoom: float) -> tuple[int, int, bytes]:
    doc = fitz.open(pdf_path)
    try:
        page = doc[page_index]
        matrix = fitz.Matrix(zoom, zoom)
        pix = page.get_pixmap(matrix=matrix, alpha=False)  # type: ignore[attr-defined]
        return pix.width, pix.height, bytes(pix.samples)
    finally:
        doc.close()


def _extract_spans(pdf_path: str, page_index: int) -> list[tuple[str, float]]:
    doc = fitz.open(pdf_path)
    try:
        payload = doc[page_index].get_text("dict")  # type: ignore[attr-defined]
    finally:
        doc.close()
    return [
        (span.get("text", ""), float(span["size"]))
        for block in payload.get("blocks", [])
        for line in block.get("lines", [])
        for span in line.get("spans", [])
    ]


class PyMuPDFPage:
    """One page of a :class:`PyMuPDFDocument`; ``page_number`` is 1-based."""

    def __init__(self, document: PyMuPDFDocument, page_number: int) -> None:
        self._document = document
        self.page_number = page_number
        self._page: fitz.Page | None = None

    def _fitz_page(self) -> fitz.Page:
        if self._page is None:
            self._page = self._document.fitz_document[self.page_number - 1]
        return self._page

    def viewport(self, scale: float) -> Viewport:
        rect = self._fitz_page().rect * fitz.Matrix(scale, scale)
        irect = rect.irect
        return Viewport(width=irect.width, height=irect.height, scale=scale)

    async def text_fragments(self) -> list[TextFragment]:
        spans = await self._document.extract_spans(self.page_number - 1)
        return [TextFragment(text=text, font_size=size) for text, size in spans]

    async def render(self, surface: Image.Image, viewport: Viewport) -> None:
        width, height, samples = await self._document.rasterize(
            self.page_number - 1, viewport.scale
        )
        try:
            drawn = Image.frombytes("RGB", (width, height), samples)
        except ValueError as exc:
            raise RenderError(
                f"Unexpected pixel buffer for page {self.page_number}: {exc}"
            ) from exc
        try:
            surface.paste(drawn, (0, 0))
        finally:
            drawn.close()

    def release_resources(self) -> None:
        self._page = None


class PyMuPDFDocument:
    """PDF document handle used for the duration of one conversion run."""

    def __init__(
        self,
        pdf_path: str | Path,
        *,
        executor: Executor | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._path = str(Path(pdf_path).resolve())
        self.source_name = source_name_for(pdf_path)
        try:
            self._doc = fitz.open(self._path)
        except (RuntimeError, OSError, ValueError) as exc:
            raise ConversionError(f"Cannot open {pdf_path}: {exc}") from exc
        self._executor = executor
        self._owns_executor = executor is None
        self._max_workers = max_workers

    @property
    def path(self) -> str:
        return self._path

    @property
    def fitz_document(self) -> fitz.Document:
        return self._doc

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def get_page(self, page_number: int) -> PyMuPDFPage:
        if not 1 <= page_number <= self.page_count:
            raise IndexError(f"Page {page_number} is outside 1..{self.page_count}.")
        return PyMuPDFPage(self, page_number)

    def _ensure_executor(self) -> Executor:
        if self._executor is None:
            ctx = multiprocessing.get_context("spawn")
            self._executor = ProcessPoolExecutor(max_workers=self._max_workers, mp_context=ctx)
        return self._executor

    async def rasterize(self, page_index: int, zoom: float) -> tuple[int, int, bytes]:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                self._ensure_executor(), _rasterize_page, self._path, page_index, zoom
            )
        except (RuntimeError, ValueError) as exc:
            raise RenderError(f"Failed to rasterize page {page_index + 1}: {exc}") from exc

    async def extract_spans(self, page_index: int) -> list[tuple[str, float]]:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                self._ensure_executor(), _extract_spans, self._path, page_index
            )
        except (RuntimeError, ValueError) as exc:
            raise RenderError(f"Failed to read text of page {page_index + 1}: {exc}") from exc

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
        if not self._doc.is_closed:
            self._doc.close()
        logger.debug(f"Closed document {self._path}")

    def __enter__(self) -> PyMuPDFDocument:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = [
    "DocumentSource",
    "PageHandle",
    "PyMuPDFDocument",
    "PyMuPDFPage",
    "TextFragment",
    "Viewport",
    "source_name_for",
]
