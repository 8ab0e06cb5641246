"""Render, encode and persist a single page."""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image

from pdf2note.config.settings import ImageType
from pdf2note.errors import RenderError
from pdf2note.storage import Storage, join_path
from pdf2note.utils.log_utils import logger
from pdf2note.utils.pdf.document import DocumentSource, PageHandle, Viewport
from pdf2note.utils.pdf.raster import RasterBackend

from .headers import extract_header
from .models import RenderJob, RenderResult


@dataclass(frozen=True, slots=True)
class WorkerOptions:
    image_type: ImageType
    image_quality: int
    enable_headers: bool
    header_sensitivity: float


def image_name_for(page_number: int, image_type: ImageType) -> str:
    return f"page_{page_number}.{image_type.value}"


async def _render(
    page: PageHandle, surface: Image.Image, viewport: Viewport, page_number: int
) -> None:
    try:
        await page.render(surface, viewport)
    except RenderError:
        raise
    except Exception as exc:
        raise RenderError(f"Failed to render page {page_number}: {exc}") from exc


class PageWorker:
    """Turn a :class:`RenderJob` into an image file plus its raw header.

    Deduplication is not applied here; it depends on page order and runs in
    the sequential post-processing step.
    """

    def __init__(
        self,
        *,
        document: DocumentSource,
        raster: RasterBackend,
        storage: Storage,
        folder_path: str,
        options: WorkerOptions,
    ) -> None:
        self._document = document
        self._raster = raster
        self._storage = storage
        self._folder_path = folder_path
        self._options = options

    async def render_page(self, job: RenderJob) -> RenderResult:
        page = self._document.get_page(job.page_number)
        try:
            viewport = page.viewport(job.scale)
            surface = self._raster.acquire_surface(viewport)
            try:
                await _render(page, surface, viewport, job.page_number)
                data = await self._raster.encode(
                    surface, self._options.image_type, self._options.image_quality
                )
            finally:
                surface.close()

            image_name = image_name_for(job.page_number, self._options.image_type)
            image_path = join_path(self._folder_path, image_name)
            await self._storage.write_binary(image_path, data)

            raw_header = ""
            if self._options.enable_headers:
                fragments = await page.text_fragments()
                raw_header = extract_header(fragments, self._options.header_sensitivity)

            width_hint = page.viewport(1.0).width if job.scale < 1.0 else None
        finally:
            page.release_resources()

        logger.debug(
            f"Page {job.page_number}: wrote {image_path} ({len(data)} bytes, "
            f"{viewport.width}x{viewport.height}), header={raw_header!r}"
        )
        return RenderResult(
            page_number=job.page_number,
            image_path=image_path,
            image_name=image_name,
            raw_header=raw_header,
            display_width_hint=width_hint,
        )


__all__ = ["PageWorker", "WorkerOptions", "image_name_for"]
