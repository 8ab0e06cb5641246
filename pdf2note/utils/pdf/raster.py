"""Raster surfaces and image encoding backed by Pillow."""

from __future__ import annotations

import asyncio
from io import BytesIO
from typing import Protocol

from PIL import Image

from pdf2note.config.settings import ImageType
from pdf2note.errors import EncodeError, SurfaceAcquisitionError

from .document import Viewport


# Same ceiling browsers apply to a single canvas.
MAX_SURFACE_PIXELS = 268_435_456

_PIL_FORMATS: dict[ImageType, str] = {
    ImageType.PNG: "PNG",
    ImageType.JPEG: "JPEG",
    ImageType.WEBP: "WEBP",
}


class RasterBackend(Protocol):
    def acquire_surface(self, viewport: Viewport) -> Image.Image: ...

    async def encode(self, surface: Image.Image, image_type: ImageType, quality: int) -> bytes: ...


def _encode(surface: Image.Image, image_type: ImageType, quality: int) -> bytes:
    buffer = BytesIO()
    pil_format = _PIL_FORMATS[image_type]
    if image_type is ImageType.PNG:
        surface.save(buffer, format=pil_format)
    else:
        surface.save(buffer, format=pil_format, quality=quality)
    return buffer.getvalue()


class PillowRasterBackend:
    """Allocate white RGB surfaces and encode them off the event loop."""

    def __init__(self, *, max_pixels: int = MAX_SURFACE_PIXELS) -> None:
        self._max_pixels = max_pixels

    def acquire_surface(self, viewport: Viewport) -> Image.Image:
        width, height = viewport.width, viewport.height
        if width <= 0 or height <= 0:
            raise SurfaceAcquisitionError(f"Invalid surface size {width}x{height}.")
        if width * height > self._max_pixels:
            raise SurfaceAcquisitionError(
                f"Surface {width}x{height} exceeds the {self._max_pixels} pixel limit."
            )
        try:
            return Image.new("RGB", (width, height), color="white")
        except (MemoryError, ValueError) as exc:
            raise SurfaceAcquisitionError(
                f"Could not allocate a {width}x{height} surface: {exc}"
            ) from exc

    async def encode(self, surface: Image.Image, image_type: ImageType, quality: int) -> bytes:
        try:
            data = await asyncio.to_thread(_encode, surface, image_type, quality)
        except (OSError, ValueError, KeyError) as exc:
            raise EncodeError(f"Failed to encode {image_type.value} image: {exc}") from exc
        if not data:
            raise EncodeError(f"Encoder produced no {image_type.value} data.")
        return data


__all__ = ["MAX_SURFACE_PIXELS", "PillowRasterBackend", "RasterBackend"]
