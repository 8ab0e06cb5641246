"""PDF collaborators for the conversion pipeline.

``document`` exposes page geometry, text spans and rasterization through
PyMuPDF; ``raster`` allocates Pillow surfaces and encodes them to png, jpeg
or webp bytes.
"""

from .document import (
    DocumentSource,
    PageHandle,
    PyMuPDFDocument,
    TextFragment,
    Viewport,
    source_name_for,
)
from .raster import PillowRasterBackend, RasterBackend


__all__ = [
    "DocumentSource",
    "PageHandle",
    "PillowRasterBackend",
    "PyMuPDFDocument",
    "RasterBackend",
    "TextFragment",
    "Viewport",
    "source_name_for",
]
