"""Exception types raised by a conversion run."""

from __future__ import annotations


class ConversionError(RuntimeError):
    """Base class for failures that abort a conversion run.

    A run is fail-fast: the first error raised by any page aborts it and
    files already written to storage are left in place.
    """

    pass


class RenderError(ConversionError):
    """Raised when a page cannot be drawn onto its raster surface."""

    pass


class SurfaceAcquisitionError(RenderError):
    """Raised when a raster surface of the requested size cannot be created."""

    pass


class EncodeError(ConversionError):
    """Raised when a rendered surface cannot be compressed to image bytes."""

    pass


class StorageError(ConversionError):
    """Raised when creating a folder or writing an image file fails."""

    pass


class SettingsError(ValueError):
    """Raised when an explicitly supplied option value is invalid."""

    pass


__all__ = [
    "ConversionError",
    "EncodeError",
    "RenderError",
    "SettingsError",
    "StorageError",
    "SurfaceAcquisitionError",
]
