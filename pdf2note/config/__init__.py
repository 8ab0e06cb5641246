"""Configuration helpers for pdf2note.

Expose `get_settings` as the canonical accessor for conversion options.
Modules should avoid reading the environment or the settings file directly
and instead import from this package to retrieve typed snapshots.
"""

from .settings import (
    ConversionSettings,
    ImageSeparator,
    ImageType,
    InsertionMethod,
    get_settings,
    save_settings,
)


__all__ = [
    "ConversionSettings",
    "ImageSeparator",
    "ImageType",
    "InsertionMethod",
    "get_settings",
    "save_settings",
]
