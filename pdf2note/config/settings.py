"""Centralised configuration for conversion runs.

Options are layered from lowest to highest precedence: built-in defaults,
the persisted JSON settings file, ``PDF2NOTE_*`` environment variables
(optionally loaded from a `.env` file) and finally explicit overrides passed
to :meth:`ConversionSettings.replace`. Downstream modules call
`get_settings()` instead of touching `os.environ` directly.
"""

from __future__ import annotations

import dataclasses
from dataclasses import asdict, dataclass, fields
from enum import Enum, IntEnum
from functools import lru_cache
import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from pdf2note.errors import SettingsError
from pdf2note.utils.log_utils import logger


_DEFAULT_ENV_PATH = Path.cwd() / ".env"
_ENV_PREFIX = "PDF2NOTE_"


class ImageType(str, Enum):
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"


class InsertionMethod(str, Enum):
    PROCEDURAL = "Procedural"
    BATCH = "Batch"


class ImageSeparator(IntEnum):
    """What follows each inserted page link."""

    NONE = 0
    BLANK_LINE = 1
    RULE_LINE = 2
    BLANK_LINE_AND_RULE = 3

    @property
    def literal(self) -> str:
        return _SEPARATOR_LITERALS[self]


_SEPARATOR_LITERALS: dict[ImageSeparator, str] = {
    ImageSeparator.NONE: "\n",
    ImageSeparator.BLANK_LINE: "\n\n",
    ImageSeparator.RULE_LINE: "\n***\n",
    ImageSeparator.BLANK_LINE_AND_RULE: "\n\n***\n",
}

HEADER_SIZES: tuple[str, ...] = ("#", "##", "###", "####", "#####")


@dataclass(frozen=True)
class ConversionSettings:
    """Snapshot of every option consumed by a conversion run."""

    image_resolution: float = 1.0
    image_type: ImageType = ImageType.WEBP
    image_quality: int = 92
    insertion_method: InsertionMethod = InsertionMethod.PROCEDURAL
    image_separator: ImageSeparator = ImageSeparator.NONE
    enable_headers: bool = False
    header_size: str = "#"
    header_extraction_sensitive: float = 1.2
    remove_header_duplicates: bool = False
    reset_dedup_on_empty_header: bool = True
    max_concurrent_pages: int = 50
    attachment_folder_path: str = ""

    def replace(self, **overrides: Any) -> ConversionSettings:
        """Return a copy with ``overrides`` applied; ``None`` values are skipped.

        Raises:
            SettingsError: If an override has an invalid value.
        """
        cleaned: dict[str, Any] = {}
        for name, raw in overrides.items():
            if raw is None:
                continue
            if name not in _FIELD_NAMES:
                raise SettingsError(f"Unknown setting '{name}'.")
            cleaned[name] = _validate(name, raw)
        return dataclasses.replace(self, **cleaned)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialise using the camelCase keys of the persisted settings file."""
        data = asdict(self)
        return {
            _JSON_KEYS[name]: (value.value if isinstance(value, Enum) else value)
            for name, value in data.items()
        }


_FIELD_NAMES: frozenset[str] = frozenset(f.name for f in fields(ConversionSettings))

_JSON_KEYS: dict[str, str] = {
    "image_resolution": "imageResolution",
    "image_type": "imageType",
    "image_quality": "imageQuality",
    "insertion_method": "insertionMethod",
    "image_separator": "imageSeparator",
    "enable_headers": "enableHeaders",
    "header_size": "headerSize",
    "header_extraction_sensitive": "headerExtractionSensitive",
    "remove_header_duplicates": "removeHeaderDuplicates",
    "reset_dedup_on_empty_header": "resetDedupOnEmptyHeader",
    "max_concurrent_pages": "maxConcurrentPages",
    "attachment_folder_path": "attachmentFolderPath",
}


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    token = str(value).strip().lower()
    if token in {"1", "true", "yes", "on"}:
        return True
    if token in {"0", "false", "no", "off"}:
        return False
    raise SettingsError(f"Expected a boolean, got {value!r}.")


def _coerce_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise SettingsError(f"Expected a number, got {value!r}.") from exc


def _coerce_int(value: Any) -> int:
    if isinstance(value, bool):
        raise SettingsError(f"Expected an integer, got {value!r}.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise SettingsError(f"Expected an integer, got {value!r}.") from exc


def _validate(name: str, raw: Any) -> Any:
    if isinstance(raw, Enum):
        raw = raw.value
    if name == "image_resolution":
        value = _coerce_float(raw)
        if value <= 0:
            raise SettingsError(f"image_resolution must be positive, got {value}.")
        return value
    if name == "image_type":
        try:
            return ImageType(str(raw).lower())
        except ValueError as exc:
            choices = ", ".join(t.value for t in ImageType)
            raise SettingsError(f"image_type must be one of {choices}, got {raw!r}.") from exc
    if name == "image_quality":
        value = _coerce_int(raw)
        if not 1 <= value <= 100:
            raise SettingsError(f"image_quality must be within 1-100, got {value}.")
        return value
    if name == "insertion_method":
        token = str(raw).strip().lower()
        for method in InsertionMethod:
            if method.value.lower() == token:
                return method
        choices = ", ".join(m.value for m in InsertionMethod)
        raise SettingsError(f"insertion_method must be one of {choices}, got {raw!r}.")
    if name == "image_separator":
        try:
            return ImageSeparator(_coerce_int(raw))
        except ValueError as exc:
            raise SettingsError(f"image_separator must be within 0-3, got {raw!r}.") from exc
    if name == "header_size":
        token = str(raw).strip()
        if token not in HEADER_SIZES:
            raise SettingsError(f"header_size must be one of {', '.join(HEADER_SIZES)}.")
        return token
    if name == "header_extraction_sensitive":
        value = _coerce_float(raw)
        if value < 0:
            raise SettingsError(f"header_extraction_sensitive must be >= 0, got {value}.")
        return value
    if name == "max_concurrent_pages":
        # Anything below one still renders a page at a time.
        return max(1, _coerce_int(raw))
    if name == "attachment_folder_path":
        return str(raw)
    return _coerce_bool(raw)


def _apply_lenient(
    settings: ConversionSettings, values: dict[str, Any], *, source: str
) -> ConversionSettings:
    """Apply values one by one, skipping (and logging) invalid entries."""
    for name, raw in values.items():
        try:
            settings = settings.replace(**{name: raw})
        except SettingsError as exc:
            logger.warning(f"Ignoring {source} value for '{name}': {exc}")
    return settings


def _read_settings_file(settings_path: Path) -> dict[str, Any]:
    if not settings_path.is_file():
        return {}
    try:
        payload = json.loads(settings_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(f"Could not read settings file {settings_path}: {exc}")
        return {}
    if not isinstance(payload, dict):
        logger.warning(f"Settings file {settings_path} does not contain a JSON object.")
        return {}

    by_json_key = {json_key: name for name, json_key in _JSON_KEYS.items()}
    values: dict[str, Any] = {}
    for key, value in payload.items():
        name = by_json_key.get(key, key if key in _FIELD_NAMES else None)
        if name is not None:
            values[name] = value
    return values


def _read_environment() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name in sorted(_FIELD_NAMES):
        raw = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
        if raw is not None and raw != "":
            values[name] = raw
    return values


def _resolve_path(path: os.PathLike[str] | str | None, default: Path | None) -> Path | None:
    if path is None:
        return default
    return Path(path).resolve()


@lru_cache(maxsize=8)
def _load_settings(env_path: Path | None, settings_path: Path | None) -> ConversionSettings:
    # Existing environment variables take precedence over `.env` defaults.
    if env_path is not None:
        load_dotenv(dotenv_path=env_path, override=False)

    settings = ConversionSettings()
    if settings_path is not None:
        settings = _apply_lenient(
            settings, _read_settings_file(settings_path), source=str(settings_path)
        )
    return _apply_lenient(settings, _read_environment(), source="environment")


def get_settings(
    env_file: os.PathLike[str] | str | None = None,
    settings_file: os.PathLike[str] | str | None = None,
    *,
    reload: bool = False,
) -> ConversionSettings:
    """Return the cached settings snapshot.

    Args:
        env_file: Optional explicit path to a `.env` file. When omitted the
            `.env` file of the working directory is used.
        settings_file: Optional JSON settings file persisted by
            :func:`save_settings`.
        reload: When True the cached snapshot is cleared before loading.
    """
    env_path = _resolve_path(env_file, _DEFAULT_ENV_PATH)
    settings_path = _resolve_path(settings_file, None)
    if reload:
        _load_settings.cache_clear()
    return _load_settings(env_path, settings_path)


def save_settings(settings: ConversionSettings, settings_file: os.PathLike[str] | str) -> Path:
    """Persist ``settings`` as JSON and return the written path."""
    path = Path(settings_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.to_json_dict(), indent=2) + "\n", encoding="utf-8")
    _load_settings.cache_clear()
    return path


__all__ = [
    "HEADER_SIZES",
    "ConversionSettings",
    "ImageSeparator",
    "ImageType",
    "InsertionMethod",
    "get_settings",
    "save_settings",
]
