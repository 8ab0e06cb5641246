"""Convert command: resolve settings, then run one PDF-to-note conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pdf2note.config.settings import ConversionSettings, get_settings
from pdf2note.editor import Position
from pdf2note.errors import ConversionError, SettingsError
from pdf2note.pipeline.runner import convert_pdf_to_note
from pdf2note.utils.concurrency import TqdmProgressReporter
from pdf2note.utils.log_utils import logger


PROGRESS_DESC = "Processing PDF"


@dataclass(slots=True)
class ConvertOptions:
    pdf_path: Path
    note_path: Path
    vault_root: Path | None = None
    line: int | None = None
    column: int | None = None
    image_resolution: float | None = None
    env_file: Path | None = None
    settings_file: Path | None = None
    overrides: dict[str, Any] = field(default_factory=dict)
    dry_run: bool = False


def resolve_settings(
    env_file: Path | None, settings_file: Path | None, overrides: dict[str, Any]
) -> ConversionSettings:
    """Load the layered settings snapshot and apply command-line overrides."""
    base = get_settings(env_file=env_file, settings_file=settings_file, reload=True)
    return base.replace(**overrides)


def _cursor(options: ConvertOptions) -> Position | None:
    if options.line is None and options.column is None:
        return None
    return Position(line=options.line or 0, column=options.column or 0)


async def run(options: ConvertOptions) -> int:
    try:
        settings = resolve_settings(options.env_file, options.settings_file, options.overrides)
        image_resolution = None
        if options.image_resolution is not None:
            # Validated like the stored setting but applied to this run only.
            image_resolution = settings.replace(
                image_resolution=options.image_resolution
            ).image_resolution
    except SettingsError as exc:
        logger.error(str(exc))
        return 2

    if options.dry_run:
        logger.info(f"DRY RUN: {options.pdf_path} -> {options.note_path}")
        for key, value in settings.to_json_dict().items():
            logger.info(f"  {key} = {value!r}")
        return 0

    progress = TqdmProgressReporter(PROGRESS_DESC)
    try:
        report = await convert_pdf_to_note(
            options.pdf_path,
            options.note_path,
            settings=settings,
            vault_root=options.vault_root,
            cursor=_cursor(options),
            image_resolution=image_resolution,
            progress_reporter=progress,
        )
    except ConversionError:
        # Already reported by the pipeline notifier.
        return 1
    finally:
        progress.close()

    logger.info(
        f"Inserted {len(report.records)} page link(s) into {options.note_path} "
        f"(images in '{report.folder_path}')"
    )
    return 0
