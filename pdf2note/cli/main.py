from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
import json
from pathlib import Path
from typing import Any, ParamSpec, TypeVar

from rich.console import Console
import typer  # type: ignore[import]

from pdf2note.config.settings import save_settings
from pdf2note.errors import SettingsError
from pdf2note.utils.log_utils import configure_logging, logger

from . import convert


app = typer.Typer(
    help="Convert PDF pages to images and link them from a markdown note.",
)

_P = ParamSpec("_P")
_T = TypeVar("_T")

_ENV_FILE_OPTION = typer.Option(
    None, "--env-file", help="Path to a .env file with PDF2NOTE_* variables.", dir_okay=False
)
_SETTINGS_FILE_OPTION = typer.Option(
    None, "--settings-file", help="JSON settings file.", dir_okay=False
)


def _synchronous(handler: Callable[_P, Coroutine[Any, Any, _T]]) -> Callable[_P, _T]:
    @wraps(handler)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _T:
        try:
            return asyncio.run(handler(*args, **kwargs))
        except KeyboardInterrupt as err:
            logger.info("Interrupted by user")
            raise typer.Exit(code=130) from err

    return wrapper


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug messages."),
    log_file: str | None = typer.Option(
        None,
        "--log-file",
        help="Debug log file (default: PDF2NOTE_LOG_FILE or pdf2note_debug.log; \"\" disables).",
    ),
) -> None:
    configure_logging(verbose=verbose, log_file=log_file)


def _collect_overrides(**values: Any) -> dict[str, Any]:
    return {name: value for name, value in values.items() if value is not None}


@app.command("convert")
@_synchronous
async def convert_command(
    pdf: Path = typer.Argument(
        ...,
        help="PDF file to convert.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    note: Path = typer.Argument(
        ...,
        help="Markdown note that receives the page links (created if missing).",
        dir_okay=False,
    ),
    vault_root: Path | None = typer.Option(
        None,
        "--vault-root",
        help="Root that images are stored under and linked from. Defaults to the note's folder.",
        file_okay=False,
        dir_okay=True,
    ),
    line: int | None = typer.Option(
        None, "--line", help="0-based cursor line. Defaults to the end of the note.", min=0
    ),
    column: int | None = typer.Option(None, "--column", help="0-based cursor column.", min=0),
    quality: float | None = typer.Option(
        None,
        "--quality",
        "-q",
        help="Render scale for this run only (e.g. 0.5, 0.75, 1, 1.5, 2).",
    ),
    image_type: str | None = typer.Option(None, "--image-type", help="png, jpeg or webp."),
    image_quality: int | None = typer.Option(
        None, "--image-quality", help="Encoder quality for jpeg/webp (1-100)."
    ),
    insertion_method: str | None = typer.Option(
        None, "--insertion-method", help="Procedural or Batch."
    ),
    image_separator: int | None = typer.Option(
        None,
        "--separator",
        help="0 none, 1 empty line, 2 separator line, 3 empty line + separator line.",
    ),
    enable_headers: bool | None = typer.Option(
        None, "--headers/--no-headers", help="Insert detected page headers above images."
    ),
    header_size: str | None = typer.Option(
        None, "--header-size", help="Heading prefix, # to #####."
    ),
    header_extraction_sensitive: float | None = typer.Option(
        None, "--sensitivity", help="Header extraction sensitivity (default 1.2)."
    ),
    remove_header_duplicates: bool | None = typer.Option(
        None, "--dedup/--no-dedup", help="Drop a header that repeats the previous one."
    ),
    max_concurrent_pages: int | None = typer.Option(
        None, "--max-concurrent-pages", help="Pages rendered at the same time."
    ),
    attachment_folder_path: str | None = typer.Option(
        None,
        "--attachment-folder",
        help="Folder for generated images; supports {{date}} and {{date:%Y%m%d}}.",
    ),
    env_file: Path | None = _ENV_FILE_OPTION,
    settings_file: Path | None = _SETTINGS_FILE_OPTION,
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print the effective settings and exit."
    ),
) -> int:
    if vault_root is not None:
        try:
            note.resolve().parent.relative_to(vault_root.resolve())
        except ValueError as err:
            raise typer.BadParameter(
                f"{note} is not inside {vault_root}.", param_hint="--vault-root"
            ) from err

    options = convert.ConvertOptions(
        pdf_path=pdf,
        note_path=note,
        vault_root=vault_root,
        line=line,
        column=column,
        image_resolution=quality,
        env_file=env_file,
        settings_file=settings_file,
        overrides=_collect_overrides(
            image_type=image_type,
            image_quality=image_quality,
            insertion_method=insertion_method,
            image_separator=image_separator,
            enable_headers=enable_headers,
            header_size=header_size,
            header_extraction_sensitive=header_extraction_sensitive,
            remove_header_duplicates=remove_header_duplicates,
            max_concurrent_pages=max_concurrent_pages,
            attachment_folder_path=attachment_folder_path,
        ),
        dry_run=dry_run,
    )
    result = await convert.run(options)
    if result != 0:
        raise typer.Exit(code=result)
    return result


@app.command("show-settings")
def show_settings_command(
    env_file: Path | None = _ENV_FILE_OPTION,
    settings_file: Path | None = _SETTINGS_FILE_OPTION,
) -> int:
    settings = convert.resolve_settings(env_file, settings_file, {})
    Console().print_json(json.dumps(settings.to_json_dict()))
    return 0


@app.command("save-settings")
def save_settings_command(
    settings_file: Path = typer.Argument(..., help="JSON settings file to write.", dir_okay=False),
    set_values: list[str] | None = typer.Option(
        None,
        "--set",
        help="Override as name=value, e.g. --set image_type=png. Repeat for more.",
    ),
    env_file: Path | None = _ENV_FILE_OPTION,
) -> int:
    overrides: dict[str, Any] = {}
    for item in set_values or []:
        name, sep, value = item.partition("=")
        if not sep:
            raise typer.BadParameter(f"Expected name=value, got {item!r}.", param_hint="--set")
        overrides[name.strip()] = value.strip()

    try:
        settings = convert.resolve_settings(env_file, settings_file, overrides)
    except SettingsError as err:
        raise typer.BadParameter(str(err), param_hint="--set") from err
    path = save_settings(settings, settings_file)
    logger.info(f"Saved settings to {path}")
    return 0


def main() -> None:
    app()


if __name__ == "__main__":
    main()
