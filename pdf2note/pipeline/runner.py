"""Conversion run: allocate a folder, render pages in chunks, insert links."""

from __future__ import annotations

from contextlib import aclosing
from dataclasses import dataclass, field
from datetime import datetime
import os
from pathlib import Path
from typing import Protocol

from pdf2note.config.settings import ConversionSettings
from pdf2note.editor import EditorSurface, MarkdownNote, Position
from pdf2note.errors import ConversionError, StorageError
from pdf2note.storage import FolderAllocator, LocalStorage, Storage, attachment_base_path
from pdf2note.utils.concurrency import ProgressReporter
from pdf2note.utils.log_utils import logger
from pdf2note.utils.pdf.document import DocumentSource, PyMuPDFDocument
from pdf2note.utils.pdf.raster import PillowRasterBackend, RasterBackend

from .headers import DedupPolicy
from .insertion import create_insertion_strategy
from .links import separator_text
from .models import LinkRecord
from .postprocess import post_process_chunk
from .scheduler import ChunkedScheduler, effective_limit
from .worker import PageWorker, WorkerOptions


SUCCESS_MESSAGE = "PDF processing complete"
FAILURE_MESSAGE = "Failed to process PDF"


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class LoggerNotifier:
    """Notifier that reports through the shared logger."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)
        if message.startswith(FAILURE_MESSAGE):
            logger.error(message)
        else:
            logger.info(message)


@dataclass(slots=True)
class ConversionReport:
    folder_path: str
    page_count: int
    records: list[LinkRecord] = field(default_factory=list)


class ConversionPipeline:
    """Coordinate one conversion of a document into a target note."""

    def __init__(
        self,
        settings: ConversionSettings,
        *,
        storage: Storage,
        raster: RasterBackend | None = None,
        progress_reporter: ProgressReporter | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._settings = settings
        self._storage = storage
        self._raster = raster or PillowRasterBackend()
        self._progress = progress_reporter
        self._notifier = notifier or LoggerNotifier()

    def allocate_folder(
        self, source_name: str, note_folder: str = "", now: datetime | None = None
    ) -> str:
        """Pick and create the output folder for ``source_name``."""
        base_path = attachment_base_path(self._settings.attachment_folder_path, note_folder, now)
        folder_path = FolderAllocator(self._storage.exists).allocate(base_path, source_name)
        self._storage.create_folder(folder_path)
        logger.info(f"Writing page images to '{folder_path}'")
        return folder_path

    async def run(
        self,
        document: DocumentSource,
        editor: EditorSurface,
        *,
        note_folder: str = "",
        image_resolution: float | None = None,
    ) -> ConversionReport:
        """Convert ``document`` and insert its page links into ``editor``.

        Any failure aborts the run, is reported once through the notifier and
        is re-raised. The progress reporter is closed on every exit path.
        """
        settings = self._settings
        page_count = document.page_count
        try:
            if image_resolution is not None:
                settings = settings.replace(image_resolution=image_resolution)
            scale = settings.image_resolution
            if self._progress:
                self._progress.start(page_count)

            folder_path = self.allocate_folder(document.source_name, note_folder)
            report = ConversionReport(folder_path=folder_path, page_count=page_count)

            worker = PageWorker(
                document=document,
                raster=self._raster,
                storage=self._storage,
                folder_path=folder_path,
                options=WorkerOptions(
                    image_type=settings.image_type,
                    image_quality=settings.image_quality,
                    enable_headers=settings.enable_headers,
                    header_sensitivity=settings.header_extraction_sensitive,
                ),
            )
            dedup = DedupPolicy(
                enabled=settings.remove_header_duplicates,
                reset_on_empty=settings.reset_dedup_on_empty_header,
            )
            strategy = create_insertion_strategy(
                settings.insertion_method, editor, separator_text(settings.image_separator)
            )
            scheduler = ChunkedScheduler(
                concurrency_limit=settings.max_concurrent_pages, scale=scale
            )
            logger.debug(
                f"Converting {page_count} pages at scale {scale} "
                f"({effective_limit(settings.max_concurrent_pages, page_count)} at a time, "
                f"{settings.insertion_method.value} insertion)"
            )

            strategy.begin()
            last_header = ""
            async with aclosing(scheduler.chunks(page_count, worker.render_page)) as chunks:
                async for results in chunks:
                    records, last_header = post_process_chunk(
                        results,
                        last_header,
                        dedup=dedup,
                        heading_prefix=settings.header_size,
                    )
                    strategy.consume(records)
                    report.records.extend(records)
                    if self._progress:
                        for _ in records:
                            self._progress.increment()
            strategy.finish()
        except Exception as exc:
            logger.exception(f"Conversion of '{document.source_name}' failed")
            self._notifier.notify(f"{FAILURE_MESSAGE}: {exc}")
            raise
        finally:
            if self._progress:
                self._progress.close()

        self._notifier.notify(SUCCESS_MESSAGE)
        return report


def _note_folder(note_path: Path, vault_root: Path) -> str:
    try:
        relative = note_path.resolve().parent.relative_to(vault_root.resolve())
    except ValueError as exc:
        raise StorageError(f"Note {note_path} is not inside {vault_root}.") from exc
    return relative.as_posix() if str(relative) != "." else ""


async def convert_pdf_to_note(
    pdf_path: str | Path,
    note_path: str | Path,
    *,
    settings: ConversionSettings,
    vault_root: str | Path | None = None,
    cursor: Position | None = None,
    image_resolution: float | None = None,
    progress_reporter: ProgressReporter | None = None,
    notifier: Notifier | None = None,
) -> ConversionReport:
    """Convert a PDF file on disk and insert its pages into a markdown note.

    ``vault_root`` defaults to the note's directory; images are written below
    it and linked with vault-relative paths. The note is saved even when the
    run fails, keeping whatever Procedural insertion already placed.
    """
    note_file = Path(note_path)
    root = Path(vault_root) if vault_root is not None else note_file.resolve().parent
    notifier = notifier or LoggerNotifier()
    storage = LocalStorage(root)
    raster_workers = min(settings.max_concurrent_pages, max(1, (os.cpu_count() or 2) // 2))
    try:
        note_folder = _note_folder(note_file, storage.root)
        note = MarkdownNote.load(note_file, cursor=cursor)
        document = PyMuPDFDocument(pdf_path, max_workers=raster_workers)
    except ConversionError as exc:
        notifier.notify(f"{FAILURE_MESSAGE}: {exc}")
        raise

    pipeline = ConversionPipeline(
        settings,
        storage=storage,
        progress_reporter=progress_reporter,
        notifier=notifier,
    )
    with document:
        try:
            return await pipeline.run(
                document,
                note,
                note_folder=note_folder,
                image_resolution=image_resolution,
            )
        finally:
            note.save()


__all__ = [
    "FAILURE_MESSAGE",
    "SUCCESS_MESSAGE",
    "ConversionPipeline",
    "ConversionReport",
    "LoggerNotifier",
    "Notifier",
    "convert_pdf_to_note",
]
