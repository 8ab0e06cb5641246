"""Storage collaborator and collision-free output folder allocation.

Paths handed around the pipeline are vault-relative POSIX strings, the way a
note links to its attachments. :class:`LocalStorage` maps them onto a root
directory on disk.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
import re
from typing import Protocol

import aiofiles

from pdf2note.errors import StorageError
from pdf2note.utils.log_utils import logger


_ILLEGAL_SEGMENT_CHARS = re.compile(r'[#^\[\]|\\/:*?"<>]')
_DATE_TOKEN = re.compile(r"\{\{date(?::([^}]*))?\}\}")
_DEFAULT_DATE_FORMAT = "%Y-%m-%d"
FALLBACK_FOLDER_NAME = "pdf"


class Storage(Protocol):
    def exists(self, path: str) -> bool: ...

    def create_folder(self, path: str) -> None: ...

    async def write_binary(self, path: str, data: bytes) -> None: ...


def normalize_path(path: str) -> str:
    """Use forward slashes, collapse repeats and drop leading/trailing slashes."""
    cleaned = re.sub(r"/+", "/", path.replace("\\", "/"))
    return cleaned.strip().strip("/")


def join_path(*parts: str) -> str:
    return normalize_path("/".join(part for part in parts if part))


def clean_folder_name(name: str) -> str:
    """Strip characters that are illegal or ambiguous inside a link path segment."""
    cleaned = _ILLEGAL_SEGMENT_CHARS.sub("", name).strip()
    return cleaned or FALLBACK_FOLDER_NAME


def expand_date_tokens(template: str, now: datetime | None = None) -> str:
    """Expand ``{{date}}`` and ``{{date:<strftime format>}}`` tokens."""
    moment = now or datetime.now()

    def _render(match: re.Match[str]) -> str:
        return moment.strftime(match.group(1) or _DEFAULT_DATE_FORMAT)

    return _DATE_TOKEN.sub(_render, template)


def attachment_base_path(template: str, note_folder: str, now: datetime | None = None) -> str:
    """Resolve the configured attachment folder against the target note's folder.

    An empty template means the note's own folder and a leading ``./`` is
    relative to it; anything else is taken from the storage root.
    """
    expanded = expand_date_tokens(template, now).strip()
    if not expanded or expanded == ".":
        return normalize_path(note_folder)
    if expanded.startswith("./"):
        return join_path(note_folder, expanded[2:])
    return normalize_path(expanded)


class FolderAllocator:
    """Derive an output folder path that does not exist yet.

    Existence is checked live, so the caller must create the folder right
    after allocation; two concurrent runs can still race for the same name.
    """

    def __init__(self, exists: Callable[[str], bool]) -> None:
        self._exists = exists

    def allocate(self, base_path: str, desired_name: str) -> str:
        name = clean_folder_name(desired_name)
        index = 0
        candidate = join_path(base_path, name)
        while self._exists(candidate):
            index += 1
            candidate = join_path(base_path, f"{name}_{index}")
        return candidate


class LocalStorage:
    """Storage rooted at a directory on the local filesystem."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str) -> Path:
        return self._root / normalize_path(path)

    def exists(self, path: str) -> bool:
        return self.resolve(path).exists()

    def create_folder(self, path: str) -> None:
        target = self.resolve(path)
        try:
            target.mkdir(parents=True, exist_ok=False)
        except OSError as exc:
            raise StorageError(f"Failed to create folder {path}: {exc}") from exc
        logger.debug(f"Created folder {target}")

    async def write_binary(self, path: str, data: bytes) -> None:
        target = self.resolve(path)
        try:
            async with aiofiles.open(target, "wb") as file_obj:
                await file_obj.write(data)
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc


__all__ = [
    "FolderAllocator",
    "LocalStorage",
    "Storage",
    "attachment_base_path",
    "clean_folder_name",
    "expand_date_tokens",
    "join_path",
    "normalize_path",
]
