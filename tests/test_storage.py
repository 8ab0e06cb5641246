from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from pdf2note.errors import StorageError
from pdf2note.storage import (
    FolderAllocator,
    LocalStorage,
    attachment_base_path,
    clean_folder_name,
    expand_date_tokens,
    join_path,
    normalize_path,
)


def test_allocate_returns_desired_name_when_free() -> None:
    allocator = FolderAllocator(lambda path: False)
    assert allocator.allocate("", "notes") == "notes"


def test_allocate_adds_suffix_on_collision() -> None:
    existing = {"notes"}
    allocator = FolderAllocator(existing.__contains__)
    assert allocator.allocate("", "notes") == "notes_1"


def test_allocate_skips_every_taken_suffix() -> None:
    existing = {"attachments/report", "attachments/report_1", "attachments/report_2"}
    allocator = FolderAllocator(existing.__contains__)
    result = allocator.allocate("attachments/", "report")
    assert result == "attachments/report_3"
    assert result not in existing


def test_allocate_strips_illegal_characters() -> None:
    allocator = FolderAllocator(lambda path: False)
    assert allocator.allocate("base", "#tag [draft]: v2?") == "base/tag draft v2"


def test_allocate_is_deterministic_for_the_same_existence_answers() -> None:
    existing = {"a/doc"}
    allocator = FolderAllocator(existing.__contains__)
    assert allocator.allocate("a", "doc") == allocator.allocate("a", "doc") == "a/doc_1"


def test_clean_folder_name_falls_back_when_nothing_is_left() -> None:
    assert clean_folder_name("###") == "pdf"


def test_normalize_and_join_paths() -> None:
    assert normalize_path("//a\\b//c/") == "a/b/c"
    assert join_path("", "x") == "x"
    assert join_path("a/", "/b") == "a/b"


def test_expand_date_tokens() -> None:
    moment = datetime(2024, 3, 9, 15, 30)
    assert expand_date_tokens("att/{{date}}", moment) == "att/2024-03-09"
    assert expand_date_tokens("att/{{date:%Y%m}}/x", moment) == "att/202403/x"
    assert expand_date_tokens("plain", moment) == "plain"


def test_attachment_base_path_variants() -> None:
    moment = datetime(2024, 1, 2)
    assert attachment_base_path("", "notes/daily", moment) == "notes/daily"
    assert attachment_base_path("./img", "notes", moment) == "notes/img"
    assert attachment_base_path("assets/{{date}}", "notes", moment) == "assets/2024-01-02"


@pytest.mark.asyncio
async def test_local_storage_round_trip(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path)
    assert not storage.exists("out")
    storage.create_folder("out")
    assert storage.exists("out")

    await storage.write_binary("out/page_1.png", b"\x89PNG")
    assert (tmp_path / "out" / "page_1.png").read_bytes() == b"\x89PNG"


def test_local_storage_refuses_existing_folder(tmp_path: Path) -> None:
    (tmp_path / "taken").mkdir()
    with pytest.raises(StorageError):
        LocalStorage(tmp_path).create_folder("taken")


@pytest.mark.asyncio
async def test_local_storage_write_failure_is_a_storage_error(tmp_path: Path) -> None:
    with pytest.raises(StorageError):
        await LocalStorage(tmp_path).write_binary("missing/page_1.png", b"data")
