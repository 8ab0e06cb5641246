from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from pdf2note.cli.main import app
from pdf2note.utils.log_utils import (
    DEFAULT_LOG_FILE,
    LOG_FILE_ENV,
    LOG_LEVEL_ENV,
    configure_logging,
    console_level,
    log_file_path,
    logger,
)


@pytest.fixture(autouse=True)
def _restore_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    monkeypatch.delenv(LOG_FILE_ENV, raising=False)
    yield
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    monkeypatch.delenv(LOG_FILE_ENV, raising=False)
    configure_logging()


def test_console_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    assert console_level() == "INFO"
    assert console_level(verbose=True) == "DEBUG"
    monkeypatch.setenv(LOG_LEVEL_ENV, "warning")
    assert console_level() == "WARNING"
    assert console_level(verbose=True) == "DEBUG"
    monkeypatch.setenv(LOG_LEVEL_ENV, "chatty")
    assert console_level() == "INFO"


def test_log_file_path_resolution(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert log_file_path() == Path(DEFAULT_LOG_FILE).resolve()
    monkeypatch.setenv(LOG_FILE_ENV, str(tmp_path / "env.log"))
    assert log_file_path() == (tmp_path / "env.log").resolve()
    assert log_file_path(tmp_path / "flag.log") == (tmp_path / "flag.log").resolve()
    monkeypatch.setenv(LOG_FILE_ENV, "")
    assert log_file_path() is None
    assert log_file_path("") is None


def test_debug_messages_reach_the_log_file(tmp_path: Path) -> None:
    target = tmp_path / "logs" / "run.log"
    assert configure_logging(log_file=target) == target.resolve()

    logger.debug("rendered page 7")
    logger.complete()

    assert "rendered page 7" in target.read_text(encoding="utf-8")


def test_disabled_file_sink(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_FILE_ENV, "")
    assert configure_logging() is None


def test_cli_log_file_option(tmp_path: Path) -> None:
    target = tmp_path / "cli.log"
    args = ["--log-file", str(target), "show-settings"]
    assert app([*args, "--settings-file", str(tmp_path / "none.json")], standalone_mode=False) == 0
    logger.complete()
    assert target.is_file()
