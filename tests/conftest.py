"""In-memory collaborators shared by the pipeline tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from PIL import Image
import pytest

from pdf2note.utils.pdf.document import TextFragment, Viewport


@dataclass
class FlightRecorder:
    in_flight: int = 0
    max_in_flight: int = 0
    text_in_flight: int = 0
    max_text_in_flight: int = 0
    completion_order: list[int] = field(default_factory=list)
    released: list[int] = field(default_factory=list)


class FakePage:
    def __init__(
        self,
        page_number: int,
        fragments: Sequence[TextFragment],
        recorder: FlightRecorder,
        *,
        width: int = 60,
        height: int = 80,
        delay: float = 0.0,
        text_delay: float = 0.0,
        fail: bool = False,
    ) -> None:
        self.page_number = page_number
        self._text_delay = text_delay
        self._fragments = list(fragments)
        self._recorder = recorder
        self._width = width
        self._height = height
        self._delay = delay
        self._fail = fail

    def viewport(self, scale: float) -> Viewport:
        return Viewport(
            width=int(self._width * scale), height=int(self._height * scale), scale=scale
        )

    async def text_fragments(self) -> list[TextFragment]:
        recorder = self._recorder
        recorder.text_in_flight += 1
        recorder.max_text_in_flight = max(recorder.max_text_in_flight, recorder.text_in_flight)
        try:
            await asyncio.sleep(self._text_delay)
        finally:
            recorder.text_in_flight -= 1
        return list(self._fragments)

    async def render(self, surface: Image.Image, viewport: Viewport) -> None:
        self._recorder.in_flight += 1
        self._recorder.max_in_flight = max(self._recorder.max_in_flight, self._recorder.in_flight)
        try:
            await asyncio.sleep(self._delay)
            if self._fail:
                raise RuntimeError(f"cannot draw page {self.page_number}")
            surface.paste((0, 0, 0), (0, 0, 5, 5))
        finally:
            self._recorder.in_flight -= 1
        self._recorder.completion_order.append(self.page_number)

    def release_resources(self) -> None:
        self._recorder.released.append(self.page_number)


class FakeDocument:
    def __init__(
        self,
        source_name: str,
        fragments_by_page: Sequence[Sequence[TextFragment]],
        *,
        delays: Sequence[float] | None = None,
        failing_pages: Sequence[int] = (),
        text_delay: float = 0.0,
        width: int = 60,
        height: int = 80,
    ) -> None:
        self.source_name = source_name
        self._fragments = [list(f) for f in fragments_by_page]
        self._delays = list(delays) if delays is not None else [0.0] * len(self._fragments)
        self._failing = set(failing_pages)
        self._text_delay = text_delay
        self._width = width
        self._height = height
        self.recorder = FlightRecorder()

    @property
    def page_count(self) -> int:
        return len(self._fragments)

    def get_page(self, page_number: int) -> FakePage:
        return FakePage(
            page_number,
            self._fragments[page_number - 1],
            self.recorder,
            width=self._width,
            height=self._height,
            delay=self._delays[page_number - 1],
            text_delay=self._text_delay,
            fail=page_number in self._failing,
        )


class MemoryStorage:
    def __init__(self, existing: Sequence[str] = ()) -> None:
        self.existing: set[str] = set(existing)
        self.folders: list[str] = []
        self.files: dict[str, bytes] = {}

    def exists(self, path: str) -> bool:
        return path in self.existing or path in self.folders or path in self.files

    def create_folder(self, path: str) -> None:
        self.folders.append(path)

    async def write_binary(self, path: str, data: bytes) -> None:
        await asyncio.sleep(0)
        self.files[path] = data


class RecordingProgress:
    def __init__(self) -> None:
        self.total: int | None = None
        self.ticks = 0
        self.closed = 0

    def start(self, total: int) -> None:
        self.total = total

    def increment(self) -> None:
        self.ticks += 1

    def close(self) -> None:
        self.closed += 1


class ListNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


def frag(text: str, size: float) -> TextFragment:
    return TextFragment(text=text, font_size=size)


@pytest.fixture
def make_document() -> Callable[..., FakeDocument]:
    return FakeDocument


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def notifier() -> ListNotifier:
    return ListNotifier()
