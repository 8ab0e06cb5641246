"""Structured concurrency helpers for running a bounded group of async jobs."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TypeVar

from tqdm import tqdm

from .log_utils import logger


class ProgressReporter(Protocol):
    """Lightweight progress reporter abstraction."""

    def start(self, total: int) -> None: ...

    def increment(self) -> None: ...

    def close(self) -> None: ...


class TqdmProgressReporter:
    """Progress reporter backed by tqdm.

    ``close`` is idempotent so callers can dismiss the bar from a ``finally``
    block regardless of whether ``start`` ran.
    """

    def __init__(self, desc: str, *, unit: str = "page") -> None:
        self._desc = desc
        self._unit = unit
        self._pbar: tqdm | None = None

    @property
    def active(self) -> bool:
        return self._pbar is not None

    def start(self, total: int) -> None:
        self.close()
        self._pbar = tqdm(
            total=total,
            desc=self._desc,
            unit=self._unit,
            smoothing=0,
            leave=False,
        )

    def increment(self) -> None:
        if self._pbar is not None:
            self._pbar.update(1)

    def close(self) -> None:
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None


T = TypeVar("T")
A = TypeVar("A")


def _first_leaf(group: BaseExceptionGroup) -> BaseException:
    exc: BaseException = group
    while isinstance(exc, BaseExceptionGroup):
        exc = exc.exceptions[0]
    return exc


async def gather_in_order(
    fn: Callable[[A], Awaitable[T]],
    items: Sequence[A],
) -> list[T]:
    """Run ``fn`` over every item concurrently and return results in item order.

    Results are written into a pre-sized list addressed by submission index,
    so completion order never leaks into the returned sequence. The first
    failure cancels the remaining jobs and is re-raised as-is rather than
    wrapped in an ``ExceptionGroup``.
    """
    if not items:
        return []

    results: list[T | None] = [None] * len(items)

    async def job(index: int, item: A) -> None:
        results[index] = await fn(item)

    try:
        async with asyncio.TaskGroup() as tg:
            for index, item in enumerate(items):
                tg.create_task(job(index, item))
    except BaseExceptionGroup as group:
        first = _first_leaf(group)
        if len(group.exceptions) > 1:
            logger.debug(
                f"{len(group.exceptions)} concurrent jobs failed; re-raising the first: {first!r}"
            )
        raise first from None

    return results  # type: ignore[return-value]


__all__ = [
    "ProgressReporter",
    "TqdmProgressReporter",
    "gather_in_order",
]
