"""Chunked, order-preserving scheduling of page workers."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable

from pdf2note.utils.concurrency import gather_in_order
from pdf2note.utils.log_utils import logger

from .models import RenderJob, RenderResult


def effective_limit(concurrency_limit: int, page_count: int) -> int:
    """Clamp the requested chunk size into ``1..page_count``."""
    return max(1, min(concurrency_limit, max(page_count, 1)))


def partition_pages(page_count: int, chunk_size: int) -> list[list[int]]:
    pages = list(range(1, page_count + 1))
    return [pages[i : i + chunk_size] for i in range(0, page_count, chunk_size)]


class ChunkedScheduler:
    """Render pages in consecutive chunks of bounded size.

    Within a chunk every page runs concurrently; results come back in page
    order. :meth:`chunks` is an async generator, so the next chunk is only
    launched once the consumer has finished with the previous one and asks
    for more. Any failure aborts the run.
    """

    def __init__(self, *, concurrency_limit: int, scale: float) -> None:
        self._concurrency_limit = concurrency_limit
        self._scale = scale

    async def chunks(
        self,
        page_count: int,
        worker: Callable[[RenderJob], Awaitable[RenderResult]],
    ) -> AsyncIterator[list[RenderResult]]:
        if page_count <= 0:
            return
        chunk_size = effective_limit(self._concurrency_limit, page_count)
        batches = partition_pages(page_count, chunk_size)
        logger.debug(f"Scheduling {page_count} pages in {len(batches)} chunk(s) of <= {chunk_size}")
        for batch in batches:
            jobs = [RenderJob(page_number=page, scale=self._scale) for page in batch]
            yield await gather_in_order(worker, jobs)


__all__ = ["ChunkedScheduler", "effective_limit", "partition_pages"]
