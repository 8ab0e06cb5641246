"""Sequential fold that turns ordered render results into link records."""

from __future__ import annotations

from collections.abc import Sequence

from .headers import DedupPolicy
from .links import build_link
from .models import LinkRecord, RenderResult


def post_process_chunk(
    results: Sequence[RenderResult],
    state: str,
    *,
    dedup: DedupPolicy,
    heading_prefix: str,
) -> tuple[list[LinkRecord], str]:
    """Apply deduplication and link formatting to ``results`` in page order.

    ``state`` is the last accepted header carried over from the previous
    chunk; the updated value is returned for the next one.
    """
    records: list[LinkRecord] = []
    for result in sorted(results, key=lambda r: r.page_number):
        final_header, state = dedup.apply(result.raw_header, state)
        records.append(
            LinkRecord(
                page_number=result.page_number,
                final_header=final_header,
                markdown_link=build_link(result, final_header, heading_prefix),
            )
        )
    return records, state


__all__ = ["post_process_chunk"]
