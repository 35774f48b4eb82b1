"""Incremental selection of feed records newer than the watermark."""

from __future__ import annotations

from collections.abc import Iterable

from vote_spine.models import VoteRecord, Watermark


def select_new(
    records: Iterable[VoteRecord],
    watermark: Watermark,
    limit: int | None = None,
) -> list[VoteRecord]:
    """Return the records strictly newer than *watermark*, in feed order.

    A record from a later parliament is always new whatever its vote number;
    within the watermark's parliament only higher vote numbers are new.

    Args:
        records: Normalized records in feed order (newest first).
        watermark: Highest ``(parliament, number)`` already persisted.
        limit: Keep only the first *limit* selected records, i.e. the most
            recent ones. ``None`` keeps everything.

    Returns:
        The selected subsequence; empty when nothing is new.
    """
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")

    selected = [record for record in records if watermark.admits(record)]
    if limit is not None:
        selected = selected[:limit]
    return selected
