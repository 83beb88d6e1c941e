"""
Read models over all partitions: the full date tree and the paged history.
"""

import logging
from pathlib import Path

import anyio

from zuza.models import DayEntry, DaySummary
from zuza.store.fanout import fan_out
from zuza.store.keys import validate_date
from zuza.store.partitions import ObjectFilter, all_objects, list_partition, list_partition_dates


async def build_tree(
    root: Path, filter: ObjectFilter | None = None, limiter: anyio.CapacityLimiter | None = None
) -> list[DayEntry]:
    """
    Every non-empty (after filtering) date partition with its objects.

    All partitions are scanned concurrently. Days are returned in ascending date order,
    although callers should not depend on that.
    """
    filter = filter or all_objects
    dates = sorted(await list_partition_dates(root, limiter))
    per_date = await fan_out(lambda date: list_partition(root, date, filter, limiter), dates)
    return [DayEntry.for_date(date, objects) for date, objects in zip(dates, per_date) if objects]


async def list_paged(
    root: Path,
    limit: int,
    filter: ObjectFilter | None = None,
    older_than: str | None = None,
    limiter: anyio.CapacityLimiter | None = None,
) -> list[DayEntry]:
    """
    The most recent days (strictly before older_than, if given) holding matching objects.

    Days are visited newest first, one at a time, and scanning stops as soon as at
    least limit objects were collected. The day that reaches the limit is returned in
    full, so the result can hold more than limit objects. To get the next page, pass
    the date of the last (oldest) day returned as older_than; an empty list means
    there is nothing older.
    """
    if limit < 1:
        raise ValueError(f"limit should be a positive number, not {limit}")
    filter = filter or all_objects
    dates = sorted(await list_partition_dates(root, limiter))
    if older_than is not None:
        validate_date(older_than)
        dates = [d for d in dates if d < older_than]

    result: list[DayEntry] = []
    remaining = limit
    for date in reversed(dates):
        objects = await list_partition(root, date, filter, limiter)
        if not objects:
            continue
        result.append(DayEntry.for_date(date, objects))
        remaining -= len(objects)
        if remaining <= 0:
            break
    logging.debug(f"Paged listing before {older_than}: {len(result)} days, {limit - remaining} objects")
    return result


def summarize(days: list[DayEntry]) -> list[DaySummary]:
    """Replace the object lists by their lengths, newest day first"""
    summaries = [DaySummary(date=d.date, year=d.year, month=d.month, day=d.day, size=len(d.objects)) for d in days]
    return sorted(summaries, key=lambda s: s.date, reverse=True)
