"""
Enumerate the objects of one date partition.

A partition is ``<root>/<date>``, holding one sub-directory per owner. The owner
directories are scanned concurrently; the result is only produced once every scan
has finished.
"""

import logging
from pathlib import Path
from typing import Callable

import anyio

from zuza.models import ObjectRecord
from zuza.store.errors import InvalidKey, NotFound
from zuza.store.fanout import fan_out
from zuza.store.keys import format_file_id, is_date, validate_date
from zuza.store.scanner import scan_directory

ObjectFilter = Callable[[ObjectRecord], bool]


def all_objects(record: ObjectRecord) -> bool:
    return True


def is_visible(record: ObjectRecord) -> bool:
    return record.visible


def owned_by(owner: str) -> ObjectFilter:
    def _filter(record: ObjectRecord) -> bool:
        return record.owner == owner

    return _filter


async def list_partition_dates(root: Path, limiter: anyio.CapacityLimiter | None = None) -> list[str]:
    """All date partitions under root, in no particular order"""
    listing = await scan_directory(root, limiter)
    return [d.name for d in listing.subdirectories if is_date(d.name)]


async def _owner_objects(root: Path, date: str, owner: str, limiter: anyio.CapacityLimiter | None) -> list[ObjectRecord]:
    try:
        listing = await scan_directory(root / date / owner, limiter)
    except NotFound:
        return []
    records = []
    for f in listing.leaves:
        try:
            file_id = format_file_id(date, owner, f.name)
        except InvalidKey:
            # e.g. legacy names containing "..", which cannot be addressed as objects
            logging.warning(f"Skipping {root / date / owner / f.name}: not a valid object name")
            continue
        records.append(
            ObjectRecord(
                file_id=file_id,
                name=f.name,
                size=f.size,
                visible=f.is_visible,
                owner=owner,
                modified_at=f.modified_at,
            )
        )
    return records


async def list_partition(
    root: Path,
    date: str,
    filter: ObjectFilter | None = None,
    limiter: anyio.CapacityLimiter | None = None,
) -> list[ObjectRecord]:
    """
    List the objects stored on date that pass filter, oldest first.

    A partition that does not exist is simply empty. If scanning any owner fails
    with an I/O error, that error is raised and nothing is returned.
    """
    validate_date(date)
    filter = filter or all_objects
    try:
        listing = await scan_directory(root / date, limiter)
    except NotFound:
        return []
    owners = [d.name for d in listing.subdirectories]
    per_owner = await fan_out(lambda owner: _owner_objects(root, date, owner, limiter), owners)
    records = [r for records in per_owner for r in records if filter(r)]
    records.sort(key=lambda r: (r.modified_at, r.file_id))
    return records
