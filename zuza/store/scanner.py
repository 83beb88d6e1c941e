"""
List the immediate contents of a directory.

The actual scandir/stat calls are blocking, so they run in a worker thread.
Passing a CapacityLimiter bounds how many of those threads a single fan-out can
occupy at once.
"""

import logging
import os
import stat
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import anyio
import anyio.to_thread

from zuza.store.errors import translate_oserror

VISIBLE_BIT = stat.S_IRGRP


def is_visible_mode(mode: int) -> bool:
    return bool(mode & VISIBLE_BIT)


@dataclass
class Entry:
    name: str
    size: int
    modified_at: datetime
    mode: int

    @property
    def is_visible(self) -> bool:
        return is_visible_mode(self.mode)


@dataclass
class DirectoryListing:
    subdirectories: list[Entry] = field(default_factory=list)
    leaves: list[Entry] = field(default_factory=list)


def _entry(name: str, st: os.stat_result) -> Entry:
    return Entry(
        name=name,
        size=st.st_size,
        modified_at=datetime.fromtimestamp(st.st_mtime, UTC),
        mode=stat.S_IMODE(st.st_mode),
    )


def _scan(path: Path) -> DirectoryListing:
    listing = DirectoryListing()
    with os.scandir(path) as entries:
        for e in entries:
            try:
                st = e.stat()
            except FileNotFoundError:
                # Deleted between readdir and stat
                logging.debug(f"Entry {e.path} disappeared while scanning")
                continue
            if stat.S_ISDIR(st.st_mode):
                listing.subdirectories.append(_entry(e.name, st))
            else:
                listing.leaves.append(_entry(e.name, st))
    return listing


async def scan_directory(path: Path, limiter: anyio.CapacityLimiter | None = None) -> DirectoryListing:
    """
    Return the sub-directories and leaf files directly under path.

    Raises NotFound if path does not exist and StoreIOError for any other failure.
    """
    try:
        return await anyio.to_thread.run_sync(_scan, path, limiter=limiter)
    except OSError as e:
        raise translate_oserror(e, f"directory {path}") from e
