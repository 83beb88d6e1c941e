import logging
from pathlib import Path
from typing import Any, AsyncIterator

import anyio

from zuza.models import DayEntry, ObjectRecord, ObjectStat
from zuza.store import objects, partitions, readmodels
from zuza.store.objects import ByteSource
from zuza.store.partitions import ObjectFilter

DEFAULT_SCAN_CONCURRENCY = 64


class FileStore:
    """
    A content store rooted at one directory.

    The root must already exist; the store never creates it. Create one instance per
    root and pass it to whatever needs it.
    """

    def __init__(self, root: Path | str, scan_concurrency: int = DEFAULT_SCAN_CONCURRENCY):
        self.root = Path(root)
        self.scan_concurrency = scan_concurrency
        self._limiter: anyio.CapacityLimiter | None = None

    @property
    def limiter(self) -> anyio.CapacityLimiter:
        """Bounds the number of directory scans running in worker threads at once"""
        # created lazily, inside the event loop that uses it
        if self._limiter is None:
            self._limiter = anyio.CapacityLimiter(self.scan_concurrency)
        return self._limiter

    def __repr__(self) -> str:
        return f"FileStore({str(self.root)!r})"

    def check_root(self) -> None:
        if not self.root.is_dir():
            raise ValueError(f"Store root {self.root} does not exist or is not a directory")
        logging.debug(f"Using store root {self.root}")

    async def stat(self, file_id: str) -> ObjectStat:
        return await objects.stat_object(self.root, file_id)

    async def write(self, file_id: str, data: ByteSource, visible: bool = False) -> ObjectStat:
        return await objects.write_object(self.root, file_id, data, visible)

    async def read(self, file_id: str, sink: Any) -> int:
        return await objects.read_object(self.root, file_id, sink)

    async def iter_content(self, file_id: str, chunk_size: int = objects.CHUNK_SIZE) -> AsyncIterator[bytes]:
        return await objects.iter_object(self.root, file_id, chunk_size)

    async def set_visibility(self, file_id: str, visible: bool) -> None:
        await objects.set_visibility(self.root, file_id, visible)

    async def delete(self, file_id: str) -> None:
        await objects.delete_object(self.root, file_id)

    async def list_partition_dates(self) -> list[str]:
        return await partitions.list_partition_dates(self.root, self.limiter)

    async def list_partition(self, date: str, filter: ObjectFilter | None = None) -> list[ObjectRecord]:
        return await partitions.list_partition(self.root, date, filter, self.limiter)

    async def build_tree(self, filter: ObjectFilter | None = None) -> list[DayEntry]:
        return await readmodels.build_tree(self.root, filter, self.limiter)

    async def list_paged(
        self, limit: int, filter: ObjectFilter | None = None, older_than: str | None = None
    ) -> list[DayEntry]:
        return await readmodels.list_paged(self.root, limit, filter, older_than, self.limiter)
