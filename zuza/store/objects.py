"""
Point operations on a single stored object.

Objects live at ``<root>/<date>/<owner>/<name>``. Whether an object is visible to
others is kept in the group-read permission bit of the file itself: 0o640 is
visible, 0o600 is hidden. Nothing here takes a lock; operations on different
identifiers never touch the same file, and for the same identifier the last
writer wins.

New content is streamed into a staging file under ``<root>/.incoming`` and moved
into place with an atomic rename once complete, so readers never see a partially
written object. The staging directory is ignored by all listings since its name
is not a date.
"""

import inspect
import logging
import stat
from pathlib import Path
from typing import Any, AsyncIterable, AsyncIterator, Iterable
from uuid import uuid4

import anyio
import anyio.to_thread

from zuza.models import ObjectStat
from zuza.store.errors import NotFound, translate_oserror
from zuza.store.keys import parse_file_id
from zuza.store.scanner import VISIBLE_BIT, is_visible_mode

VISIBLE_MODE = 0o640
HIDDEN_MODE = 0o600
INCOMING_DIR = ".incoming"
CHUNK_SIZE = 64 * 1024

ByteSource = bytes | Iterable[bytes] | AsyncIterable[bytes]


def object_path(root: Path, file_id: str) -> Path:
    key = parse_file_id(file_id)
    return root / key.date / key.owner / key.name


async def ensure_directory(path: Path) -> None:
    """Create path if needed. Concurrent creators do not fail each other."""
    try:
        await anyio.Path(path).mkdir(exist_ok=True)
    except OSError as e:
        raise translate_oserror(e, f"directory {path}") from e


async def stat_object(root: Path, file_id: str) -> ObjectStat:
    path = object_path(root, file_id)
    try:
        st = await anyio.Path(path).stat()
    except OSError as e:
        raise translate_oserror(e, f"object {file_id}") from e
    if not stat.S_ISREG(st.st_mode):
        raise NotFound(f"object {file_id} does not exist")
    return ObjectStat(file_id=file_id, size=st.st_size, visible=is_visible_mode(st.st_mode))


async def _iter_source(data: ByteSource) -> AsyncIterator[bytes]:
    if isinstance(data, (bytes, bytearray, memoryview)):
        yield bytes(data)
    elif hasattr(data, "__aiter__"):
        async for chunk in data:
            yield chunk
    else:
        # sync sources may block (e.g. file reads), so pull each chunk in a worker thread
        it = iter(data)
        while (chunk := await anyio.to_thread.run_sync(next, it, None)) is not None:
            yield chunk


async def _remove_staging(staging: Path) -> None:
    with anyio.CancelScope(shield=True):
        try:
            await anyio.Path(staging).unlink(missing_ok=True)
        except OSError:
            logging.exception(f"Could not remove staging file {staging}")


async def write_object(root: Path, file_id: str, data: ByteSource, visible: bool = False) -> ObjectStat:
    """
    Store data under file_id, replacing any existing object.

    The partition and owner directories are created as needed. The permission bits
    are set on the staging file before it is renamed to its final name.
    """
    key = parse_file_id(file_id)
    owner_dir = root / key.date / key.owner
    incoming = root / INCOMING_DIR
    await ensure_directory(root / key.date)
    await ensure_directory(owner_dir)
    await ensure_directory(incoming)

    staging = incoming / f"{uuid4().hex}.part"
    size = 0
    try:
        try:
            async with await anyio.open_file(staging, "xb") as f:
                async for chunk in _iter_source(data):
                    await f.write(chunk)
                    size += len(chunk)
            await anyio.Path(staging).chmod(VISIBLE_MODE if visible else HIDDEN_MODE)
            await anyio.Path(staging).replace(owner_dir / key.name)
        except OSError as e:
            raise translate_oserror(e, f"object {file_id}") from e
    except BaseException:
        await _remove_staging(staging)
        raise
    logging.info(f"Stored {file_id} ({size} bytes, {'visible' if visible else 'hidden'})")
    return ObjectStat(file_id=file_id, size=size, visible=visible)


async def _read_chunks(f: anyio.AsyncFile[bytes], file_id: str, chunk_size: int) -> AsyncIterator[bytes]:
    async with f:
        while True:
            try:
                chunk = await f.read(chunk_size)
            except OSError as e:
                raise translate_oserror(e, f"object {file_id}") from e
            if not chunk:
                break
            yield chunk


async def iter_object(root: Path, file_id: str, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    """
    Open the object and return an iterator over its content.

    The file is opened before this returns, so a missing object raises NotFound here
    rather than halfway through a response.
    """
    path = object_path(root, file_id)
    try:
        f = await anyio.open_file(path, "rb")
    except OSError as e:
        raise translate_oserror(e, f"object {file_id}") from e
    return _read_chunks(f, file_id, chunk_size)


async def read_object(root: Path, file_id: str, sink: Any, chunk_size: int = CHUNK_SIZE) -> int:
    """Copy the object into sink (anything with a sync or async write method). Returns the bytes copied."""
    copied = 0
    async for chunk in await iter_object(root, file_id, chunk_size):
        result = sink.write(chunk)
        if inspect.isawaitable(result):
            await result
        copied += len(chunk)
    return copied


async def set_visibility(root: Path, file_id: str, visible: bool) -> None:
    path = anyio.Path(object_path(root, file_id))
    try:
        mode = stat.S_IMODE((await path.stat()).st_mode)
        await path.chmod(mode | VISIBLE_BIT if visible else mode & ~VISIBLE_BIT)
    except OSError as e:
        raise translate_oserror(e, f"object {file_id}") from e
    logging.info(f"Made {file_id} {'visible' if visible else 'hidden'}")


async def delete_object(root: Path, file_id: str) -> None:
    """Remove the object. Deleting an object that is already gone is not an error."""
    path = anyio.Path(object_path(root, file_id))
    try:
        await path.unlink()
    except (FileNotFoundError, NotADirectoryError):
        logging.debug(f"Object {file_id} was already deleted")
        return
    except OSError as e:
        raise translate_oserror(e, f"object {file_id}") from e
    logging.info(f"Deleted {file_id}")
