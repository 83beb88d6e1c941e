"""API Endpoints for uploading, browsing and downloading files."""

from typing import Annotated, AsyncIterator, Literal
from urllib.parse import quote

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import Field

from zuza.api.auth import authenticated_owner, get_store
from zuza.config import get_settings
from zuza.models import CamelModel, DayEntry, DaySummary, ObjectRecord, ObjectStat
from zuza.store import FileStore, is_visible, owned_by
from zuza.store.keys import date_key, format_file_id, parse_file_id, sanitize_name
from zuza.store.readmodels import summarize

app_files = APIRouter(prefix="/api", tags=["files"])


class FileAction(CamelModel):
    action: Literal["delete", "makePublic", "makePrivate"] = Field(description="What to do with the files")
    file_ids: list[str] = Field(description="Identifiers (date/owner/name) of the files, which must be your own")


async def _limited(upload: UploadFile, limit: int, chunk_size: int) -> AsyncIterator[bytes]:
    total = 0
    while chunk := await upload.read(chunk_size):
        total += len(chunk)
        if total > limit:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File {upload.filename!r} is larger than the limit of {limit} bytes",
            )
        yield chunk


@app_files.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload(
    files: Annotated[list[UploadFile], File(description="The files to upload")],
    public: Annotated[bool, Query(description="Make the uploaded files visible to everyone")] = False,
    owner: str = Depends(authenticated_owner),
    store: FileStore = Depends(get_store),
) -> list[ObjectStat]:
    """
    Upload one or more files.

    Files are stored under today's date (UTC). Uploading a file with the same name
    on the same day replaces the earlier one.
    """
    settings = get_settings()
    date = date_key()
    result = []
    for f in files:
        file_id = format_file_id(date, owner, sanitize_name(f.filename or ""))
        data = _limited(f, settings.file_size_limit, settings.chunk_size)
        result.append(await store.write(file_id, data, visible=public))
    return result


@app_files.get("/files")
async def list_files(
    date: Annotated[str, Query(description="Date (YYYYMMDD) to list files for")],
    public: Annotated[bool, Query(description="List everyone's visible files instead of your own")] = False,
    owner: str = Depends(authenticated_owner),
    store: FileStore = Depends(get_store),
) -> list[ObjectRecord]:
    """List the files of a single day, oldest first."""
    return await store.list_partition(date, is_visible if public else owned_by(owner))


@app_files.post("/files", status_code=status.HTTP_204_NO_CONTENT)
async def modify_files(
    body: Annotated[FileAction, Body(...)],
    owner: str = Depends(authenticated_owner),
    store: FileStore = Depends(get_store),
):
    """Delete files, or change whether they are visible. All files are checked before any is changed."""
    for key in [parse_file_id(file_id) for file_id in body.file_ids]:
        if key.owner != owner:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail=f"File {key.file_id} does not belong to {owner}"
            )
    for file_id in body.file_ids:
        if body.action == "delete":
            await store.delete(file_id)
        else:
            await store.set_visibility(file_id, body.action == "makePublic")


@app_files.get("/dashboard")
async def dashboard(
    older_than: Annotated[str | None, Query(alias="olderThan", description="Only return days before this date")] = None,
    _owner: str = Depends(authenticated_owner),
    store: FileStore = Depends(get_store),
) -> list[DayEntry]:
    """
    Everyone's visible files, most recent day first.

    Returns whole days until at least max_files files are included. To get the next page,
    pass the date of the last day as olderThan.
    """
    return await store.list_paged(get_settings().max_files, is_visible, older_than)


@app_files.get("/history")
async def history(
    older_than: Annotated[str | None, Query(alias="olderThan", description="Only return days before this date")] = None,
    limit: Annotated[int | None, Query(gt=0, description="Number of files to return (default: max_files)")] = None,
    owner: str = Depends(authenticated_owner),
    store: FileStore = Depends(get_store),
) -> list[DayEntry]:
    """Your own files, most recent day first, paged like the dashboard."""
    return await store.list_paged(limit or get_settings().max_files, owned_by(owner), older_than)


@app_files.get("/tree")
async def tree(
    public: Annotated[bool, Query(description="Count everyone's visible files instead of your own")] = False,
    owner: str = Depends(authenticated_owner),
    store: FileStore = Depends(get_store),
) -> list[DaySummary]:
    """Number of files per day, most recent day first."""
    days = await store.build_tree(is_visible if public else owned_by(owner))
    return summarize(days)


@app_files.get("/download")
async def download(
    file_id: Annotated[str, Query(alias="fileId", description="Identifier (date/owner/name) of the file")],
    owner: str = Depends(authenticated_owner),
    store: FileStore = Depends(get_store),
):
    """Download a file. You can download your own files and any visible file."""
    key = parse_file_id(file_id)
    stat = await store.stat(file_id)
    if key.owner != owner and not stat.visible:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"File {file_id} is not public")
    content = await store.iter_content(file_id, get_settings().chunk_size)
    return StreamingResponse(
        content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(key.name)}"},
    )
