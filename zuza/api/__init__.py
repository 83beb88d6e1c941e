"""Zuza file sharing API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from zuza.api.auth import OwnerResolver, token_resolver
from zuza.api.files import app_files
from zuza.config import get_settings
from zuza.store import FileStore, NotFound, StoreIOError


def create_app(store: FileStore | None = None, resolve_owner: OwnerResolver | None = None) -> FastAPI:
    """
    Create the API application for the given store.

    If store or resolve_owner are not given, they are created from the settings:
    a store at the configured datastore, and owners looked up in the configured tokens.
    """
    settings = get_settings()
    if store is None:
        store = FileStore(settings.datastore, scan_concurrency=settings.scan_concurrency)
    if resolve_owner is None:
        resolve_owner = token_resolver(settings.tokens)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.info(f"Serving files from {store.root}")
        store.check_root()
        yield

    app = FastAPI(
        title="Zuza",
        description=__doc__ if __doc__ else "",
        openapi_tags=[
            dict(name="files", description="Endpoints to upload, list, change, and download files"),
        ],
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.resolve_owner = resolve_owner
    app.include_router(app_files)

    @app.exception_handler(ValueError)
    async def value_error_exception_handler(request: Request, exc: ValueError):
        # Includes InvalidKey
        return JSONResponse(
            status_code=400,
            content={"message": str(exc)},
        )

    @app.exception_handler(NotFound)
    async def not_found_exception_handler(request: Request, exc: NotFound):
        return JSONResponse(
            status_code=404,
            content={"message": str(exc)},
        )

    @app.exception_handler(StoreIOError)
    async def io_error_exception_handler(request: Request, exc: StoreIOError):
        logging.error(f"Storage error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"message": "Could not access the file store"},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc) -> JSONResponse:
        return JSONResponse(
            status_code=422, content={"message": "There was an issue with the data you sent.", "fields_invalid": exc.errors()}
        )

    return app
