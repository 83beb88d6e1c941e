"""Helper methods for authentication."""

import inspect
import logging
from typing import Annotated, Awaitable, Callable

from fastapi import Header, HTTPException, Query, Request

from zuza.store import FileStore

OwnerResolver = Callable[[str], str | Awaitable[str]]

TOKEN_SCHEMES = ("Zuza ", "Bearer ")


class InvalidToken(ValueError):
    pass


def token_resolver(tokens: dict[str, str]) -> OwnerResolver:
    """Resolve owners from a fixed token -> owner mapping"""

    def resolve(token: str) -> str:
        try:
            return tokens[token]
        except KeyError:
            raise InvalidToken("Unknown token")

    return resolve


def get_store(request: Request) -> FileStore:
    return request.app.state.store


def _token_from_header(authorization: str) -> str | None:
    for scheme in TOKEN_SCHEMES:
        if authorization.startswith(scheme):
            return authorization[len(scheme) :].strip()
    return None


async def authenticated_owner(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
    query_token: Annotated[
        str | None,
        Query(alias="authorization", description="Token for requests that cannot set headers, e.g. downloads"),
    ] = None,
) -> str:
    """
    Dependency that returns the owner id of the caller.

    The token is normally passed as an "Authorization: Zuza <token>" (or Bearer) header.
    Downloads are plain browser requests, so there the token can also be given as the
    'authorization' query parameter.
    """
    token = _token_from_header(authorization) if authorization else None
    if token is None:
        token = query_token
    if not token:
        raise HTTPException(status_code=401, detail="This endpoint requires an authorization token")
    try:
        owner = request.app.state.resolve_owner(token)
        if inspect.isawaitable(owner):
            owner = await owner
    except InvalidToken as e:
        logging.warning(f"Authentication failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid authorization token")
    return owner
