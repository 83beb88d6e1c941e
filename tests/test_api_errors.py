import re

import pytest

from zuza.store import StoreIOError
from zuza.store import readmodels
from tests.tools import SAMPLE, build_headers


async def check(client, url, status, message, method="post", user=None, **kargs):
    headers = build_headers(user=user) if user else kargs.pop("headers", {})
    r = await getattr(client, method)(url, headers=headers, **kargs)
    assert r.status_code == status, f"{method.upper()} {url} returned {r.status_code}, expected {status}: {r.text}"
    if not re.search(message, r.text.lower()):
        raise AssertionError(f"Status {r.status_code} error {repr(r.text)} does not match pattern {repr(message)}")


@pytest.mark.anyio
async def test_unauthenticated(client):
    await check(client, "/api/tree", 401, "requires an authorization token", method="get")
    await check(client, "/api/tree", 401, "invalid", method="get", headers={"Authorization": "Zuza wrong"})
    await check(client, "/api/tree", 401, "invalid", method="get", params={"authorization": "wrong"})
    await check(client, "/api/tree", 401, "requires", method="get", headers={"Authorization": "Basic token-mike"})


@pytest.mark.anyio
async def test_bearer_token(client):
    r = await client.get("/api/tree", headers={"Authorization": "Bearer token-mike"})
    assert r.status_code == 200


@pytest.mark.anyio
async def test_invalid_keys(client, store):
    await check(client, "/api/files", 400, "invalid date", method="get", user="mike", params={"date": "2013-01-01"})
    await check(client, "/api/download", 400, "invalid file id", method="get", user="mike", params={"fileId": "../x"})
    await check(client, "/api/dashboard", 400, "invalid date", method="get", user="mike", params={"olderThan": "x"})
    await check(
        client,
        "/api/files",
        400,
        "invalid file id",
        user="mike",
        json={"action": "delete", "fileIds": ["20130101/mike/../../etc"]},
    )


@pytest.mark.anyio
async def test_not_found(client, store):
    params = {"fileId": "20130101/mike/blah.txt"}
    await check(client, "/api/download", 404, "does not exist", method="get", user="mike", params=params)
    body = {"action": "makePublic", "fileIds": ["20130101/mike/blah.txt"]}
    await check(client, "/api/files", 404, "does not exist", user="mike", json=body)
    # deleting a missing file is fine
    r = await client.post(
        "/api/files", headers=build_headers(user="mike"), json={"action": "delete", "fileIds": ["20130101/mike/x"]}
    )
    assert r.status_code == 204


@pytest.mark.anyio
async def test_invalid_request(client):
    await check(client, "/api/files", 422, "issue with the data", user="mike", json={"action": "burn", "fileIds": []})
    await check(client, "/api/history", 422, "issue with the data", method="get", user="mike", params={"limit": 0})


@pytest.mark.anyio
async def test_storage_error(client, store, monkeypatch):
    await store.write("20130101/mike/blah.txt", SAMPLE)

    async def failing_list_partition(*args, **kargs):
        raise StoreIOError("I/O error on /secret/path")

    monkeypatch.setattr(readmodels, "list_partition", failing_list_partition)
    await check(client, "/api/tree", 500, "could not access the file store", method="get", user="mike")
