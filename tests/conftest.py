import pytest
from httpx import ASGITransport, AsyncClient

from zuza.api import create_app
from zuza.api.auth import token_resolver
from zuza.store import FileStore
from tests.tools import SAMPLE, TOKENS

# One file per day, owned by different users
DATED_FILES = [
    "20130101/mike/blah.txt",
    "20130102/liza/blah.txt",
    "20130103/alice/blah.txt",
    "20130104/mike/blah.txt",
]


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def root(tmp_path):
    """An empty store root"""
    root = tmp_path / "datastore"
    root.mkdir()
    return root


@pytest.fixture()
def store(root):
    return FileStore(root)


@pytest.fixture()
async def dated_store(store):
    """A store with the files in DATED_FILES, all private"""
    for file_id in DATED_FILES:
        await store.write(file_id, SAMPLE)
    return store


@pytest.fixture()
async def client(store):
    app = create_app(store, token_resolver(TOKENS))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test", follow_redirects=False) as client:
        yield client
