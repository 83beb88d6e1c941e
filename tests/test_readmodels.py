import pytest

from zuza.store import InvalidKey, StoreIOError, is_visible, owned_by
from zuza.store import partitions
from zuza.store.readmodels import summarize
from tests.tools import SAMPLE


def by_date(days):
    return {d.date: d for d in days}


@pytest.mark.anyio
async def test_date_tree(dated_store):
    tree = await dated_store.build_tree()
    assert len(tree) == 4
    days = by_date(tree)
    for date, day in [("20130101", "01"), ("20130102", "02"), ("20130103", "03"), ("20130104", "04")]:
        assert len(days[date].objects) == 1
        assert days[date].year == "2013"
        assert days[date].month == "01"
        assert days[date].day == day


@pytest.mark.anyio
async def test_date_tree_hides_empty_directories(dated_store):
    await dated_store.delete("20130102/liza/blah.txt")
    tree = await dated_store.build_tree()
    assert set(by_date(tree)) == {"20130101", "20130103", "20130104"}
    pages = await dated_store.list_paged(100)
    assert [d.date for d in pages] == ["20130104", "20130103", "20130101"]


@pytest.mark.anyio
async def test_date_tree_filter(dated_store):
    await dated_store.set_visibility("20130103/alice/blah.txt", True)
    assert set(by_date(await dated_store.build_tree(owned_by("mike")))) == {"20130101", "20130104"}
    assert set(by_date(await dated_store.build_tree(is_visible))) == {"20130103"}
    assert await dated_store.build_tree(owned_by("nobody")) == []


@pytest.mark.anyio
async def test_date_tree_ignores_staging_directory(store, root):
    await store.write("20130101/mike/blah.txt", SAMPLE)
    (root / ".incoming" / "leftover.part").write_bytes(b"junk")
    assert set(by_date(await store.build_tree())) == {"20130101"}


@pytest.mark.anyio
async def test_unaddressable_names_do_not_break_listings(store, root):
    await store.write("20130101/mike/ok.txt", SAMPLE)
    (root / "20130102" / "liza").mkdir(parents=True)
    (root / "20130102" / "liza" / "report..final.pdf").write_bytes(SAMPLE)
    days = by_date(await store.build_tree())
    assert set(days) == {"20130101"}
    assert [f.file_id for f in days["20130101"].objects] == ["20130101/mike/ok.txt"]
    paged = await store.list_paged(10)
    assert [d.date for d in paged] == ["20130101"]


@pytest.mark.anyio
async def test_empty_store(store):
    assert await store.build_tree() == []
    assert await store.list_paged(10) == []


@pytest.mark.anyio
async def test_list_newest_first(dated_store):
    dirs = await dated_store.list_paged(1, lambda x: True)
    assert len(dirs) == 1
    assert dirs[0].date == "20130104"
    assert (dirs[0].year, dirs[0].month, dirs[0].day) == ("2013", "01", "04")
    assert [f.file_id for f in dirs[0].objects] == ["20130104/mike/blah.txt"]

    dirs = await dated_store.list_paged(1, lambda x: True, "20130104")
    assert len(dirs) == 1
    assert dirs[0].date == "20130103"
    assert [f.file_id for f in dirs[0].objects] == ["20130103/alice/blah.txt"]

    dirs = await dated_store.list_paged(1, lambda x: True, "20130103")
    assert [d.date for d in dirs] == ["20130102"]
    assert [f.file_id for f in dirs[0].objects] == ["20130102/liza/blah.txt"]

    dirs = await dated_store.list_paged(1, lambda x: True, "20130102")
    assert [d.date for d in dirs] == ["20130101"]
    assert [f.file_id for f in dirs[0].objects] == ["20130101/mike/blah.txt"]

    assert await dated_store.list_paged(1, lambda x: True, "20130101") == []


@pytest.mark.anyio
async def test_paging_until_exhausted(dated_store):
    seen = []
    older_than = None
    while days := await dated_store.list_paged(1, older_than=older_than):
        seen.extend(d.date for d in days)
        older_than = days[-1].date
    assert seen == ["20130104", "20130103", "20130102", "20130101"]


@pytest.mark.anyio
async def test_list_with_filter(dated_store):
    dirs = await dated_store.list_paged(200, lambda f: f.owner == "mike")
    assert [d.date for d in dirs] == ["20130104", "20130101"]
    for d in dirs:
        assert len(d.objects) == 1
        assert d.objects[0].owner == "mike"


@pytest.mark.anyio
async def test_limit_is_soft(store):
    for name in "abc":
        await store.write(f"20130102/mike/{name}", SAMPLE)
    await store.write("20130101/mike/d", SAMPLE)
    dirs = await store.list_paged(2)
    assert [d.date for d in dirs] == ["20130102"]
    assert len(dirs[0].objects) == 3
    dirs = await store.list_paged(4)
    assert [d.date for d in dirs] == ["20130102", "20130101"]


@pytest.mark.anyio
async def test_list_paged_stops_scanning_early(dated_store, monkeypatch):
    scanned = []
    list_partition = partitions.list_partition

    async def recording_list_partition(root, date, *args, **kargs):
        scanned.append(date)
        return await list_partition(root, date, *args, **kargs)

    monkeypatch.setattr("zuza.store.readmodels.list_partition", recording_list_partition)
    await dated_store.list_paged(2)
    assert scanned == ["20130104", "20130103"]


@pytest.mark.anyio
async def test_list_paged_error_propagates(dated_store, monkeypatch):
    async def failing_list_partition(*args, **kargs):
        raise StoreIOError("Input/output error")

    monkeypatch.setattr("zuza.store.readmodels.list_partition", failing_list_partition)
    with pytest.raises(StoreIOError):
        await dated_store.list_paged(2)
    with pytest.raises(StoreIOError):
        await dated_store.build_tree()


@pytest.mark.anyio
async def test_list_paged_invalid_arguments(dated_store):
    with pytest.raises(ValueError):
        await dated_store.list_paged(0)
    with pytest.raises(InvalidKey):
        await dated_store.list_paged(1, older_than="2013-01-01")


@pytest.mark.anyio
async def test_summarize(dated_store):
    await dated_store.write("20130103/liza/other.txt", SAMPLE)
    summary = summarize(await dated_store.build_tree())
    assert [(s.date, s.size) for s in summary] == [("20130104", 1), ("20130103", 2), ("20130102", 1), ("20130101", 1)]
