import pytest
from bson import ObjectId

from proctoring_reports.errors import NotFound, StorageError
from proctoring_reports.models import Event, Report
from proctoring_reports.store import ReportStore
from tests.conftest import FakeCollection, UnreachableCollection


def make_report(name: str, **kwargs) -> Report:
    return Report(candidate_name=name, **kwargs)


@pytest.mark.asyncio
async def test_create_assigns_object_id():
    collection = FakeCollection()
    store = ReportStore(collection)

    report_id = await store.create(make_report("Alice"))

    assert ObjectId.is_valid(report_id)
    assert collection.docs[0]["_id"] == ObjectId(report_id)
    assert collection.docs[0]["candidateName"] == "Alice"


@pytest.mark.asyncio
async def test_create_uses_given_id():
    store = ReportStore(FakeCollection())
    report_id = store.new_id()

    assert await store.create(make_report("Bob"), report_id) == str(report_id)
    assert (await store.get_by_id(str(report_id))).candidate_name == "Bob"


@pytest.mark.asyncio
async def test_list_all_is_descending_by_id():
    store = ReportStore(FakeCollection())
    ids = [store.new_id() for _ in range(4)]
    # insert out of order; listing must still follow the identifiers
    for report_id in (ids[2], ids[0], ids[3], ids[1]):
        await store.create(make_report(str(report_id)), report_id)

    listed = [report.id for report in await store.list_all()]
    assert listed == [str(i) for i in reversed(ids)]


@pytest.mark.asyncio
async def test_get_by_id_keeps_events_and_omits_unset_paths():
    store = ReportStore(FakeCollection())
    events = [Event(ts="t1", type="look_away", details={"dir": "left"}), Event(ts="t2", type="no_face")]
    report_id = await store.create(make_report("Alice", events=events))

    report = await store.get_by_id(report_id)
    assert [e.ts for e in report.events] == ["t1", "t2"]
    assert report.events[0].details == {"dir": "left"}
    assert report.video_path is None
    assert report.pdf_path is None


@pytest.mark.asyncio
@pytest.mark.parametrize("report_id", ["", "nope", "64b7f0c2a1b2c3d4e5f60718"])
async def test_get_by_id_not_found(report_id):
    store = ReportStore(FakeCollection())
    with pytest.raises(NotFound):
        await store.get_by_id(report_id)


@pytest.mark.asyncio
async def test_unreachable_store_raises_storage_error():
    store = ReportStore(UnreachableCollection())

    with pytest.raises(StorageError):
        await store.create(make_report("Alice"))
    with pytest.raises(StorageError):
        await store.list_all()
    with pytest.raises(StorageError):
        await store.get_by_id(str(ObjectId()))
