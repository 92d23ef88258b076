import copy
import json

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from proctoring_reports.config import Settings
from proctoring_reports.main import create_app
from proctoring_reports.store import ReportStore


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction):
        self._docs = sorted(self._docs, key=lambda d: d[key], reverse=direction < 0)
        return self

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return copy.deepcopy(next(self._iter))
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """In-memory stand-in for the motor collection calls the store makes."""

    def __init__(self):
        self.docs = []

    async def insert_one(self, doc):
        self.docs.append(copy.deepcopy(doc))

    def find(self, query=None):
        return FakeCursor(list(self.docs))

    async def find_one(self, query):
        for doc in self.docs:
            if all(doc.get(k) == v for k, v in query.items()):
                return copy.deepcopy(doc)
        return None


class UnreachableCollection(FakeCollection):
    async def insert_one(self, doc):
        raise ServerSelectionTimeoutError("mongo unreachable")

    def find(self, query=None):
        raise ServerSelectionTimeoutError("mongo unreachable")

    async def find_one(self, query):
        raise ServerSelectionTimeoutError("mongo unreachable")


SAMPLE_REPORT = {
    "candidateName": "Alice",
    "interviewDurationMin": 30,
    "lookAwayCount": 2,
    "noFaceCount": 0,
    "multipleFacesCount": 0,
    "suspiciousObjects": ["phone"],
    "integrityScore": 82,
    "events": [{"ts": "t1", "type": "look_away", "details": {}}],
}

TEST_VIDEO_CONTENT = b"\x1aE\xdf\xa3fake-webm-bytes"
TEST_PDF_CONTENT = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<</Root 1 0 R>>\n%%EOF"


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir):
    return Settings(upload_dir=upload_dir)


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def app(settings, collection):
    app = create_app(settings)
    app.state.report_store = ReportStore(collection)
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def upload(client):
    """Submit a report with optional artifacts and return the raw response."""

    def _upload(report=SAMPLE_REPORT, video=None, pdf=None, pdf_field="pdf"):
        files = {}
        if video is not None:
            files["video"] = ("recording.webm", video, "video/webm")
        if pdf is not None:
            files[pdf_field] = ("summary.pdf", pdf, "application/pdf")
        data = {"report": report if isinstance(report, str) else json.dumps(report)}
        return client.post("/upload", data=data, files=files or None)

    return _upload
