import pytest
import requests

from config import build_config
from data_store import build_registry, default_tables
from roster import Roster, StudentRecord

FIXTURE_RECORDS = [
    StudentRecord("65010001", "สมชาย ใจดี", "Computer Science", 1, 3.80),
    StudentRecord("65010002", "สมหญิง สุขสันต์", "Computer Science", 1, 2.10),
    StudentRecord("64010003", "กิตติ รัตนา", "Computer Science", 2, 1.75),
    StudentRecord("64010004", "ปิยะ ศรีสุข", "Mathematics", 2, 3.55),
    StudentRecord("63010005", "วรัญญา วงศ์ดี", "Physics", 3, 2.60),
    StudentRecord("62010006", "จิรา แสงทอง", "Computer Science", 4, 3.95),
    StudentRecord("63010007", "ณัฐ มาลัย", "Computer Science", 3, 1.90),
    StudentRecord("62010008", "พิมพ์ บุญมา", "Computer Science", 4, 2.50),
]


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class GeminiStub:
    """
    Stands in for requests.post; replies are served in queue order.
    """

    def __init__(self):
        self.replies = []
        self.calls = []

    def ok(self, text):
        self.replies.append(FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": text}]}}]}))

    def error(self, status, message):
        self.replies.append(FakeResponse(status, {"error": {"message": message}}))

    def raw(self, response):
        self.replies.append(response)

    def __call__(self, url, params=None, json=None, timeout=None):
        self.calls.append({"url": url, "params": params, "json": json, "timeout": timeout})
        if not self.replies:
            return FakeResponse(500, {"error": {"message": "no reply queued"}})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def tables():
    return default_tables()


@pytest.fixture
def roster():
    return Roster.generate()


@pytest.fixture
def fixture_roster():
    return Roster(FIXTURE_RECORDS)


@pytest.fixture
def local_cfg():
    return build_config({}, environ={})


@pytest.fixture
def remote_cfg():
    return build_config(
        {
            "assistant": {"mode": "remote"},
            "gemini": {"api_key": "test-key", "models": ["model-a", "model-b"]},
        },
        environ={},
    )


@pytest.fixture
def gemini_stub(monkeypatch):
    stub = GeminiStub()
    monkeypatch.setattr(requests, "post", stub)
    return stub
