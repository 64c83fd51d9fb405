import threading
import time

import pytest
from fastapi.testclient import TestClient

import api
from chatbot import ChatService


@pytest.fixture
def client(local_cfg, registry, roster):
    service = ChatService(local_cfg, registry, roster)
    api.app.dependency_overrides[api.get_service] = lambda: service
    yield TestClient(api.app)
    api.app.dependency_overrides.clear()


def test_root(client):
    body = client.get("/").json()
    assert body["status"] == "ok"


def test_chat_forecast(client):
    res = client.post("/chat", json={"message": "พยากรณ์งบประมาณคณะวิทยาศาสตร์ ปี 70 71 แบบกราฟ", "session_id": "web"})
    assert res.status_code == 200

    body = res.json()
    assert body["source"] == "local"
    assert body["superseded"] is False
    assert body["chart"]["chartType"] == "line"
    assert body["chart"]["data"]["labels"][-2:] == ["ปี 2570", "ปี 2571"]
    assert len(body["followups"]) <= 2


def test_chat_greeting_has_no_chart(client):
    body = client.post("/chat", json={"message": "สวัสดีครับ"}).json()
    assert body["chart"] is None
    assert body["source"] == "topic"


def test_chat_requires_message(client):
    assert client.post("/chat", json={"session_id": "web"}).status_code == 422


def test_reset(client):
    body = client.post("/chat/reset", json={"session_id": "web"}).json()
    assert body == {"status": "ok", "session_id": "web"}


def test_concurrent_first_requests_share_one_service(monkeypatch):
    built = []

    class SlowService:
        def __init__(self, cfg):
            time.sleep(0.05)
            built.append(self)

    monkeypatch.setattr(api, "service", None)
    monkeypatch.setattr(api, "ChatService", SlowService)
    monkeypatch.setattr(api, "load_config", lambda: {})
    monkeypatch.setattr(api, "configure_logging", lambda cfg: None)

    results = []
    threads = [threading.Thread(target=lambda: results.append(api.get_service())) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(built) == 1
    assert all(r is built[0] for r in results)
