import pytest
import requests

from chatbot import ChatService
from llm.gemini_client import LLMError, call_gemini
from memory import ConversationMemory
from remote_assistant import RemoteAssistant, extract_chart_block


@pytest.fixture
def assistant(remote_cfg, registry, fixture_roster):
    return RemoteAssistant(remote_cfg, registry, fixture_roster, ConversationMemory(history_limit=40))


# -----------------------------
# Chart block parsing
# -----------------------------

def test_reply_without_block():
    text, chart = extract_chart_block("  งบประมาณปี 2567 คือ 2,441.7 ล้านบาท  ")
    assert text == "งบประมาณปี 2567 คือ 2,441.7 ล้านบาท"
    assert chart is None


def test_chart_type_defaults_to_bar():
    reply = 'กราฟครับ\n```json_chart\n{"data": {"labels": ["ปี 66", "ปี 67"], "datasets": [{"label": "x", "data": [1, 2]}]}}\n```'
    text, chart = extract_chart_block(reply)
    assert text == "กราฟครับ"
    assert chart.chart_kind == "bar"
    assert chart.labels == ["ปี 66", "ปี 67"]
    assert chart.series[0].values == [1, 2]


def test_malformed_block_keeps_text():
    text, chart = extract_chart_block('ดูกราฟ\n```json_chart\n{"chartType": "line", "data": \n```')
    assert text == "ดูกราฟ"
    assert chart is None


@pytest.mark.parametrize("block", [
    '{"data": {"labels": ["a"], "datasets": [{"data": 5}]}}',
    '{"data": {"labels": ["a"], "datasets": [{"data": {"x": 1}}]}}',
])
def test_non_list_series_data_drops_the_chart(block):
    text, chart = extract_chart_block("ok\n```json_chart\n" + block + "\n```")
    assert text == "ok"
    assert chart is None


def test_non_string_chart_type_falls_back_to_bar():
    reply = '```json_chart\n{"chartType": ["radar"], "data": {"labels": ["a"], "datasets": []}}\n```'
    _, chart = extract_chart_block(reply)
    assert chart.chart_kind == "bar"


def test_radar_with_bad_scales_still_themed():
    reply = '```json_chart\n{"chartType": "radar", "options": {"scales": 5}, "data": {"labels": ["a"], "datasets": []}}\n```'
    _, chart = extract_chart_block(reply)
    assert chart.to_dict()["options"]["scales"]["r"]["ticks"]["backdropColor"] == "transparent"


def test_bad_chart_block_from_the_model_keeps_the_reply(remote_cfg, registry, fixture_roster, gemini_stub):
    service = ChatService(remote_cfg, registry, fixture_roster)
    gemini_stub.ok('ok\n```json_chart\n{"data": {"labels": ["a"], "datasets": [{"data": 5}]}}\n```')

    response = service.reply("s1", "ขอกราฟ")

    assert response.source == "remote"
    assert response.text == "ok"
    assert response.chart is None


def test_radar_gets_radial_theme():
    reply = '```json_chart\n{"chartType": "radar", "data": {"labels": ["a", "b", "c"], "datasets": []}}\n```'
    _, chart = extract_chart_block(reply)
    assert chart.to_dict()["options"]["scales"]["r"]["ticks"]["backdropColor"] == "transparent"


# -----------------------------
# Client
# -----------------------------

def test_client_walks_the_model_chain(remote_cfg, gemini_stub):
    gemini_stub.error(503, "overloaded")
    gemini_stub.ok("สวัสดีครับ")

    text = call_gemini("system", [{"role": "user", "parts": [{"text": "hi"}]}], remote_cfg["gemini"])

    assert text == "สวัสดีครับ"
    assert [c["url"].rsplit("/", 1)[-1] for c in gemini_stub.calls] == [
        "model-a:generateContent",
        "model-b:generateContent",
    ]
    assert gemini_stub.calls[0]["timeout"] == 30
    assert gemini_stub.calls[0]["params"] == {"key": "test-key"}
    assert gemini_stub.calls[0]["json"]["generationConfig"]["maxOutputTokens"] == 2048


def test_empty_candidate_is_a_failure(remote_cfg, gemini_stub):
    gemini_stub.ok("")
    gemini_stub.raw(requests.ConnectionError("connection refused"))

    with pytest.raises(LLMError, match="connection refused"):
        call_gemini("system", [], remote_cfg["gemini"])


def test_missing_api_key(remote_cfg, gemini_stub):
    cfg = dict(remote_cfg["gemini"], api_key=None)
    with pytest.raises(LLMError):
        call_gemini("system", [], cfg)
    assert gemini_stub.calls == []


# -----------------------------
# Orchestrator
# -----------------------------

def test_successful_reply_is_stored(assistant, gemini_stub):
    gemini_stub.ok("ตอบจาก AI")
    token = assistant.memory.begin_turn("s1")

    response = assistant.reply("s1", "งบประมาณเท่าไร", token)

    assert response.source == "remote"
    assert response.text == "ตอบจาก AI"
    history = assistant.memory.history("s1")
    assert [h["role"] for h in history] == ["user", "model"]
    assert "งบประมาณมหาวิทยาลัย" in gemini_stub.calls[0]["json"]["system_instruction"]["parts"][0]["text"]


def test_failure_falls_back_to_local_answer(assistant, gemini_stub):
    gemini_stub.error(500, "boom")
    gemini_stub.error(503, "overloaded")
    token = assistant.memory.begin_turn("s1")

    response = assistant.reply("s1", "นักศึกษาสาขาคอม 5 คน", token)

    assert response.source == "local"
    assert response.text.startswith("⚠️ _ไม่สามารถเชื่อมต่อ AI ได้")
    assert "📋 **พบนักศึกษา" in response.text
    assert assistant.memory.history("s1") == []


def test_exhausted_recovery_reports_the_failure(assistant, gemini_stub):
    gemini_stub.error(500, "boom")
    gemini_stub.error(503, "overloaded")
    token = assistant.memory.begin_turn("s1")

    response = assistant.reply("s1", "สวัสดีครับ", token)

    assert response.source == "error"
    assert "model-b: HTTP 503 - overloaded" in response.text


def test_superseded_reply_is_discarded(assistant, gemini_stub):
    gemini_stub.ok("คำตอบเก่า")
    old_token = assistant.memory.begin_turn("s1")
    assistant.memory.begin_turn("s1")

    response = assistant.reply("s1", "คำถามเก่า", old_token)

    assert response.superseded is True
    assert assistant.memory.history("s1") == []
