# chatbot/remote_assistant.py

import json
import logging
import re
from typing import Optional, Tuple

from chart_spec import ChartSpec, apply_theme
from data_store import DatasetRegistry
from llm.gemini_client import LLMError, call_gemini
from memory import ConversationMemory
from response_builder import ChatResponse, answer_locally
from roster import Roster
from utils.context_builder import build_context
from utils.fallback import exhausted_error_message, remote_unavailable_notice
from utils.prompt import CHART_BLOCK_TAG, build_system_instruction

log = logging.getLogger(__name__)

CHART_BLOCK_PATTERN = re.compile(r"```" + CHART_BLOCK_TAG + r"\s*([\s\S]*?)\s*```")


def extract_chart_block(reply: str) -> Tuple[str, Optional[ChartSpec]]:
    """
    Split a model reply into display text and an optional chart.
    A malformed block is dropped; the text is kept.
    """
    match = CHART_BLOCK_PATTERN.search(reply)
    if not match:
        return reply.strip(), None

    text = (reply[:match.start()] + reply[match.end():]).strip()

    try:
        chart = ChartSpec.from_dict(json.loads(match.group(1)))
    except (TypeError, ValueError) as e:
        log.warning("Discarding malformed chart block: %s", e)
        return text, None

    return text, apply_theme(chart)


class RemoteAssistant:
    """
    Answers through the remote model and degrades to the local pipeline
    when the model chain fails.
    """

    def __init__(self, cfg: dict, registry: DatasetRegistry, roster: Roster, memory: ConversationMemory):
        self.gemini_cfg = cfg["gemini"]
        self.registry = registry
        self.roster = roster
        self.memory = memory
        self.system_instruction = build_system_instruction(build_context(registry, roster))

    def reply(self, session_id: str, user_input: str, token: int) -> ChatResponse:
        contents = self.memory.history(session_id) + [
            {"role": "user", "parts": [{"text": user_input}]}
        ]

        try:
            raw = call_gemini(self.system_instruction, contents, self.gemini_cfg)
        except LLMError as e:
            log.info("Remote assistant unavailable, answering from local data: %s", e)
            return self._fallback(user_input, e)

        text, chart = extract_chart_block(raw)

        if not self.memory.is_current(session_id, token):
            log.info("Dropping superseded reply for session %s (turn %s)", session_id, token)
            return ChatResponse(text, chart=chart, source="remote", superseded=True, kind="remote")

        self.memory.append_exchange(session_id, user_input, raw)
        return ChatResponse(text, chart=chart, source="remote", kind="remote")

    def _fallback(self, user_input: str, error: Exception) -> ChatResponse:
        local = answer_locally(user_input, self.registry, self.roster)
        if local is None:
            return ChatResponse(exhausted_error_message(error), source="error", kind="error")

        local.text = remote_unavailable_notice(error) + local.text
        return local
