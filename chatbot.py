# chatbot/chatbot.py

import logging
from typing import Optional

from config import configure_logging, load_config
from data_store import DatasetRegistry, build_registry
from followups import suggest_followups
from memory import ConversationMemory
from remote_assistant import RemoteAssistant
from response_builder import ChatResponse, answer_locally
from roster import Roster
from topic_responder import respond_to_topic

log = logging.getLogger(__name__)


class ChatService:
    """
    Composition root shared by the CLI and the HTTP API. Registry, roster
    and memory are built once and passed in; tests inject fixtures.
    """

    def __init__(
        self,
        cfg: Optional[dict] = None,
        registry: Optional[DatasetRegistry] = None,
        roster: Optional[Roster] = None,
        memory: Optional[ConversationMemory] = None,
    ):
        self.cfg = cfg if cfg is not None else load_config()
        self.registry = registry if registry is not None else build_registry()
        self.roster = roster if roster is not None else Roster.generate(
            size=self.cfg["roster"]["size"],
            seed=self.cfg["roster"]["seed"],
        )
        self.memory = memory if memory is not None else ConversationMemory(
            history_limit=self.cfg["assistant"]["history_limit"],
        )

        self.mode = self.cfg["assistant"]["mode"]
        self.remote = None
        if self.mode == "remote":
            self.remote = RemoteAssistant(self.cfg, self.registry, self.roster, self.memory)

    def reply(self, session_id: str, user_input: str) -> ChatResponse:
        token = self.memory.begin_turn(session_id)

        if self.remote is not None:
            response = self.remote.reply(session_id, user_input, token)
        else:
            response = answer_locally(user_input, self.registry, self.roster)
            if response is None:
                response = respond_to_topic(user_input, self.registry, self.roster)

        if not response.superseded:
            self.memory.update(session_id, response.kind, response.plan)

        response.followups = suggest_followups(response.kind, response.plan)
        log.debug("session=%s kind=%s source=%s", session_id, response.kind, response.source)
        return response

    def reset(self, session_id: str) -> None:
        self.memory.reset(session_id)


# --------------------------------------------------
# CLI rendering
# --------------------------------------------------

def _cell(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}" if isinstance(value, (int, float)) else str(value)


def render_chart(chart) -> str:
    """
    Compact text table: one row per label, one column per series.
    """
    header = ["", *[s.label for s in chart.series]]
    rows = [header]
    for i, label in enumerate(chart.labels):
        rows.append([label, *[_cell(s.values[i]) if i < len(s.values) else "-" for s in chart.series]])

    widths = [max(len(str(row[c])) for row in rows) for c in range(len(header))]
    lines = [f"[{chart.chart_kind}]"]
    for row in rows:
        lines.append("  ".join(str(cell).ljust(widths[c]) for c, cell in enumerate(row)))
    return "\n".join(lines)


def run_chatbot():
    """
    CLI entry point for chatting with the dashboard data.
    """
    cfg = load_config()
    configure_logging(cfg)

    print("=" * 60)
    print("🎓 MJU Dashboard Assistant")
    print(f"Mode: {cfg['assistant']['mode']}. Type 'exit' to quit, 'reset' to clear history.")
    print("=" * 60)

    service = ChatService(cfg)
    session_id = "cli"

    while True:
        try:
            user_input = input("\nYou: ").strip()

            if not user_input:
                continue

            if user_input.lower() in {"exit", "quit"}:
                print("\n👋 Exiting chatbot. Goodbye!")
                break

            if user_input.lower() == "reset":
                service.reset(session_id)
                print("\n🧹 History cleared.")
                continue

            response = service.reply(session_id, user_input)

            print(f"\nBot: {response.text}")

            if response.chart is not None:
                print()
                print(render_chart(response.chart))

            if response.followups:
                print("\nSuggested follow-ups:")
                for f in response.followups:
                    print(f"• {f}")

        except KeyboardInterrupt:
            print("\n\n👋 Chatbot interrupted. Exiting.")
            break

        except Exception as e:
            log.exception("Unhandled error in chat loop")
            print("\n⚠️ Something went wrong.")
            print(f"Error: {e}")
            print("Try rephrasing your question.")


if __name__ == "__main__":
    run_chatbot()
