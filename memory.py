# chatbot/memory.py
import threading
from typing import Dict, List, Optional


class SessionState:
    def __init__(self):
        self.history: List[dict] = []
        self.turn = 0
        self.last_kind: Optional[str] = None
        self.last_plan = None


class ConversationMemory:
    """
    Per-session conversation state: remote-model history plus a turn
    counter used to spot replies that a newer utterance has superseded.
    """

    def __init__(self, history_limit: int = 40):
        self.history_limit = history_limit
        self._sessions: Dict[str, SessionState] = {}
        self._lock = threading.Lock()

    def _session(self, session_id: str) -> SessionState:
        if session_id not in self._sessions:
            self._sessions[session_id] = SessionState()
        return self._sessions[session_id]

    # -----------------------------
    # Turn tracking
    # -----------------------------

    def begin_turn(self, session_id: str) -> int:
        with self._lock:
            state = self._session(session_id)
            state.turn += 1
            return state.turn

    def is_current(self, session_id: str, token: int) -> bool:
        with self._lock:
            return self._session(session_id).turn == token

    # -----------------------------
    # History
    # -----------------------------

    def history(self, session_id: str) -> List[dict]:
        with self._lock:
            return list(self._session(session_id).history)

    def append_exchange(self, session_id: str, user_text: str, model_text: str) -> None:
        """
        Store one successful user/model exchange, keeping the newest
        `history_limit` entries.
        """
        with self._lock:
            state = self._session(session_id)
            state.history.append({"role": "user", "parts": [{"text": user_text}]})
            state.history.append({"role": "model", "parts": [{"text": model_text}]})
            if len(state.history) > self.history_limit:
                state.history = state.history[-self.history_limit:]

    # -----------------------------
    # Last answer
    # -----------------------------

    def update(self, session_id: str, kind: Optional[str], plan) -> None:
        with self._lock:
            state = self._session(session_id)
            state.last_kind = kind
            state.last_plan = plan

    def last_kind(self, session_id: str) -> Optional[str]:
        with self._lock:
            return self._session(session_id).last_kind

    def reset(self, session_id: str) -> None:
        """
        Forget the session's history. The turn counter keeps counting, so
        a reply still in flight is treated as superseded.
        """
        with self._lock:
            state = self._session(session_id)
            state.history = []
            state.last_kind = None
            state.last_plan = None
            state.turn += 1

    def sessions(self) -> List[str]:
        with self._lock:
            return list(self._sessions)
