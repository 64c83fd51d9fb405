# api.py
import threading
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI
from pydantic import BaseModel

from chatbot import ChatService
from config import configure_logging, load_config


class ChatRequest(BaseModel):
    message: str
    session_id: Optional[str] = "default"


class ChatResponse(BaseModel):
    reply: str
    chart: Optional[Dict[str, Any]] = None
    followups: List[str]
    source: str
    superseded: bool = False


class ResetRequest(BaseModel):
    session_id: Optional[str] = "default"


app = FastAPI(title="MJU Dashboard Chatbot API")

service: Optional[ChatService] = None
_service_lock = threading.Lock()


def get_service() -> ChatService:
    global service
    # one shared service, so every request sees the same session memory
    with _service_lock:
        if service is None:
            cfg = load_config()
            configure_logging(cfg)
            service = ChatService(cfg)
    return service


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "MJU Dashboard Chatbot API is running",
        "docs": "/docs"
    }


@app.post("/chat", response_model=ChatResponse)
def chat(request: ChatRequest, chat_service: ChatService = Depends(get_service)):
    response = chat_service.reply(request.session_id or "default", request.message)
    return response.to_dict()


@app.post("/chat/reset")
def reset(request: ResetRequest, chat_service: ChatService = Depends(get_service)):
    session_id = request.session_id or "default"
    chat_service.reset(session_id)
    return {"status": "ok", "session_id": session_id}
