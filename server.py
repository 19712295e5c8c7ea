"""HTTP front-end for the drawing agent: one canvas per session, replies as SSE.

Run locally:
    uvicorn server:app --host 127.0.0.1 --port 8000 --reload

Routes
------
POST   /sessions                       New session with an empty canvas
POST   /sessions/{id}/messages         Chat turn; response body is an SSE stream
GET    /sessions/{id}/elements         Every element currently on the canvas
DELETE /sessions/{id}/elements         Clear the canvas, keep the conversation
GET    /sessions/{id}                  Session metadata
DELETE /sessions/{id}                  Drop the session

Events streamed by POST /sessions/{id}/messages
-----------------------------------------------
thinking_delta  {"delta": "..."}
text_delta      {"delta": "..."}
commands        {"commands": [...], "added": ["r1"], "updated": []}
tool_start      {"tool": "delete_elements", "tool_call_id": "call_1", "arguments": "{...}"}
tool_result     {"tool": "delete_elements", "tool_call_id": "call_1", "result": {...}}
notice          {"message": "..."}
layout          {"issues": [...], "fixed_count": 1, "message": "..."}
turn_complete   {"status": "done", "reply": "...", "tool_rounds": 0, "element_count": 3}
error           {"message": "..."}

A client that disconnects mid-turn cancels the turn at the next chunk.
"""
from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

import config as cfg
from agent import run_turn_stream
from session import ConversationSession, SessionStore

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 300

store = SessionStore()


async def _expire_sessions() -> None:
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
        removed = store.cleanup_expired()
        logger.debug("Removed %d expired session(s); %d remain", removed, len(store))


@asynccontextmanager
async def lifespan(_app: FastAPI):
    cleanup = asyncio.create_task(_expire_sessions())
    try:
        yield
    finally:
        cleanup.cancel()


app = FastAPI(
    title="Chat Canvas API",
    description="Draw on an in-memory canvas by chatting with a streaming model.",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class MessageRequest(BaseModel):
    content: str
    # Ids of canvas elements the user has selected for this turn
    selected_ids: list[str] = Field(default_factory=list)


def _frame(event_type: str, payload: dict[str, Any]) -> str:
    return f"event: {event_type}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"


def _session_or_404(session_id: str) -> ConversationSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found.")
    return session


@app.post("/sessions", status_code=201)
async def create_session():
    if len(store) >= cfg.MAX_SESSIONS:
        store.cleanup_expired()
    if len(store) >= cfg.MAX_SESSIONS:
        raise HTTPException(status_code=503, detail="Session limit reached. Try again later.")
    return {"session_id": store.create().id}


@app.post("/sessions/{session_id}/messages")
async def send_message(session_id: str, body: MessageRequest, request: Request):
    """Run one chat turn against the session's canvas and stream its events.

    Each SSE frame is ``event: <type>`` followed by ``data: <json>``; the
    event types are listed in the module docstring. ``turn_complete`` is
    always the last frame unless the turn itself raised, in which case an
    ``error`` frame closes the stream.
    """
    session = _session_or_404(session_id)
    cancel = asyncio.Event()

    async def event_stream():
        try:
            async for event_type, payload in run_turn_stream(
                session, body.content, body.selected_ids, cancel=cancel
            ):
                yield _frame(event_type, payload)
                if await request.is_disconnected():
                    logger.info("Client left session %s; cancelling turn", session_id)
                    cancel.set()
        except Exception as exc:
            logger.exception("Chat turn failed for session %s", session_id)
            yield _frame("error", {"message": str(exc)})
        finally:
            store.update(session)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@app.get("/sessions/{session_id}/elements")
async def get_elements(session_id: str):
    return {"elements": _session_or_404(session_id).scene.elements()}


@app.delete("/sessions/{session_id}/elements", status_code=204)
async def clear_elements(session_id: str):
    """Empty the canvas; the conversation history is kept."""
    session = _session_or_404(session_id)
    session.scene.clear()
    store.update(session)


@app.get("/sessions/{session_id}")
async def get_session(session_id: str):
    return _session_or_404(session_id).summary()


@app.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str):
    store.delete(session_id)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=cfg.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    uvicorn.run("server:app", host=cfg.SERVER_HOST, port=cfg.SERVER_PORT, reload=True)
