"""Per-user conversation state: chat history plus the canvas it draws on."""
from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import config as cfg
from canvas.scene import Scene


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class ConversationSession:
    id: str
    # Displayed user/assistant turns only; tool traffic stays inside a run
    history: list[dict[str, Any]] = field(default_factory=list)
    scene: Scene = field(default_factory=Scene)
    created_at: datetime = field(default_factory=_utcnow)
    last_activity: datetime = field(default_factory=_utcnow)

    def record_turn(self, user_message: str, reply: str) -> None:
        self.history.append({"role": "user", "content": user_message})
        self.history.append({"role": "assistant", "content": reply})

    def touch(self) -> None:
        self.last_activity = _utcnow()

    @property
    def is_expired(self) -> bool:
        idle = _utcnow() - self.last_activity
        return idle > timedelta(seconds=cfg.SESSION_TTL_SECONDS)

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
            "message_count": len(self.history),
            "element_count": len(self.scene),
        }


class SessionStore:
    """Sessions kept in process memory, guarded for access from worker threads.

    Nothing is persisted; a restart starts from an empty store. Expired
    sessions are invisible to :meth:`get` and removed by
    :meth:`cleanup_expired`.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._by_id: dict[str, ConversationSession] = {}

    def create(self) -> ConversationSession:
        session = ConversationSession(id=uuid.uuid4().hex)
        with self._lock:
            self._by_id[session.id] = session
        return session

    def get(self, session_id: str) -> ConversationSession | None:
        with self._lock:
            session = self._by_id.get(session_id)
        if session is not None and session.is_expired:
            return None
        return session

    def update(self, session: ConversationSession) -> None:
        session.touch()
        with self._lock:
            self._by_id[session.id] = session

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._by_id.pop(session_id, None)

    def cleanup_expired(self) -> int:
        with self._lock:
            stale = [sid for sid, session in self._by_id.items() if session.is_expired]
            for sid in stale:
                del self._by_id[sid]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)
