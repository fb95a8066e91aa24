"""Session manager for per-user conversation state.

Sessions live only in process memory. Concurrent requests for the same user
are not serialized; the last writer wins on the trimmed turn list.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..store.models import ConversationTurn

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """One user's turns plus the transient data kept for guest ids."""

    user_id: str
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    turns: list[ConversationTurn] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)

    def touch(self) -> None:
        self.last_activity = time.time()

    def idle_seconds(self) -> float:
        return time.time() - self.last_activity

    def is_expired(self, ttl_seconds: float) -> bool:
        return self.idle_seconds() > ttl_seconds


@dataclass
class SessionConfig:
    max_turns: int = 20
    # None keeps sessions until destroyed
    ttl_seconds: float | None = None
    cleanup_interval: float = 300


class SessionManager:
    """Holds session state and evicts it by turn count and TTL."""

    def __init__(self, config: SessionConfig | None = None) -> None:
        self.config = config or SessionConfig()
        self._sessions: dict[str, SessionState] = {}
        self._cleanup_task: asyncio.Task | None = None

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get_session(self, user_id: str) -> SessionState:
        """Get or create a session for user_id."""
        if user_id not in self._sessions:
            self._sessions[user_id] = SessionState(user_id=user_id)
        return self._sessions[user_id]

    def add_turn(
        self,
        user_id: str,
        role: str,
        text: str,
        timestamp: datetime | None = None,
    ) -> None:
        """Append a turn and drop the oldest ones beyond max_turns."""
        session = self.get_session(user_id)
        session.turns.append(
            ConversationTurn(
                role=role,
                text=text,
                timestamp=timestamp or datetime.now(timezone.utc),
            )
        )
        overflow = len(session.turns) - self.config.max_turns
        if overflow > 0:
            del session.turns[:overflow]
        session.touch()

    def get_turns(self, user_id: str, limit: int | None = None) -> list[ConversationTurn]:
        """Get turn history for a session, oldest first.

        Args:
            user_id: The session identifier.
            limit: Maximum number of turns to return (most recent).

        Returns:
            A copy of the stored turns.
        """
        if user_id not in self._sessions:
            return []
        if limit is not None and limit <= 0:
            return []

        turns = self._sessions[user_id].turns
        if limit is not None:
            turns = turns[-limit:]
        return list(turns)

    def set_context(self, user_id: str, key: str, value: Any) -> None:
        state = self.get_session(user_id)
        state.context[key] = value
        state.touch()

    def get_context(self, user_id: str, key: str, default: Any = None) -> Any:
        state = self._sessions.get(user_id)
        return default if state is None else state.context.get(key, default)

    def destroy_session(self, user_id: str) -> bool:
        """Drop a session. Returns True if one existed."""
        return self._sessions.pop(user_id, None) is not None

    def cleanup_expired(self) -> int:
        """Drop expired sessions. Returns count of removed sessions."""
        ttl = self.config.ttl_seconds
        if ttl is None:
            return 0

        expired = [uid for uid, state in self._sessions.items() if state.is_expired(ttl)]
        for user_id in expired:
            del self._sessions[user_id]
        if expired:
            logger.info("Evicted %d expired session(s)", len(expired))
        return len(expired)

    async def _evict_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.config.cleanup_interval)
            try:
                self.cleanup_expired()
            except Exception:
                logger.exception("Session cleanup failed")

    def start_cleanup_task(self) -> None:
        """Start the background cleanup task (only when a TTL is set)."""
        if self.config.ttl_seconds is None:
            return
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._evict_periodically())

    def stop_cleanup_task(self) -> None:
        task, self._cleanup_task = self._cleanup_task, None
        if task is not None and not task.done():
            task.cancel()
