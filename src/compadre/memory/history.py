"""Conversation history: session-first, datastore for canonical users."""

from __future__ import annotations

import logging
import sqlite3

from ..store import ROLE_ASSISTANT, ROLE_USER, ConversationTurn
from .manager import UserDataService

logger = logging.getLogger(__name__)


class ConversationHistory:
    """Loads and appends conversation turns.

    Every turn goes into the session store. Turns are additionally written
    to the datastore when the user id is canonical; for anyone else the
    persistence step is skipped without error.
    """

    def __init__(self, data: UserDataService, limit: int = 20) -> None:
        self.data = data
        self.limit = limit

    @property
    def sessions(self):
        return self.data.sessions

    def load(self, user_id: str) -> list[ConversationTurn]:
        """Return up to `limit` most recent turns, oldest first."""
        if not self.data.is_persistent(user_id):
            return self.sessions.get_turns(user_id, limit=self.limit)

        try:
            return self.data.store.get_recent_turns(user_id, limit=self.limit)
        except sqlite3.Error as e:
            logger.error("Error fetching conversation history for %s: %s", user_id, e)
            return self.sessions.get_turns(user_id, limit=self.limit)

    def append(self, user_id: str, user_text: str, reply: str) -> bool:
        """Record one exchange.

        Returns:
            True if the exchange was written to the datastore.
        """
        now = self.data.clock()
        self.sessions.add_turn(user_id, ROLE_USER, user_text, timestamp=now)
        self.sessions.add_turn(user_id, ROLE_ASSISTANT, reply, timestamp=now)

        if not self.data.is_persistent(user_id):
            logger.debug("Skipping datastore save for guest user %s", user_id)
            return False

        try:
            self.data.store.add_turns(
                user_id,
                [
                    ConversationTurn(role=ROLE_USER, text=user_text, timestamp=now),
                    ConversationTurn(role=ROLE_ASSISTANT, text=reply, timestamp=now),
                ],
            )
            return True
        except sqlite3.Error as e:
            logger.error("Error saving conversation history for %s: %s", user_id, e)
            return False
