"""User data routing and conversation history."""

from .history import ConversationHistory
from .manager import UserDataService, WriteResult

__all__ = ["ConversationHistory", "UserDataService", "WriteResult"]
