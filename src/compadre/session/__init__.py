"""In-process session state keyed by user id."""

from .manager import SessionConfig, SessionManager, SessionState

__all__ = ["SessionConfig", "SessionManager", "SessionState"]
