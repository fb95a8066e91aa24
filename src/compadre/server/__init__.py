"""FastAPI application."""

from .app import ConversationRequest, LearnRequest, create_app

__all__ = ["ConversationRequest", "LearnRequest", "create_app"]
