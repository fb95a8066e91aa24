"""Conversation orchestration."""

from .orchestrator import (
    ConversationOrchestrator,
    OrchestratorConfig,
    TurnOutcome,
    TurnResult,
)
from .prompt import build_context_prompt, build_recipe_context
from .replies import BLOCKED_MESSAGE, PROCESSING_FALLBACK, fallback_reply

__all__ = [
    "BLOCKED_MESSAGE",
    "PROCESSING_FALLBACK",
    "ConversationOrchestrator",
    "OrchestratorConfig",
    "TurnOutcome",
    "TurnResult",
    "build_context_prompt",
    "build_recipe_context",
    "fallback_reply",
]
