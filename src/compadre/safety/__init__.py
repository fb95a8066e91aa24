"""Input safety checks run before any model call."""

from .gate import (
    COOKING_SAFETY_PATTERNS,
    HARMFUL_PATTERNS,
    METAPHOR_REPLY,
    GateVerdict,
    IntentCheck,
    check_cooking_intent,
    validate_input,
)

__all__ = [
    "COOKING_SAFETY_PATTERNS",
    "HARMFUL_PATTERNS",
    "METAPHOR_REPLY",
    "GateVerdict",
    "IntentCheck",
    "check_cooking_intent",
    "validate_input",
]
