"""Reference image tool and the "wants to see" fallback heuristic."""

import re
from typing import Any

from ..store import MemoryFact
from .base import Tool, ToolResult

DEFAULT_QUERY = "cooking"
FALLBACK_REASON = "Heuristic fallback: user explicitly asked to SEE something"

SEE_PHRASES = (
    "show me", "show ", "picture of", "photo of", "image of",
    "what does", "how does", "how it looks", "how it looks like", "how it look",
    "can i see", "let me see", "see how",
)

# Longest first, so "how it looks like" wins over "how it looks"
_PHRASES_BY_LENGTH = sorted(SEE_PHRASES, key=len, reverse=True)

_GENERIC_REMAINDERS = [
    re.compile(r"^how (it|this|that) looks?( like)?\s*"),
    re.compile(r"^(does|do) (it|this|that) look( like)?\s*"),
    re.compile(r"^(it|this|that|them)(\s+looks?( like)?)?$"),
    re.compile(r"\s+looks?( like)?$"),
    re.compile(r"^(a|an|the|some)\s+"),
]


def wants_to_see(message: str) -> bool:
    """True when the message contains one of the "wants to see" phrases."""
    lower = (message or "").lower()
    return any(phrase in lower for phrase in SEE_PHRASES)


def strip_see_phrase(message: str) -> str:
    """Keep only what follows the trigger phrases, minus generic tails."""
    query = (message or "").lower()
    for phrase in _PHRASES_BY_LENGTH:
        if phrase in query:
            query = query.split(phrase)[-1].strip()

    query = query.strip(" ?!.,")
    for pattern in _GENERIC_REMAINDERS:
        query = pattern.sub("", query).strip()
    return query.strip(" ?!.,")


def _latest_memory_subject(memory: list[MemoryFact]) -> str:
    if not memory:
        return ""
    latest = max(
        memory,
        key=lambda m: (m.created_at is not None, m.created_at or 0, m.id or 0),
    )
    return re.split(r"[\n,.]", latest.content)[0].strip()


def reference_query_from_message(message: str, memory: list[MemoryFact]) -> str:
    """Build an image search query for a message that asked to see something.

    Falls back to the first clause of the most recent memory fact, then to
    a generic query, so the result is never empty.
    """
    return strip_see_phrase(message) or _latest_memory_subject(memory) or DEFAULT_QUERY


class ShowReferenceImagesTool(Tool):
    """Tells the client to open reference images for a query."""

    @property
    def name(self) -> str:
        return "show_reference_images"

    @property
    def description(self) -> str:
        return (
            "MANDATORY: Call this function whenever the user asks to SEE, VIEW, or SHOW "
            "anything visually. This includes phrases like 'show me', 'what does it look "
            "like', 'how does it look', 'can you show me', 'picture of', 'image of', "
            "'see how it looks'. Extract the subject from conversation context if user "
            "uses pronouns like 'it', 'that', 'this'. ALWAYS call this tool - never just "
            "describe visually."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": (
                        "Search query for images. Extract from user's message or recent "
                        "conversation context. If user says 'how does it look' or 'show me "
                        "that', identify what 'it' or 'that' refers to from the conversation "
                        "(e.g., 'fried rice', 'grilled salmon', 'diced onions'). Examples: "
                        "'fried rice', 'grilled salmon', 'diced onions', 'sautéing technique'"
                    ),
                },
                "reason": {
                    "type": "string",
                    "description": (
                        "Why showing images (e.g., 'User wants to see what the dish looks "
                        "like', 'User asked how it looks')"
                    ),
                },
            },
            "required": ["query"],
        }

    async def execute(self, user_id: str, **kwargs: Any) -> ToolResult:
        query = str(kwargs.get("query") or "").strip() or DEFAULT_QUERY
        reason = kwargs.get("reason") or "User requested visual reference"
        return ToolResult(
            success=True,
            output=f"Opening reference images for: {query}",
            payload={"action": "reference_images", "query": query, "reason": reason},
        )
