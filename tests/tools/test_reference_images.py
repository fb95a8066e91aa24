"""Tests for the reference image tool and its fallback heuristic."""

from datetime import datetime, timezone

import pytest

from compadre.store import MemoryFact
from compadre.tools import ShowReferenceImagesTool, reference_query_from_message, wants_to_see
from compadre.tools.images import strip_see_phrase


@pytest.mark.parametrize(
    "message",
    [
        "Show me fried rice",
        "what does julienne look like?",
        "Can I see how it looks",
        "picture of a roux please",
        "let me see",
    ],
)
def test_wants_to_see(message):
    assert wants_to_see(message)


@pytest.mark.parametrize("message", ["How long do I boil pasta?", "", "I saw a recipe"])
def test_does_not_want_to_see(message):
    assert not wants_to_see(message)


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("Show me fried rice", "fried rice"),
        ("What does paella look like?", "paella"),
        ("Can you show me a picture of diced onions?", "diced onions"),
        ("how does it look?", ""),
        ("Can you show me how it looks like?", ""),
    ],
)
def test_strip_see_phrase(message, expected):
    assert strip_see_phrase(message) == expected


def test_query_falls_back_to_latest_memory():
    memory = [
        MemoryFact("recipe", "Paella, with saffron", created_at=datetime(2026, 1, 1, tzinfo=timezone.utc)),
        MemoryFact("recipe", "Carbonara. Guanciale only", created_at=datetime(2026, 1, 5, tzinfo=timezone.utc)),
    ]
    assert reference_query_from_message("how does it look?", memory) == "Carbonara"


def test_query_never_empty():
    assert reference_query_from_message("show me", []) == "cooking"


@pytest.mark.asyncio
async def test_tool_payload():
    result = await ShowReferenceImagesTool().execute("web", query="grilled salmon")

    assert result.to_action() == {
        "action": "reference_images",
        "query": "grilled salmon",
        "reason": "User requested visual reference",
        "message": "Opening reference images for: grilled salmon",
    }


@pytest.mark.asyncio
async def test_tool_blank_query():
    result = await ShowReferenceImagesTool().execute("web", query="  ")
    assert result.to_action()["query"] == "cooking"
