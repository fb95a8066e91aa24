"""Data models for the kitchen datastore."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """One side of a conversation exchange.

    Attributes:
        role: 'user' or 'assistant'.
        text: Message content.
        timestamp: When the message was recorded (UTC).
    """

    role: str
    text: str
    timestamp: datetime


@dataclass(frozen=True)
class UserPreference:
    """A preference upserted per (user, preference_type).

    Attributes:
        preference_type: One of 'diet', 'allergy', 'cooking_skill', 'cuisine'.
        value: Free-form preference value.
        confidence: 1 (weak) to 5 (certain).
        last_used: When the preference was last set.
    """

    preference_type: str
    value: str
    confidence: int = 3
    last_used: datetime | None = None


@dataclass(frozen=True)
class MemoryFact:
    """A long-lived fact about the user, optionally expiring."""

    memory_type: str
    content: str
    context: str | None = None
    confidence: int = 3
    expires_at: datetime | None = None
    created_at: datetime | None = None
    id: int | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


@dataclass(frozen=True)
class SavedRecipe:
    """A recipe saved to the user's collection.

    `recipe_data` keeps the full structured payload as received (from the
    save_recipe tool or the URL learner); the other columns are denormalized
    for listing.
    """

    title: str
    recipe_data: dict[str, Any]
    tags: list[str] = field(default_factory=list)
    difficulty: str = "medium"
    prep_time: int | None = None
    cook_time: int | None = None
    servings: int = 4
    source_type: str = "chat"
    source_url: str | None = None
    created_at: datetime | None = None
    id: int | None = None


@dataclass(frozen=True)
class ShoppingItem:
    """A shopping list entry."""

    name: str
    quantity: str = ""
    category: str = "general"
    priority: int = 2
    id: int | None = None
