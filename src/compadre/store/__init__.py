"""Kitchen datastore: conversation turns, preferences, memory, recipes, shopping."""

from .ids import is_canonical_user_id
from .models import (
    ROLE_ASSISTANT,
    ROLE_USER,
    ConversationTurn,
    MemoryFact,
    SavedRecipe,
    ShoppingItem,
    UserPreference,
)
from .store import KitchenStore, parse_minutes

__all__ = [
    "ROLE_ASSISTANT",
    "ROLE_USER",
    "ConversationTurn",
    "KitchenStore",
    "MemoryFact",
    "SavedRecipe",
    "ShoppingItem",
    "UserPreference",
    "is_canonical_user_id",
    "parse_minutes",
]
