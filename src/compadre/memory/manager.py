"""User data service: routes reads and writes to the store or the session.

Canonical user ids are read from and written to the KitchenStore. Any other
id (guest sessions such as 'web' or 'demo-user') is served from transient
data kept in that user's session context, so nothing about a guest ever
reaches the datastore.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable

from ..session import SessionManager
from ..store import (
    KitchenStore,
    MemoryFact,
    SavedRecipe,
    ShoppingItem,
    UserPreference,
    is_canonical_user_id,
)

logger = logging.getLogger(__name__)

TRANSIENT_PREFERENCES = "preferences"
TRANSIENT_RECIPES = "recipes"
TRANSIENT_SHOPPING = "shopping_list"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a write routed through the service.

    Attributes:
        success: False when the datastore write raised.
        persisted: True when the data went to the datastore rather than
            the transient session.
        record_id: Datastore id of the new row, when there is one.
    """

    success: bool
    persisted: bool
    record_id: int | None = None


class UserDataService:
    """Reads and writes per-user kitchen data.

    Datastore failures never propagate: reads degrade to empty results and
    writes report `success=False`.
    """

    def __init__(
        self,
        store: KitchenStore | None,
        sessions: SessionManager,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the service.

        Args:
            store: The KitchenStore for persistence, or None to keep
                everything transient.
            sessions: Session manager holding transient data for guests.
            clock: Source of "now" for timestamps and expiry checks.
        """
        self.store = store
        self.sessions = sessions
        self.clock = clock

    def is_persistent(self, user_id: str) -> bool:
        """Whether this user's data goes to the datastore."""
        return self.store is not None and is_canonical_user_id(user_id)

    # Reads

    def get_preferences(self, user_id: str) -> list[UserPreference]:
        if not self.is_persistent(user_id):
            prefs = self.sessions.get_context(user_id, TRANSIENT_PREFERENCES, {})
            return sorted(
                prefs.values(),
                key=lambda p: (p.confidence, p.last_used or datetime.min.replace(tzinfo=timezone.utc)),
                reverse=True,
            )
        try:
            return self.store.get_preferences(user_id)
        except sqlite3.Error as e:
            logger.error("Error fetching preferences for %s: %s", user_id, e)
            return []

    def get_memory(self, user_id: str) -> list[MemoryFact]:
        """Unexpired memory facts. Guests have none."""
        if not self.is_persistent(user_id):
            return []
        try:
            return self.store.get_memory_facts(user_id, now=self.clock())
        except sqlite3.Error as e:
            logger.error("Error fetching memory for %s: %s", user_id, e)
            return []

    def get_recipes(self, user_id: str, limit: int = 10) -> list[SavedRecipe]:
        """Saved recipes, newest first."""
        if not self.is_persistent(user_id):
            return list(self.sessions.get_context(user_id, TRANSIENT_RECIPES, []))[:limit]
        try:
            return self.store.get_recipes(user_id, limit=limit)
        except sqlite3.Error as e:
            logger.error("Error fetching recipes for %s: %s", user_id, e)
            return []

    def get_shopping_list(self, user_id: str) -> list[ShoppingItem]:
        if not self.is_persistent(user_id):
            return list(self.sessions.get_context(user_id, TRANSIENT_SHOPPING, []))
        try:
            return self.store.get_shopping_list(user_id)
        except sqlite3.Error as e:
            logger.error("Error fetching shopping list for %s: %s", user_id, e)
            return []

    # Writes

    def save_preference(self, user_id: str, preference: UserPreference) -> WriteResult:
        preference = replace(preference, last_used=self.clock())
        if not self.is_persistent(user_id):
            prefs = dict(self.sessions.get_context(user_id, TRANSIENT_PREFERENCES, {}))
            prefs[preference.preference_type] = preference
            self.sessions.set_context(user_id, TRANSIENT_PREFERENCES, prefs)
            return WriteResult(success=True, persisted=False)
        try:
            self.store.upsert_preference(user_id, preference)
            return WriteResult(success=True, persisted=True)
        except sqlite3.Error as e:
            logger.error("Error saving preference for %s: %s", user_id, e)
            return WriteResult(success=False, persisted=True)

    def save_recipe(self, user_id: str, recipe: SavedRecipe) -> WriteResult:
        recipe = replace(recipe, created_at=self.clock())
        if not self.is_persistent(user_id):
            recipes = self.sessions.get_context(user_id, TRANSIENT_RECIPES, [])
            self.sessions.set_context(user_id, TRANSIENT_RECIPES, [recipe, *recipes])
            return WriteResult(success=True, persisted=False)
        try:
            recipe_id = self.store.save_recipe(user_id, recipe)
            return WriteResult(success=True, persisted=True, record_id=recipe_id)
        except sqlite3.Error as e:
            logger.error("Error saving recipe for %s: %s", user_id, e)
            return WriteResult(success=False, persisted=True)

    def add_shopping_items(self, user_id: str, items: list[ShoppingItem]) -> WriteResult:
        if not self.is_persistent(user_id):
            current = self.sessions.get_context(user_id, TRANSIENT_SHOPPING, [])
            self.sessions.set_context(user_id, TRANSIENT_SHOPPING, [*current, *items])
            return WriteResult(success=True, persisted=False)
        try:
            self.store.add_shopping_items(user_id, items)
            return WriteResult(success=True, persisted=True)
        except sqlite3.Error as e:
            logger.error("Error adding to shopping list for %s: %s", user_id, e)
            return WriteResult(success=False, persisted=True)

    def format_for_prompt(
        self,
        preferences: list[UserPreference],
        memory: list[MemoryFact],
    ) -> str:
        """Format preferences and memory as itemized prompt lines."""
        lines = [f"- {p.preference_type}: {p.value}" for p in preferences]
        lines.extend(f"- {m.content}" for m in memory)
        return "\n".join(lines)
