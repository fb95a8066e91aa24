"""SQLite storage for per-user kitchen data."""

import json
import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .models import (
    ConversationTurn,
    MemoryFact,
    SavedRecipe,
    ShoppingItem,
    UserPreference,
)

_LEADING_INT = re.compile(r"^\s*(\d+)")

_RECIPE_COLUMNS = (
    "id, title, recipe_data, tags, difficulty, prep_time, cook_time, "
    "servings, source_type, source_url, created_at"
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_minutes(value: Any) -> int | None:
    """Read a leading integer from values like '15 minutes' or 20."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


class KitchenStore:
    """Persistent storage for user data using SQLite.

    Every table is keyed by user_id. The store does not decide who may be
    persisted; callers only hand it canonical user ids.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the store with a database path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        conn = self._get_connection()
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS conversation_turns (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id     TEXT NOT NULL,
                role        TEXT NOT NULL,
                content     TEXT NOT NULL,
                created_at  TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_turns_user
                ON conversation_turns(user_id, created_at);

            CREATE TABLE IF NOT EXISTS user_preferences (
                id                INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id           TEXT NOT NULL,
                preference_type   TEXT NOT NULL,
                preference_value  TEXT NOT NULL,
                confidence_score  INTEGER NOT NULL DEFAULT 3,
                last_used         TEXT NOT NULL,
                UNIQUE(user_id, preference_type)
            );

            CREATE TABLE IF NOT EXISTS memory_facts (
                id                INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id           TEXT NOT NULL,
                memory_type       TEXT NOT NULL,
                memory_content    TEXT NOT NULL,
                context           TEXT,
                confidence_score  INTEGER NOT NULL DEFAULT 3,
                expires_at        TEXT,
                created_at        TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_memory_user ON memory_facts(user_id);

            CREATE TABLE IF NOT EXISTS saved_recipes (
                id           INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id      TEXT NOT NULL,
                title        TEXT NOT NULL,
                recipe_data  TEXT NOT NULL,
                tags         TEXT NOT NULL DEFAULT '[]',
                difficulty   TEXT NOT NULL DEFAULT 'medium',
                prep_time    INTEGER,
                cook_time    INTEGER,
                servings     INTEGER NOT NULL DEFAULT 4,
                source_type  TEXT NOT NULL DEFAULT 'chat',
                source_url   TEXT,
                created_at   TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_recipes_user
                ON saved_recipes(user_id, created_at);

            CREATE TABLE IF NOT EXISTS shopping_list_items (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id     TEXT NOT NULL,
                item        TEXT NOT NULL,
                quantity    TEXT NOT NULL DEFAULT '',
                category    TEXT NOT NULL DEFAULT 'general',
                priority    INTEGER NOT NULL DEFAULT 2,
                created_at  TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_shopping_user
                ON shopping_list_items(user_id);
        """)
        conn.commit()

    # Conversation turns

    def add_turns(self, user_id: str, turns: list[ConversationTurn]) -> int:
        """Append conversation turns for a user.

        Returns:
            Number of rows inserted.
        """
        conn = self._get_connection()
        conn.executemany(
            "INSERT INTO conversation_turns (user_id, role, content, created_at) "
            "VALUES (?, ?, ?, ?)",
            [(user_id, t.role, t.text, _to_iso(t.timestamp)) for t in turns],
        )
        conn.commit()
        return len(turns)

    def get_recent_turns(self, user_id: str, limit: int = 20) -> list[ConversationTurn]:
        """Get the most recent turns, oldest first."""
        if limit <= 0:
            return []
        conn = self._get_connection()
        cursor = conn.execute(
            """
            SELECT role, content, created_at FROM conversation_turns
            WHERE user_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        rows = list(reversed(cursor.fetchall()))
        return [
            ConversationTurn(
                role=row["role"],
                text=row["content"],
                timestamp=_from_iso(row["created_at"]),
            )
            for row in rows
        ]

    # Preferences

    def get_preferences(self, user_id: str) -> list[UserPreference]:
        """Get preferences, strongest and most recently used first."""
        conn = self._get_connection()
        cursor = conn.execute(
            """
            SELECT preference_type, preference_value, confidence_score, last_used
            FROM user_preferences
            WHERE user_id = ?
            ORDER BY confidence_score DESC, last_used DESC
            """,
            (user_id,),
        )
        return [
            UserPreference(
                preference_type=row["preference_type"],
                value=row["preference_value"],
                confidence=row["confidence_score"],
                last_used=_from_iso(row["last_used"]),
            )
            for row in cursor.fetchall()
        ]

    def upsert_preference(self, user_id: str, preference: UserPreference) -> UserPreference:
        """Insert or replace the preference of this type for the user."""
        last_used = preference.last_used or _utcnow()
        conn = self._get_connection()
        conn.execute(
            """
            INSERT INTO user_preferences
                (user_id, preference_type, preference_value, confidence_score, last_used)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id, preference_type) DO UPDATE SET
                preference_value = excluded.preference_value,
                confidence_score = excluded.confidence_score,
                last_used = excluded.last_used
            """,
            (
                user_id,
                preference.preference_type,
                preference.value,
                preference.confidence,
                _to_iso(last_used),
            ),
        )
        conn.commit()
        return UserPreference(
            preference_type=preference.preference_type,
            value=preference.value,
            confidence=preference.confidence,
            last_used=last_used,
        )

    # Memory facts

    def get_memory_facts(
        self,
        user_id: str,
        now: datetime | None = None,
        memory_type: str | None = None,
    ) -> list[MemoryFact]:
        """Get unexpired memory facts, most confident and newest first.

        Facts without an expiry never expire.
        """
        now = now or _utcnow()
        query = """
            SELECT id, memory_type, memory_content, context, confidence_score,
                   expires_at, created_at
            FROM memory_facts
            WHERE user_id = ? AND (expires_at IS NULL OR expires_at > ?)
        """
        params: list[Any] = [user_id, _to_iso(now)]
        if memory_type:
            query += " AND memory_type = ?"
            params.append(memory_type)
        query += " ORDER BY confidence_score DESC, created_at DESC, id DESC"

        conn = self._get_connection()
        cursor = conn.execute(query, params)
        return [
            MemoryFact(
                id=row["id"],
                memory_type=row["memory_type"],
                content=row["memory_content"],
                context=row["context"],
                confidence=row["confidence_score"],
                expires_at=_from_iso(row["expires_at"]),
                created_at=_from_iso(row["created_at"]),
            )
            for row in cursor.fetchall()
        ]

    def save_memory_fact(self, user_id: str, fact: MemoryFact) -> MemoryFact:
        """Store a memory fact and return it with its id."""
        created_at = fact.created_at or _utcnow()
        conn = self._get_connection()
        cursor = conn.execute(
            """
            INSERT INTO memory_facts
                (user_id, memory_type, memory_content, context,
                 confidence_score, expires_at, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                fact.memory_type,
                fact.content,
                fact.context,
                fact.confidence,
                _to_iso(fact.expires_at) if fact.expires_at else None,
                _to_iso(created_at),
            ),
        )
        conn.commit()
        return MemoryFact(
            id=cursor.lastrowid,
            memory_type=fact.memory_type,
            content=fact.content,
            context=fact.context,
            confidence=fact.confidence,
            expires_at=fact.expires_at,
            created_at=created_at,
        )

    # Recipes

    def save_recipe(self, user_id: str, recipe: SavedRecipe) -> int:
        """Insert a recipe and return its id."""
        created_at = recipe.created_at or _utcnow()
        conn = self._get_connection()
        cursor = conn.execute(
            """
            INSERT INTO saved_recipes
                (user_id, title, recipe_data, tags, difficulty, prep_time,
                 cook_time, servings, source_type, source_url, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                recipe.title,
                json.dumps(recipe.recipe_data, ensure_ascii=False),
                json.dumps(recipe.tags, ensure_ascii=False),
                recipe.difficulty,
                recipe.prep_time,
                recipe.cook_time,
                recipe.servings,
                recipe.source_type,
                recipe.source_url,
                _to_iso(created_at),
            ),
        )
        conn.commit()
        return int(cursor.lastrowid)

    def get_recipes(self, user_id: str, limit: int = 10) -> list[SavedRecipe]:
        """Get the user's recipes, newest first."""
        conn = self._get_connection()
        cursor = conn.execute(
            f"SELECT {_RECIPE_COLUMNS} FROM saved_recipes WHERE user_id = ? "
            "ORDER BY created_at DESC, id DESC LIMIT ?",
            (user_id, limit),
        )
        return [self._row_to_recipe(row) for row in cursor.fetchall()]

    def get_recipe_by_id(self, user_id: str, recipe_id: int) -> SavedRecipe | None:
        """Get one of the user's recipes by id."""
        conn = self._get_connection()
        cursor = conn.execute(
            f"SELECT {_RECIPE_COLUMNS} FROM saved_recipes WHERE user_id = ? AND id = ?",
            (user_id, recipe_id),
        )
        row = cursor.fetchone()
        return self._row_to_recipe(row) if row else None

    def get_recipe_by_title(self, user_id: str, title: str) -> SavedRecipe | None:
        """Get the newest recipe whose title contains `title` (case-insensitive)."""
        conn = self._get_connection()
        cursor = conn.execute(
            f"SELECT {_RECIPE_COLUMNS} FROM saved_recipes "
            "WHERE user_id = ? AND title LIKE ? "
            "ORDER BY created_at DESC, id DESC LIMIT 1",
            (user_id, f"%{title}%"),
        )
        row = cursor.fetchone()
        return self._row_to_recipe(row) if row else None

    # Shopping list

    def add_shopping_items(self, user_id: str, items: list[ShoppingItem]) -> int:
        """Bulk insert shopping list items.

        Returns:
            Number of items inserted.
        """
        now = _to_iso(_utcnow())
        conn = self._get_connection()
        conn.executemany(
            """
            INSERT INTO shopping_list_items
                (user_id, item, quantity, category, priority, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (user_id, i.name, i.quantity, i.category, i.priority, now)
                for i in items
            ],
        )
        conn.commit()
        return len(items)

    def get_shopping_list(self, user_id: str) -> list[ShoppingItem]:
        """Get the user's shopping list in insertion order."""
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT id, item, quantity, category, priority FROM shopping_list_items "
            "WHERE user_id = ? ORDER BY id",
            (user_id,),
        )
        return [
            ShoppingItem(
                id=row["id"],
                name=row["item"],
                quantity=row["quantity"],
                category=row["category"],
                priority=row["priority"],
            )
            for row in cursor.fetchall()
        ]

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _row_to_recipe(self, row: sqlite3.Row) -> SavedRecipe:
        """Convert a database row to a SavedRecipe."""
        return SavedRecipe(
            id=row["id"],
            title=row["title"],
            recipe_data=json.loads(row["recipe_data"]),
            tags=json.loads(row["tags"]),
            difficulty=row["difficulty"],
            prep_time=row["prep_time"],
            cook_time=row["cook_time"],
            servings=row["servings"],
            source_type=row["source_type"],
            source_url=row["source_url"],
            created_at=_from_iso(row["created_at"]),
        )
