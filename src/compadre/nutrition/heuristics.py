"""When is a nutrition analysis worth a second model call?

Two triggers: the user asked for it, or the assistant's reply looks like a
fresh recipe suggestion. The second is a keyword heuristic with expected
false positives; it sits behind RecipeSuggestionClassifier so the
orchestrator does not care which implementation it gets.
"""

import logging
from typing import Protocol

from ..store import ConversationTurn

logger = logging.getLogger(__name__)

NUTRITION_KEYWORDS = ("nutrition", "calories", "how healthy", "nutritional")

COOKING_KEYWORDS = (
    "step", "cook", "fry", "boil", "bake", "sauté", "grill", "roast",
    "ingredient", "recipe", "prepare", "heat", "simmer", "mix", "stir",
    "first", "then", "next", "add", "pour", "chop", "dice", "slice",
)

DISH_NAMES = (
    "fried rice", "pasta", "curry", "soup", "stew", "salad", "sandwich",
    "stir fry", "roast", "grilled", "baked", "pizza", "burger", "taco",
)

# Markers of a recipe already presented in the conversation
CONTINUATION_MARKERS = ("nutrition", "📖")


def asks_for_nutrition(message: str) -> bool:
    """True when the user explicitly asked about nutrition."""
    lower = (message or "").lower()
    return any(keyword in lower for keyword in NUTRITION_KEYWORDS)


class RecipeSuggestionClassifier(Protocol):
    """Decides whether a reply is a new recipe suggestion."""

    def is_new_recipe_suggestion(self, reply: str, history: list[ConversationTurn]) -> bool: ...


class KeywordRecipeClassifier:
    """Keyword and length based recipe suggestion detector.

    A reply is rejected when it is a question, or when it continues a recipe
    from the last few history entries (a continuation marker, or a dish the
    reply mentions showing up there too). Otherwise it is accepted when it
    is long enough and has cooking keywords, or names a known dish.
    """

    def __init__(
        self,
        min_length: int = 100,
        continuation_window: int = 4,
        cooking_keywords: tuple[str, ...] = COOKING_KEYWORDS,
        dish_names: tuple[str, ...] = DISH_NAMES,
    ) -> None:
        self.min_length = min_length
        self.continuation_window = continuation_window
        self.cooking_keywords = cooking_keywords
        self.dish_names = dish_names

    def is_question(self, lower: str) -> bool:
        return "?" in lower or lower.startswith("what ") or lower.startswith("how ")

    def is_continuation(self, lower: str, history: list[ConversationTurn]) -> bool:
        if self.continuation_window <= 0:
            return False
        dishes = [dish for dish in self.dish_names if dish in lower]
        for turn in history[-self.continuation_window:]:
            previous = turn.text.lower()
            if any(marker in previous for marker in CONTINUATION_MARKERS):
                return True
            if any(dish in previous for dish in dishes):
                return True
        return False

    def is_new_recipe_suggestion(self, reply: str, history: list[ConversationTurn]) -> bool:
        if not reply or not isinstance(reply, str):
            return False

        lower = reply.lower()
        if self.is_question(lower):
            logger.debug("Not a recipe suggestion: reply is a question")
            return False

        if self.is_continuation(lower, history):
            logger.debug("Not a recipe suggestion: continues a recent recipe")
            return False

        has_cooking_content = any(word in lower for word in self.cooking_keywords)
        mentions_dish = any(dish in lower for dish in self.dish_names)
        return (has_cooking_content and len(reply) > self.min_length) or mentions_dish
