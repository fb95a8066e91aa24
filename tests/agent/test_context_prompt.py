"""Tests for prompt assembly."""

from datetime import datetime, timedelta, timezone

from compadre.agent.prompt import (
    SAFE_SYSTEM_PROMPT,
    build_context_prompt,
    build_recipe_context,
    format_history,
    format_recipe_details,
    format_recipe_list,
    is_recent,
)
from compadre.store import ConversationTurn, SavedRecipe

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def recipe(title="Egg Fried Rice", created_at=NOW, **data) -> SavedRecipe:
    return SavedRecipe(
        title=title,
        recipe_data=data,
        difficulty="easy",
        prep_time=10,
        cook_time=None,
        servings=2,
        created_at=created_at,
    )


def test_format_history():
    turns = [
        ConversationTurn(role="user", text="hi", timestamp=NOW),
        ConversationTurn(role="assistant", text="hello", timestamp=NOW),
    ]
    assert format_history(turns) == "User: hi\nAssistant: hello"
    assert format_history([]) == ""


def test_format_recipe_list():
    assert format_recipe_list([recipe()]) == "- Egg Fried Rice (easy, 10min prep, ?min cook)"


class TestRecipeDetails:
    def test_string_ingredients_and_steps(self):
        text = format_recipe_details(
            recipe(
                ingredients=["rice", "eggs"],
                steps=[f"step {i}" for i in range(1, 8)],
                description="Weeknight classic",
            )
        )

        assert text.startswith('⭐ MOST RECENTLY LEARNED RECIPE: "Egg Fried Rice"')
        assert "- Description: Weeknight classic" in text
        assert "- Servings: 2" in text
        assert "INGREDIENTS (2 items):\n1. rice\n2. eggs" in text
        assert "STEPS (7 total):" in text
        assert "5. step 5" in text
        assert "6. step 6" not in text
        assert "... and 2 more steps" in text
        assert text.endswith("✅ This recipe is ready for step-by-step guidance!")

    def test_structured_ingredients_and_steps(self):
        text = format_recipe_details(
            recipe(
                ingredients=[
                    {"name": "rice", "amount": "2 cups", "notes": "day-old"},
                    {"name": "salt"},
                ],
                steps=[{"step": 1, "instruction": "Heat the wok"}],
            )
        )
        assert "1. 2 cups rice (day-old)" in text
        assert "2. salt" in text
        assert "1. Heat the wok" in text
        assert "more steps" not in text

    def test_ingredient_cap(self):
        text = format_recipe_details(recipe(ingredients=[f"item {i}" for i in range(15)]), max_ingredients=10)
        assert "INGREDIENTS (15 items):" in text
        assert "10. item 9" in text
        assert "11. item 10" not in text

    def test_empty_data_has_header_only(self):
        assert format_recipe_details(recipe()) == '⭐ MOST RECENTLY LEARNED RECIPE: "Egg Fried Rice"'


class TestRecipeContext:
    def test_no_recipes(self):
        assert build_recipe_context([], NOW) == ""

    def test_recent_recipe_gets_details(self):
        recipes = [recipe(ingredients=["rice"], created_at=NOW - timedelta(seconds=299))]
        context = build_recipe_context(recipes, NOW, recency_seconds=300)

        assert context.startswith("\n\nSAVED RECIPES AVAILABLE FOR GUIDANCE:\n- Egg Fried Rice")
        assert "⭐ MOST RECENTLY LEARNED RECIPE" in context

    def test_old_recipe_is_listed_only(self):
        recipes = [recipe(ingredients=["rice"], created_at=NOW - timedelta(seconds=300))]
        context = build_recipe_context(recipes, NOW, recency_seconds=300)

        assert "- Egg Fried Rice" in context
        assert "⭐" not in context

    def test_only_newest_is_detailed(self):
        recipes = [
            recipe("Paella", ingredients=["saffron"], created_at=NOW - timedelta(hours=1)),
            recipe("Tacos", ingredients=["tortillas"], created_at=NOW - timedelta(minutes=1)),
        ]
        context = build_recipe_context(recipes, NOW)
        assert "- Paella" in context
        assert "- Tacos" in context
        assert "⭐" not in context

    def test_naive_timestamps(self):
        naive = recipe(created_at=(NOW - timedelta(seconds=10)).replace(tzinfo=None))
        assert is_recent(naive, NOW, 300)
        assert not is_recent(recipe(created_at=None), NOW, 300)


def test_build_context_prompt():
    history = [ConversationTurn(role="user", text="I have eggs", timestamp=NOW)]
    prompt = build_context_prompt(
        "What can I make?",
        "- diet: vegetarian",
        history,
        recipe_context="\n\nSAVED RECIPES AVAILABLE FOR GUIDANCE:\n- Omelette",
    )

    assert prompt.startswith(SAFE_SYSTEM_PROMPT)
    assert "USER CONTEXT:\n- diet: vegetarian" in prompt
    assert "RECENT CONVERSATION:\nUser: I have eggs" in prompt
    assert "- Omelette" in prompt
    assert "CURRENT MESSAGE: What can I make?" in prompt
    assert "show_reference_images" in prompt
