"""Tests for RecipeLearner."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from compadre.memory import UserDataService
from compadre.recipes import FetchError, RecipeLearner
from compadre.recipes.learn import GUEST_NOTE, recipe_text
from compadre.store import KitchenStore

EXTRACTED = {
    "title": "Egg Fried Rice",
    "description": "Weeknight classic",
    "servings": 2,
    "prep_time": "10 minutes",
    "cook_time": "15 minutes",
    "difficulty": "Easy",
    "ingredients": [
        {"name": "cooked rice", "amount": "2 cups", "notes": "day-old"},
        {"name": "eggs", "amount": "2"},
    ],
    "steps": [
        {"step": 1, "instruction": "Scramble the eggs"},
        {"step": 2, "instruction": "Fry the rice"},
    ],
    "dietary_tags": ["vegetarian"],
    "source_url": "https://example.com/fried-rice",
}

NUTRITION = {"calories": 450, "protein": 14, "carbs": 60, "fat": 15}


@pytest.fixture
def model():
    model = MagicMock()
    model.complete = AsyncMock(side_effect=[json.dumps(EXTRACTED), json.dumps(NUTRITION)])
    return model


@pytest.fixture
def fetcher():
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value="Egg Fried Rice. You need rice and eggs.")
    return fetcher


@pytest.fixture
def learner(model, data, fetcher) -> RecipeLearner:
    return RecipeLearner(model, data, fetcher=fetcher)


def test_recipe_text():
    text = recipe_text(EXTRACTED)
    assert text.startswith("Egg Fried Rice\n\nIngredients:\n- 2 cups cooked rice (day-old)\n- 2 eggs")
    assert "Instructions:\n1. Scramble the eggs\n2. Fry the rice" in text


@pytest.mark.asyncio
async def test_requires_url_or_content(learner):
    with pytest.raises(ValueError, match="URL or content required"):
        await learner.learn("web")


@pytest.mark.asyncio
async def test_learns_and_saves_for_canonical_user(learner, model, fetcher, store: KitchenStore, canonical_id):
    result = await learner.learn(canonical_id, url="https://example.com/fried-rice")

    assert result.saved
    assert result.recipe_id is not None
    assert result.nutrition == NUTRITION

    data = result.to_dict()
    assert data["success"] is True
    assert data["message"] == "Successfully extracted recipe: Egg Fried Rice"
    assert "note" not in data

    saved = store.get_recipe_by_id(canonical_id, result.recipe_id)
    assert saved.source_type == "url"
    assert saved.source_url == "https://example.com/fried-rice"
    assert saved.prep_time == 10
    assert saved.servings == 2
    assert saved.tags == ["vegetarian"]

    prompt = model.complete.call_args_list[0].args[0]
    assert "URL: https://example.com/fried-rice" in prompt
    assert "Content: Egg Fried Rice. You need rice and eggs." in prompt
    fetcher.fetch.assert_awaited_once_with("https://example.com/fried-rice")


@pytest.mark.asyncio
async def test_guest_keeps_recipe_in_session(learner, store: KitchenStore, data: UserDataService):
    result = await learner.learn("demo-user", content="Egg fried rice: rice, eggs, soy sauce.")

    assert not result.saved
    assert result.recipe_id is None
    assert result.to_dict()["note"] == GUEST_NOTE
    assert store.get_recipes("demo-user") == []
    assert data.get_recipes("demo-user")[0].title == "Egg Fried Rice"


@pytest.mark.asyncio
async def test_pasted_content_is_not_fetched(learner, fetcher):
    await learner.learn("web", url="https://example.com/r", content="Pasted recipe text")
    fetcher.fetch.assert_not_awaited()


@pytest.mark.asyncio
async def test_fetch_failure_uses_url_alone(learner, model, fetcher):
    fetcher.fetch.side_effect = FetchError("HTTP 403")

    result = await learner.learn("web", url="https://example.com/paywalled")

    assert result.recipe["title"] == "Egg Fried Rice"
    prompt = model.complete.call_args_list[0].args[0]
    assert "URL: https://example.com/paywalled" in prompt
    assert "Content:" not in prompt


@pytest.mark.asyncio
async def test_unparseable_extraction_uses_default(learner, model):
    model.complete.side_effect = ["I could not find a recipe.", json.dumps(NUTRITION)]

    result = await learner.learn("web", content="A poem about autumn")

    assert result.recipe["title"] == "Extracted Recipe"
    assert result.recipe["raw_analysis"] == "I could not find a recipe."


@pytest.mark.asyncio
async def test_nutrition_failure_does_not_fail_learning(learner, model):
    model.complete.side_effect = [json.dumps(EXTRACTED), RuntimeError("quota")]

    result = await learner.learn("web", content="Egg fried rice")

    assert result.nutrition is None
    assert "nutrition" not in result.to_dict()


@pytest.mark.asyncio
async def test_extraction_errors_propagate(learner, model):
    model.complete.side_effect = RuntimeError("model down")

    with pytest.raises(RuntimeError, match="model down"):
        await learner.learn("web", content="Egg fried rice")
