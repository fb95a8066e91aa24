"""Tests for NutritionAnalyzer."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from compadre.nutrition import NutritionAnalyzer, default_nutrition

ANALYSIS = {
    "calories": 520,
    "protein": 18,
    "carbs": 70,
    "fat": 17,
    "fiber": 3,
    "sugar": 4,
    "sodium": 900,
    "vitamins": ["vitamin B12"],
    "minerals": ["iron"],
    "health_benefits": ["high energy"],
    "dietary_tags": ["vegetarian"],
    "servings": 2,
}


def model_returning(content: str) -> MagicMock:
    model = MagicMock()
    model.complete = AsyncMock(return_value=content)
    return model


def test_prompt_includes_recipe_and_servings():
    analyzer = NutritionAnalyzer(model_returning(""))
    prompt = analyzer.build_prompt("Egg fried rice", servings=2)

    assert "Recipe: Egg fried rice" in prompt
    assert '"servings": 2' in prompt
    assert prompt.rstrip().endswith("no explanations or additional text.")


@pytest.mark.asyncio
async def test_parses_fenced_json():
    model = model_returning("```json\n" + json.dumps(ANALYSIS) + "\n```")
    result = await NutritionAnalyzer(model).analyze("Egg fried rice", servings=2)

    assert result == ANALYSIS
    model.complete.assert_awaited_once()


@pytest.mark.asyncio
async def test_invalid_json_falls_back_to_defaults():
    result = await NutritionAnalyzer(model_returning("About 500 calories.")).analyze("Soup", servings=3)

    assert result == default_nutrition(3, "About 500 calories.")
    assert result["calories"] == 300
    assert result["raw_analysis"] == "About 500 calories."


@pytest.mark.asyncio
async def test_non_object_json_falls_back():
    result = await NutritionAnalyzer(model_returning("[1, 2, 3]")).analyze("Soup")
    assert result["servings"] == 1
    assert result["health_benefits"] == ["nutritious", "balanced"]


@pytest.mark.asyncio
async def test_model_errors_propagate():
    model = MagicMock()
    model.complete = AsyncMock(side_effect=RuntimeError("quota exceeded"))

    with pytest.raises(RuntimeError, match="quota exceeded"):
        await NutritionAnalyzer(model).analyze("Soup")
