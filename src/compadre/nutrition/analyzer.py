"""Nutrition estimates from the model."""

import json
import logging
from typing import Any

from ..llm import ModelClient, parse_json_reply

logger = logging.getLogger(__name__)

NUTRITION_PROMPT = """Analyze the nutritional content of this recipe and provide ONLY a JSON response.

Recipe: {recipe}

Return ONLY this JSON format (no other text):
{{
  "calories": 300,
  "protein": 15,
  "carbs": 25,
  "fat": 10,
  "fiber": 5,
  "sugar": 8,
  "sodium": 400,
  "vitamins": ["vitamin C", "vitamin A"],
  "minerals": ["iron", "calcium"],
  "health_benefits": ["high protein", "low carb"],
  "dietary_tags": ["vegetarian", "gluten-free"],
  "servings": {servings}
}}

IMPORTANT: Return ONLY the JSON object, no explanations or additional text."""


def default_nutrition(servings: int, raw_analysis: str) -> dict[str, Any]:
    """Placeholder values used when the model's answer is not valid JSON."""
    return {
        "calories": 300,
        "protein": 15,
        "carbs": 25,
        "fat": 10,
        "fiber": 5,
        "sugar": 8,
        "sodium": 400,
        "vitamins": ["vitamin C", "vitamin A"],
        "minerals": ["iron", "calcium"],
        "health_benefits": ["nutritious", "balanced"],
        "dietary_tags": ["healthy"],
        "servings": servings,
        "raw_analysis": raw_analysis,
    }


class NutritionAnalyzer:
    """Asks the model for a nutrition breakdown of a recipe text.

    Model errors propagate to the caller; only malformed JSON is absorbed
    into the default structure.
    """

    def __init__(self, model_client: ModelClient) -> None:
        self.model_client = model_client

    def build_prompt(self, recipe_text: str, servings: int = 1) -> str:
        return NUTRITION_PROMPT.format(recipe=recipe_text, servings=servings)

    async def analyze(self, recipe_text: str, servings: int = 1) -> dict[str, Any]:
        content = await self.model_client.complete(self.build_prompt(recipe_text, servings))

        try:
            nutrition = parse_json_reply(content)
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse nutrition response: %s", e)
            return default_nutrition(servings, content)

        if not isinstance(nutrition, dict):
            logger.warning("Nutrition response was not a JSON object")
            return default_nutrition(servings, content)
        return nutrition
