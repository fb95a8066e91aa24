"""Learn a structured recipe from a URL or pasted content."""

import json
import logging
from dataclasses import dataclass
from typing import Any

from ..llm import ModelClient, parse_json_reply
from ..memory import UserDataService
from ..nutrition import NutritionAnalyzer
from ..store import SavedRecipe, parse_minutes
from .fetch import FetchError, PageFetcher

logger = logging.getLogger(__name__)

GUEST_NOTE = "Recipe not saved (demo user)"

EXTRACTION_PROMPT = """Analyze this cooking content and extract a structured recipe that I can guide users through step-by-step.

{source}

Extract and format as JSON:
{{
  "title": "Recipe title",
  "description": "Brief description",
  "servings": number,
  "prep_time": "X minutes",
  "cook_time": "X minutes",
  "total_time": "X minutes",
  "difficulty": "Easy/Medium/Hard",
  "ingredients": [
    {{
      "name": "ingredient name",
      "amount": "1 cup",
      "notes": "optional notes"
    }}
  ],
  "steps": [
    {{
      "step": 1,
      "instruction": "detailed step",
      "tips": "optional cooking tips",
      "timing": "optional timing"
    }}
  ],
  "equipment": ["equipment1", "equipment2"],
  "tips": ["tip1", "tip2"],
  "substitutions": {{
    "original": "substitution"
  }},
  "dietary_tags": ["vegan", "gluten-free"],
  "cuisine": "type of cuisine",
  "source_url": "{source_url}"
}}

Make it practical for step-by-step cooking guidance. Include timing, temperature, and technique details."""


def default_recipe(source_url: str, raw_analysis: str) -> dict[str, Any]:
    """Placeholder recipe used when the model's answer is not valid JSON."""
    return {
        "title": "Extracted Recipe",
        "description": "Recipe extracted from content",
        "servings": 4,
        "prep_time": "15 minutes",
        "cook_time": "30 minutes",
        "total_time": "45 minutes",
        "difficulty": "Medium",
        "ingredients": [],
        "steps": [],
        "equipment": [],
        "tips": [],
        "substitutions": {},
        "dietary_tags": [],
        "cuisine": "Unknown",
        "source_url": source_url,
        "raw_analysis": raw_analysis,
    }


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return parse_minutes(value) or default


def recipe_text(recipe: dict[str, Any]) -> str:
    """Plain text rendering of a recipe, used as nutrition input."""
    ingredients = []
    for ing in recipe.get("ingredients") or []:
        if isinstance(ing, dict):
            line = f"- {ing.get('amount', '')} {ing.get('name', '')}".rstrip()
            if ing.get("notes"):
                line += f" ({ing['notes']})"
        else:
            line = f"- {ing}"
        ingredients.append(line)

    steps = []
    for i, step in enumerate(recipe.get("steps") or [], start=1):
        if isinstance(step, dict):
            steps.append(f"{step.get('step') or i}. {step.get('instruction', '')}")
        else:
            steps.append(f"{i}. {step}")

    return (
        f"{recipe.get('title', '')}\n\n"
        "Ingredients:\n" + "\n".join(ingredients) + "\n\n"
        "Instructions:\n" + "\n".join(steps)
    )


@dataclass
class LearnResult:
    """Outcome of learning a recipe."""

    recipe: dict[str, Any]
    saved: bool
    recipe_id: int | None = None
    nutrition: dict[str, Any] | None = None
    note: str | None = None

    @property
    def message(self) -> str:
        return f"Successfully extracted recipe: {self.recipe.get('title', 'Untitled')}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "recipe": self.recipe,
            "success": True,
            "message": self.message,
            "saved": self.saved,
            "recipe_id": self.recipe_id,
        }
        if self.note:
            data["note"] = self.note
        if self.nutrition:
            data["nutrition"] = self.nutrition
        return data


class RecipeLearner:
    """Extracts a recipe with the model, analyzes it, and saves it.

    Canonical users get the recipe written to the datastore. Guests keep it
    in their session, so the next chat turn can still guide them through it.
    """

    def __init__(
        self,
        model_client: ModelClient,
        data: UserDataService,
        nutrition_analyzer: NutritionAnalyzer | None = None,
        fetcher: PageFetcher | None = None,
    ) -> None:
        self.model_client = model_client
        self.data = data
        self.nutrition_analyzer = nutrition_analyzer or NutritionAnalyzer(model_client)
        self.fetcher = fetcher or PageFetcher()

    async def _source_block(self, url: str | None, content: str | None) -> str:
        lines = []
        if url:
            lines.append(f"URL: {url}")
            if not content:
                try:
                    content = await self.fetcher.fetch(url)
                except FetchError as e:
                    logger.warning("Could not fetch %s, using the URL alone: %s", url, e)
        if content:
            lines.append(f"Content: {content}")
        return "\n".join(lines)

    async def extract(self, url: str | None = None, content: str | None = None) -> dict[str, Any]:
        """Ask the model for the structured recipe."""
        source = await self._source_block(url, content)
        prompt = EXTRACTION_PROMPT.format(source=source, source_url=url or "")
        raw = await self.model_client.complete(prompt)

        try:
            recipe = parse_json_reply(raw)
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse recipe extraction: %s", e)
            return default_recipe(url or "", raw)

        if not isinstance(recipe, dict):
            return default_recipe(url or "", raw)
        return recipe

    async def learn(
        self,
        user_id: str,
        url: str | None = None,
        content: str | None = None,
    ) -> LearnResult:
        """Extract, analyze and save a recipe.

        Raises:
            ValueError: If neither url nor content is given.
        """
        if not url and not content:
            raise ValueError("URL or content required")

        recipe = await self.extract(url, content)
        servings = _as_int(recipe.get("servings"), 1)

        nutrition = None
        try:
            nutrition = await self.nutrition_analyzer.analyze(recipe_text(recipe), servings)
        except Exception as e:
            logger.warning("Nutrition analysis failed for learned recipe: %s", e)

        saved_recipe = SavedRecipe(
            title=str(recipe.get("title") or "Extracted Recipe"),
            recipe_data=recipe,
            tags=list(recipe.get("dietary_tags") or []),
            difficulty=str(recipe.get("difficulty") or "medium"),
            prep_time=parse_minutes(recipe.get("prep_time")),
            cook_time=parse_minutes(recipe.get("cook_time")),
            servings=_as_int(recipe.get("servings"), 4),
            source_type="url",
            source_url=url or "",
        )
        result = self.data.save_recipe(user_id, saved_recipe)

        if not result.persisted:
            logger.info("Keeping learned recipe in session for guest user %s", user_id)
            return LearnResult(recipe=recipe, saved=False, nutrition=nutrition, note=GUEST_NOTE)

        return LearnResult(
            recipe=recipe,
            saved=result.success,
            recipe_id=result.record_id,
            nutrition=nutrition,
        )
