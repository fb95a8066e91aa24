"""Recipe saving tool."""

from typing import Any

from ..memory import UserDataService
from ..store import SavedRecipe, parse_minutes
from .base import Tool, ToolResult


class SaveRecipeTool(Tool):
    """Saves a recipe from the conversation to the user's collection."""

    def __init__(self, data: UserDataService) -> None:
        self.data = data

    @property
    def name(self) -> str:
        return "save_recipe"

    @property
    def description(self) -> str:
        return "Save a recipe to user's collection when they show interest in a recipe"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Recipe title"},
                "ingredients": {
                    "type": "array",
                    "description": "List of ingredients",
                    "items": {"type": "string"},
                },
                "steps": {
                    "type": "array",
                    "description": "Cooking steps",
                    "items": {"type": "string"},
                },
                "tags": {
                    "type": "array",
                    "description": "Recipe tags like 'vegan', 'quick', 'italian'",
                    "items": {"type": "string"},
                },
                "prep_time": {"type": "string", "description": "Preparation time"},
                "cook_time": {"type": "string", "description": "Cooking time"},
                "servings": {"type": "number", "description": "Number of servings"},
            },
            "required": ["title", "ingredients", "steps"],
        }

    async def execute(self, user_id: str, **kwargs: Any) -> ToolResult:
        title = str(kwargs.get("title") or "").strip()
        if not title:
            return ToolResult(success=False, output="", error="Recipe title is required")

        recipe_data = dict(kwargs)
        recipe_data["title"] = title
        servings = kwargs.get("servings")

        recipe = SavedRecipe(
            title=title,
            recipe_data=recipe_data,
            tags=list(kwargs.get("tags") or []),
            difficulty=str(kwargs.get("difficulty") or "medium"),
            prep_time=parse_minutes(kwargs.get("prep_time")),
            cook_time=parse_minutes(kwargs.get("cook_time")),
            servings=int(servings) if servings else 4,
            source_type="chat",
        )

        result = self.data.save_recipe(user_id, recipe)
        if not result.success:
            return ToolResult(success=False, output="", error="Failed to save recipe")

        payload: dict[str, Any] = {
            "action": "recipe_saved",
            "recipe": recipe_data,
            "persisted": result.persisted,
        }
        if result.record_id is not None:
            payload["recipe_id"] = result.record_id

        return ToolResult(success=True, output=f"Saved recipe: {title}", payload=payload)
