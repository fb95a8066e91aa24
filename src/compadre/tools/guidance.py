"""Tools that echo structured cooking guidance back to the caller."""

from typing import Any

from .base import Tool, ToolResult


class SuggestSubstitutionsTool(Tool):
    """Passes ingredient substitutions through as an action payload."""

    @property
    def name(self) -> str:
        return "suggest_substitutions"

    @property
    def description(self) -> str:
        return "Suggest ingredient substitutions based on user preferences"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "original_ingredient": {"type": "string", "description": "Ingredient to substitute"},
                "reason": {"type": "string", "description": "Why substitution is needed"},
                "alternatives": {
                    "type": "array",
                    "description": "Suggested alternatives",
                    "items": {"type": "string"},
                },
            },
            "required": ["original_ingredient", "alternatives"],
        }

    async def execute(self, user_id: str, **kwargs: Any) -> ToolResult:
        return ToolResult(
            success=True,
            output=f"Suggested alternatives for {kwargs['original_ingredient']}",
            payload={"action": "substitution_suggested", "substitution": dict(kwargs)},
        )


class GuideRecipeStepTool(Tool):
    """Passes a single guided cooking step through as an action payload."""

    @property
    def name(self) -> str:
        return "guide_recipe_step"

    @property
    def description(self) -> str:
        return "Guide user through a specific step of a recipe they're cooking"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "step_number": {"type": "number", "description": "Current step number"},
                "step_description": {"type": "string", "description": "Detailed step instructions"},
                "tips": {
                    "type": "array",
                    "description": "Helpful tips for this step",
                    "items": {"type": "string"},
                },
                "timing": {"type": "string", "description": "How long this step takes"},
                "next_step": {"type": "string", "description": "What comes next"},
            },
            "required": ["step_number", "step_description"],
        }

    async def execute(self, user_id: str, **kwargs: Any) -> ToolResult:
        step_number = kwargs["step_number"]
        # Models send JSON numbers; show 2.0 as "2"
        if isinstance(step_number, float) and step_number.is_integer():
            step_number = int(step_number)

        return ToolResult(
            success=True,
            output=f"Step {step_number}: {kwargs['step_description']}",
            payload={"action": "recipe_step_guided", "step": dict(kwargs)},
        )
