"""Dietary preference tool."""

from typing import Any

from ..memory import UserDataService
from ..store import UserPreference
from .base import Tool, ToolResult

PREFERENCE_TYPES = ["diet", "allergy", "cooking_skill", "cuisine"]
DEFAULT_CONFIDENCE = 3


def clamp_confidence(value: Any) -> int:
    """Coerce a model-supplied confidence into the 1-5 range."""
    try:
        confidence = int(round(float(value)))
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    return max(1, min(5, confidence))


class UpdatePreferencesTool(Tool):
    """Records a dietary preference, replacing any previous one of the same type."""

    def __init__(self, data: UserDataService) -> None:
        self.data = data

    @property
    def name(self) -> str:
        return "update_preferences"

    @property
    def description(self) -> str:
        return "Update user's dietary preferences when they mention dietary choices"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "preference_type": {"type": "string", "enum": PREFERENCE_TYPES},
                "preference_value": {"type": "string", "description": "The preference value"},
                "confidence": {"type": "number", "description": "Confidence level 1-5"},
            },
            "required": ["preference_type", "preference_value"],
        }

    async def execute(self, user_id: str, **kwargs: Any) -> ToolResult:
        preference_type = kwargs.get("preference_type", "")
        if preference_type not in PREFERENCE_TYPES:
            return ToolResult(
                success=False,
                output="",
                error=f"Unknown preference type: {preference_type}",
            )

        confidence = clamp_confidence(kwargs.get("confidence", DEFAULT_CONFIDENCE))
        preference = UserPreference(
            preference_type=preference_type,
            value=str(kwargs.get("preference_value", "")),
            confidence=confidence,
        )

        result = self.data.save_preference(user_id, preference)
        if not result.success:
            return ToolResult(success=False, output="", error="Failed to update preference")

        return ToolResult(
            success=True,
            output=f"Updated your {preference_type} preference",
            payload={
                "action": "preference_updated",
                "preference": {
                    "preference_type": preference.preference_type,
                    "preference_value": preference.value,
                    "confidence": confidence,
                },
                "persisted": result.persisted,
            },
        )
