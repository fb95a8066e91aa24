"""Tool registry and the kitchen tools exposed to the model."""

from ..memory import UserDataService
from .base import Tool, ToolResult
from .guidance import GuideRecipeStepTool, SuggestSubstitutionsTool
from .images import (
    FALLBACK_REASON,
    SEE_PHRASES,
    ShowReferenceImagesTool,
    reference_query_from_message,
    wants_to_see,
)
from .preferences import PREFERENCE_TYPES, UpdatePreferencesTool
from .recipes import SaveRecipeTool
from .registry import ToolRegistry
from .shopping import AddToShoppingListTool


def build_kitchen_registry(data: UserDataService) -> ToolRegistry:
    """Create a registry with the six kitchen tools."""
    return ToolRegistry(
        [
            AddToShoppingListTool(data),
            SaveRecipeTool(data),
            UpdatePreferencesTool(data),
            SuggestSubstitutionsTool(),
            GuideRecipeStepTool(),
            ShowReferenceImagesTool(),
        ]
    )


__all__ = [
    "FALLBACK_REASON",
    "PREFERENCE_TYPES",
    "SEE_PHRASES",
    "AddToShoppingListTool",
    "GuideRecipeStepTool",
    "SaveRecipeTool",
    "ShowReferenceImagesTool",
    "SuggestSubstitutionsTool",
    "Tool",
    "ToolRegistry",
    "ToolResult",
    "UpdatePreferencesTool",
    "build_kitchen_registry",
    "reference_query_from_message",
    "wants_to_see",
]
