"""Shopping list tool."""

from typing import Any

from ..memory import UserDataService
from ..store import ShoppingItem
from .base import Tool, ToolResult


class AddToShoppingListTool(Tool):
    """Adds ingredients to the user's shopping list."""

    def __init__(self, data: UserDataService) -> None:
        self.data = data

    @property
    def name(self) -> str:
        return "add_to_shopping_list"

    @property
    def description(self) -> str:
        return "Add ingredients to user's shopping list when they mention needing items"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "items": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string", "description": "Ingredient name"},
                            "quantity": {"type": "string", "description": "Amount needed"},
                            "category": {
                                "type": "string",
                                "description": "Food category like 'produce', 'dairy', 'pantry'",
                            },
                        },
                        "required": ["name"],
                    },
                },
            },
            "required": ["items"],
        }

    async def execute(self, user_id: str, **kwargs: Any) -> ToolResult:
        items: list[ShoppingItem] = []
        for raw in kwargs.get("items") or []:
            if isinstance(raw, str) and raw.strip():
                items.append(ShoppingItem(name=raw.strip()))
            elif isinstance(raw, dict) and raw.get("name"):
                items.append(
                    ShoppingItem(
                        name=str(raw["name"]),
                        quantity=str(raw.get("quantity") or ""),
                        category=str(raw.get("category") or "general"),
                    )
                )

        if not items:
            return ToolResult(success=False, output="", error="No items to add")

        result = self.data.add_shopping_items(user_id, items)
        if not result.success:
            return ToolResult(success=False, output="", error="Failed to add to shopping list")

        return ToolResult(
            success=True,
            output=f"Added {len(items)} items to your shopping list",
            payload={
                "action": "shopping_list_added",
                "items": [
                    {"name": i.name, "quantity": i.quantity, "category": i.category}
                    for i in items
                ],
                "persisted": result.persisted,
            },
        )
