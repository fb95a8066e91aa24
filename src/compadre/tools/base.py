"""Kitchen tool interface and the result every tool call produces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list, tuple),
    "object": (dict,),
}


@dataclass
class ToolResult:
    """Result from tool execution."""

    success: bool
    output: str
    error: str | None = None
    payload: dict[str, Any] | None = None

    def to_action(self) -> dict[str, Any]:
        """Render as an entry of the response's `actions` list."""
        if not self.success:
            return {"error": self.error or "Tool failed"}
        action = dict(self.payload or {})
        action["message"] = self.output
        return action


class Tool(ABC):
    """Base interface for all tools the model may call."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Function name the model calls."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Shown to the model in the function declaration."""
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for tool parameters."""
        ...

    @abstractmethod
    async def execute(self, user_id: str, **kwargs: Any) -> ToolResult:
        """Execute the tool on behalf of a user."""
        ...

    def get_declaration(self) -> dict[str, Any]:
        """Function declaration (name, description, parameters)."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }

    def validate_args(self, args: dict[str, Any]) -> tuple[bool, str | None]:
        """Validate arguments against schema. Returns (valid, error_message)."""
        required = self.parameters.get("required", [])
        properties = self.parameters.get("properties", {})

        for field in required:
            if field not in args or args[field] is None:
                return False, f"Missing required argument: {field}"

        for key, value in args.items():
            if key not in properties or value is None:
                continue
            json_type = properties[key].get("type", "")
            expected = _JSON_TYPES.get(json_type)
            if expected is None:
                continue
            # bool is an int subclass
            mismatched = not isinstance(value, expected) or (
                isinstance(value, bool) and bool not in expected
            )
            if mismatched:
                return False, f"Argument '{key}' must be of type {json_type}"

        return True, None
