"""Registry of the functions the model may call, keyed by name."""

import logging
from collections.abc import Iterable
from typing import Any

from .base import Tool, ToolResult

logger = logging.getLogger(__name__)


def _failure(error: str) -> ToolResult:
    return ToolResult(success=False, output="", error=error)


class ToolRegistry:
    """Holds the kitchen tools and routes model function calls to them.

    Calls are always made on behalf of a user id; tools that touch user
    data hand it to the UserDataService, which decides where it goes.
    """

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)

    def list_tools(self) -> list[str]:
        return list(self._tools)

    def get_declarations(self) -> list[dict[str, Any]]:
        """Declarations in registration order, as sent with every model call."""
        return [tool.get_declaration() for tool in self._tools.values()]

    async def dispatch(self, tool_name: str, args: dict[str, Any], user_id: str) -> ToolResult:
        """Validate and run one function call.

        Unknown names, bad arguments and tool exceptions all come back as an
        unsuccessful ToolResult so one bad call never sinks the whole turn.
        """
        tool = self._tools.get(tool_name)
        if tool is None:
            logger.warning("Model requested unknown function %s", tool_name)
            return _failure(f"Unknown function: {tool_name}")

        valid, error = tool.validate_args(args)
        if not valid:
            logger.warning("Rejected %s call: %s", tool_name, error)
            return _failure(error or "Invalid arguments")

        try:
            return await tool.execute(user_id, **args)
        except Exception as e:
            logger.exception("Tool %s failed for %s", tool_name, user_id)
            return _failure(f"Tool execution failed: {e}")
