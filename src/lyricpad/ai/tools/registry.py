"""Registry mapping tool names to implementations."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .types import Tool, ToolSpec

__all__ = ["ToolRegistry", "DuplicateToolError", "ToolNotFoundError"]

LOGGER = logging.getLogger(__name__)


class DuplicateToolError(Exception):
    """Raised when attempting to register a tool with a name that already exists."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' is already registered")


class ToolNotFoundError(Exception):
    """Raised when the model asks for a tool that was never offered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found")


class ToolRegistry:
    """Holds the tools offered to the model and dispatches calls to them.

    The registry doubles as the executor used by
    :func:`lyricpad.ai.orchestration.tools.execute_tools`.
    """

    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools or ():
            self.register(tool)

    def register(self, tool: Tool, *, allow_override: bool = False) -> None:
        name = tool.name
        if name in self._tools and not allow_override:
            raise DuplicateToolError(name)
        self._tools[name] = tool
        LOGGER.debug("Registered tool: %s", name)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def names(self) -> list[str]:
        return list(self._tools)

    def specs(self) -> list[ToolSpec]:
        return [tool.spec for tool in self._tools.values()]

    def to_openai_tools(self) -> list[dict[str, Any]]:
        return [spec.to_openai_tool() for spec in self.specs()]

    async def execute(self, name: str, arguments: Mapping[str, Any], *, call_id: str = "") -> Any:
        tool = self._tools.get(name)
        if tool is None:
            LOGGER.warning("Model requested unknown tool %s (call %s)", name, call_id or "?")
            raise ToolNotFoundError(name)
        return await tool.execute(arguments)

    def __len__(self) -> int:
        return len(self._tools)
