"""
Tool Registry.

Single source of truth for tool registration. Tools use @registry.register()
decorator to automatically register themselves with metadata.
"""
import inspect
from dataclasses import dataclass

from langchain_core.tools import BaseTool
from langchain_core.tools import tool as langchain_tool


@dataclass
class ToolMetadata:
    """Metadata about a registered tool."""
    name: str
    description: str
    category: str  # "weather", "news"


class ToolRegistry:
    """
    Registry for all data-provider tools.

    Usage:
        @registry.register(category="weather")
        async def get_current_weather(city: str) -> str:
            '''Get the current weather in a given city.'''
            ...
    """

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}
        self._metadata: dict[str, ToolMetadata] = {}

    def register(self, category: str):
        """
        Decorator to register a tool with the registry.

        Args:
            category: Tool category, one per worker agent
        """
        def decorator(func):
            lc_tool = langchain_tool(func)
            if lc_tool.name in self._tools:
                raise ValueError(f"Tool already registered: {lc_tool.name}")

            summary = next(
                (line.strip() for line in (inspect.getdoc(func) or "").splitlines() if line.strip()),
                "",
            )
            self._tools[lc_tool.name] = lc_tool
            self._metadata[lc_tool.name] = ToolMetadata(lc_tool.name, summary, category)
            return lc_tool
        return decorator

    def get(self, name: str) -> BaseTool:
        """Look up a tool by name. Raises KeyError for unknown tools."""
        return self._tools[name]

    def describe(self) -> list[dict]:
        """Registered tool metadata, for the health endpoint."""
        return [
            {"name": m.name, "category": m.category, "description": m.description}
            for m in self._metadata.values()
        ]


# Global registry instance
registry = ToolRegistry()
