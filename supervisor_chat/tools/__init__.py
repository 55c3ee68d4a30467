"""
Data-provider tools for the worker agents.

Importing this package registers every tool with the registry.
"""
from supervisor_chat.tools.registry import registry
from supervisor_chat.tools.weather import get_current_weather
from supervisor_chat.tools.news import fetch_news


def get_tool(name: str):
    """Get a registered tool by name."""
    return registry.get(name)


__all__ = [
    "registry",
    "get_current_weather",
    "fetch_news",
    "get_tool",
]
