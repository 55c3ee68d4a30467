"""
Logging utilities for agent debugging.

Colored console trace of a turn as it moves through the supervisor graph:
one header per turn, a start/completed pair per node, routing decisions and
tool traffic. Set AGENT_LOG_ENABLED=false to silence it.
"""
import json
from datetime import datetime
from typing import Any

from supervisor_chat.config import get_settings

RULE = "=" * 60

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "magenta": "\033[95m",
    "blue": "\033[94m",
    "cyan": "\033[96m",
    "green": "\033[92m",
    "yellow": "\033[93m",
    "red": "\033[91m",
    "white": "\033[97m",
}

NODE_COLORS = {
    "supervisor": "magenta",
    "weather_reporter": "blue",
    "news_reporter": "cyan",
    "chatbot": "green",
    "summary_agent": "yellow",
}


def _paint(text: str, color: str) -> str:
    return f"{COLORS.get(color, '')}{text}{COLORS['reset']}"


def _clock() -> str:
    return datetime.now().strftime("%H:%M:%S.%f")[:-3]


def _emit(*lines: str) -> None:
    if get_settings().AGENT_LOG_ENABLED:
        for line in lines:
            print(line)


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _render(value: Any, limit: int = 200) -> str:
    """Compact one-line rendering of a value, truncated to `limit`."""
    if value is None:
        return "None"
    if isinstance(value, (dict, list, tuple)):
        try:
            return _clip(json.dumps(value, default=str), limit)
        except (TypeError, ValueError):
            pass
    return _clip(str(value), limit)


def _node_tag(node_name: str) -> str:
    return _paint(f"[{node_name.upper()}]", NODE_COLORS.get(node_name, "white"))


def log_header(title: str):
    """Log a turn header."""
    _emit(f"\n{RULE}", _paint(f"  {title}", "bold"), RULE)


def log_node_start(node_name: str, query: str | None = None):
    lines = [f"\n{_clock()} {_node_tag(node_name)} {_paint('Starting...', 'dim')}"]
    if query:
        lines.append(f"  Query: {_paint(_clip(query, 100), 'white')}")
    _emit(*lines)


def log_node_result(node_name: str, result: dict, key_fields: list[str] | None = None):
    """Log a node's result, optionally restricted to `key_fields`."""
    keys = key_fields if key_fields else list(result)
    _emit(
        f"{_clock()} {_node_tag(node_name)} {_paint('Completed', 'green')}",
        *(f"  {key}: {_render(result[key])}" for key in keys if key in result),
    )


def log_decision(decision: str, reason: str | None = None):
    lines = [f"  {_paint('→ Decision:', 'bold')} {decision}"]
    if reason:
        lines.append(f"    Reason: {_paint(reason, 'dim')}")
    _emit(*lines)


def log_tool_call(tool_name: str, params: Any):
    _emit(f"  {_paint('🔧 Tool:', 'yellow')} {tool_name}", f"    Params: {_render(params, 150)}")


def log_tool_result(tool_name: str, result: Any, success: bool = True):
    mark = _paint("✓", "green") if success else _paint("✗", "red")
    _emit(f"  {mark} {tool_name}: {_render(result)}")


def log_error(message: str, exception: BaseException | None = None):
    lines = [f"{_clock()} {_paint('[ERROR]', 'red')} {message}"]
    if exception is not None:
        lines.append(f"  Exception: {_paint(f'{type(exception).__name__}: {exception}', 'red')}")
    _emit(*lines)


def log_warning(message: str):
    _emit(f"{_clock()} {_paint('[WARN]', 'yellow')} {message}")


def log_state_summary(state: Any):
    """Log the loaded conversation state of a thread."""
    lines = [
        f"\n{_paint('State Summary:', 'dim')}",
        f"  Messages: {len(state.messages)}",
        f"  Next: {state.next}",
    ]
    if state.invoked_agents:
        lines.append(f"  Last invoked agents: {list(state.invoked_agents)}")
    if state.summary:
        lines.append(f"  Summary: {_render(state.summary, 120)}")
    _emit(*lines)


def log_flow_complete(response_preview: str | None = None):
    lines = [f"\n{_clock()} {_paint('[COMPLETE]', 'green')} Turn finished"]
    if response_preview:
        lines.append(f"  Response: {_clip(response_preview, 150)}")
    lines.append(f"{RULE}\n")
    _emit(*lines)
