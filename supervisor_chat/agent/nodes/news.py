"""
News Reporter Node

Searches recent articles for the user's request and reports them back to the
supervisor.
"""
import json
from typing import Any

from supervisor_chat.agent.capability import ToolCall
from supervisor_chat.agent.nodes.base import NEWS_REPORTER, ToolWorker
from supervisor_chat.agent.prompts import NEWS_FAILURE, NEWS_PROMPT
from supervisor_chat.tools.news import clamp_count


class NewsReporterAgent(ToolWorker):
    """Worker bound to the news search tool."""

    name = NEWS_REPORTER
    system_prompt = NEWS_PROMPT
    failure_template = NEWS_FAILURE
    empty_reply = "I could not find any news for this request."

    def __init__(self, capability, tool, default_count: int = 5, max_count: int = 10):
        super().__init__(capability, tool)
        self.default_count = default_count
        self.max_count = max_count

    def tool_input(self, call: ToolCall) -> dict[str, Any]:
        """
        Normalize the model's arguments to the tool's single `input` string.

        Structured arguments ({"query", "count"}) are re-encoded as JSON with the
        count clamped; a raw string is passed through as the query.
        """
        args = dict(call.args)
        raw = args.get("input", args)

        if isinstance(raw, str):
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                return {"input": raw}
            if not isinstance(parsed, dict):
                return {"input": raw}
            raw = parsed

        if not isinstance(raw, dict) or not raw.get("query"):
            return {"input": json.dumps(raw)}

        count = raw.get("count")
        try:
            count = int(count) if count is not None else None
        except (TypeError, ValueError):
            count = None

        return {"input": json.dumps({
            "query": str(raw["query"]),
            "count": clamp_count(count, self.default_count, self.max_count),
        })}
