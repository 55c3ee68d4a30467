"""
Pytest configuration and shared fixtures.

Model calls are replaced by ScriptedCapability, which replays canned results
in order; tools are small LangChain tools with the production tool names.
"""
import inspect
import json
import re

import pytest
from langchain_core.tools import tool

from supervisor_chat.agent.capability import CapabilityResult, ToolCall
from supervisor_chat.agent.checkpoint import InMemoryCheckpointStore
from supervisor_chat.agent.errors import ToolError
from supervisor_chat.agent.graph import GraphExecutor
from supervisor_chat.agent.nodes import (
    CHATBOT,
    NEWS_REPORTER,
    SUMMARY_AGENT,
    WEATHER_REPORTER,
    ChatbotAgent,
    NewsReporterAgent,
    SummaryAgent,
    SupervisorAgent,
    WeatherReporterAgent,
)
from supervisor_chat.config import get_settings


class ScriptedCapability:
    """
    AgentCapability stand-in that replays scripted results.

    Items may be a CapabilityResult, a plain string (content), or an exception
    to raise. With repeat=True the last item is reused once the script runs out.
    Streaming callers receive the content split into word tokens.
    """

    def __init__(self, responses=(), name="fake", repeat=False):
        self.responses = list(responses)
        self.name = name
        self.repeat = repeat
        self.calls = []

    async def invoke(self, messages, tools=None, tool_choice=None, on_token=None):
        self.calls.append({
            "messages": list(messages),
            "tools": list(tools or []),
            "tool_choice": tool_choice,
            "streaming": on_token is not None,
        })
        if not self.responses:
            raise AssertionError(f"{self.name}: no scripted response left")

        item = self.responses[0] if self.repeat and len(self.responses) == 1 else self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str):
            item = CapabilityResult(content=item)

        if on_token is not None and item.content:
            for token in re.findall(r"\S+\s*", item.content):
                result = on_token(token)
                if inspect.isawaitable(result):
                    await result
        return item


def route(name: str) -> CapabilityResult:
    """Supervisor result choosing `name` through the route tool."""
    return CapabilityResult(tool_call=ToolCall(name="route", args={"next": name}, id="call_route"))


def tool_request(name: str, args: dict, call_id: str = "call_1") -> CapabilityResult:
    return CapabilityResult(tool_call=ToolCall(name=name, args=args, id=call_id))


CAIRO_WEATHER = {"temperature": 31.2, "description": "clear sky", "humidity": 20, "windSpeed": 4.1}

SAMPLE_ARTICLES = [
    {
        "title": "Markets rally",
        "description": "Stocks up",
        "url": "https://example.com/markets",
        "publishedAt": "2024-05-01T10:00:00Z",
    },
]


@tool("get_current_weather")
async def fake_weather(city: str) -> str:
    """Get the current weather in a given city."""
    return json.dumps(CAIRO_WEATHER)


@tool("get_current_weather")
async def failing_weather(city: str) -> str:
    """Get the current weather in a given city."""
    raise ToolError("Weather API error: HTTP 503 (Service Unavailable)")


@tool("fetch_news")
async def fake_news(input: str) -> str:
    """Fetch news articles from the News API."""
    return json.dumps(SAMPLE_ARTICLES)


@tool("fetch_news")
async def failing_news(input: str) -> str:
    """Fetch news articles from the News API."""
    raise ToolError("News API error: rateLimited")


class Harness:
    """An executor wired to scripted capabilities, one per node."""

    def __init__(
        self,
        router=(),
        weather=(),
        news=(),
        chat=(),
        summary=(),
        weather_tool=fake_weather,
        news_tool=fake_news,
        store=None,
        max_steps=25,
        router_repeat=False,
        weather_repeat=False,
    ):
        self.router = ScriptedCapability(router, name="router", repeat=router_repeat)
        self.weather = ScriptedCapability(weather, name="weather", repeat=weather_repeat)
        self.news = ScriptedCapability(news, name="news")
        self.chat = ScriptedCapability(chat, name="chat")
        self.summary = ScriptedCapability(summary, name="summary")
        self.store = store if store is not None else InMemoryCheckpointStore()

        workers = {
            WEATHER_REPORTER: WeatherReporterAgent(self.weather, weather_tool),
            NEWS_REPORTER: NewsReporterAgent(self.news, news_tool),
            CHATBOT: ChatbotAgent(self.chat),
            SUMMARY_AGENT: SummaryAgent(self.summary, window=3),
        }
        supervisor = SupervisorAgent(self.router, members=[WEATHER_REPORTER, NEWS_REPORTER, CHATBOT])
        self.executor = GraphExecutor(supervisor, workers, self.store, max_steps=max_steps)


@pytest.fixture
def harness():
    """Factory for executor harnesses."""
    return Harness


@pytest.fixture(autouse=True)
def quiet_agent_logs(monkeypatch):
    """Keep console tracing out of test output."""
    monkeypatch.setattr(get_settings(), "AGENT_LOG_ENABLED", False)


@pytest.fixture
def sample_thread_id():
    return "t1"


async def drain(sink):
    """Collect every event from a sink up to and including the sentinel."""
    return [event async for event in sink.events()]
