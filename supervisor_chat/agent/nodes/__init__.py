"""Agent nodes for the supervisor graph."""
from .base import (
    CHATBOT,
    NEWS_REPORTER,
    SUMMARY_AGENT,
    SUPERVISOR,
    WEATHER_REPORTER,
    ToolWorker,
    WorkerAgent,
)
from .supervisor import FINISH, SupervisorAgent
from .weather import WeatherReporterAgent
from .news import NewsReporterAgent
from .chatbot import ChatbotAgent
from .summary import SummaryAgent

__all__ = [
    "SUPERVISOR",
    "WEATHER_REPORTER",
    "NEWS_REPORTER",
    "CHATBOT",
    "SUMMARY_AGENT",
    "FINISH",
    "WorkerAgent",
    "ToolWorker",
    "SupervisorAgent",
    "WeatherReporterAgent",
    "NewsReporterAgent",
    "ChatbotAgent",
    "SummaryAgent",
]
