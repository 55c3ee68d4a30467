"""
Weather Reporter Node

Looks up the current weather for the city in the user's latest request and
reports it back to the supervisor.
"""
from supervisor_chat.agent.nodes.base import WEATHER_REPORTER, ToolWorker
from supervisor_chat.agent.prompts import WEATHER_FAILURE, WEATHER_PROMPT


class WeatherReporterAgent(ToolWorker):
    """Worker bound to the weather lookup tool."""

    name = WEATHER_REPORTER
    system_prompt = WEATHER_PROMPT
    failure_template = WEATHER_FAILURE
    empty_reply = "I could not work out which city's weather you want."
