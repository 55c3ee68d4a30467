"""
Weather lookup tool backed by the OpenWeather current-weather API.
"""
import json

from supervisor_chat.agent.errors import ToolError
from supervisor_chat.config import get_settings
from supervisor_chat.tools import http
from supervisor_chat.tools.registry import registry


def format_weather(payload: object) -> dict:
    """
    Reduce an OpenWeather payload to the fields the reporter needs.

    Raises ToolError if any of them is missing.
    """
    try:
        return {
            "temperature": payload["main"]["temp"],
            "description": payload["weather"][0]["description"],
            "humidity": payload["main"]["humidity"],
            "windSpeed": payload["wind"]["speed"],
        }
    except (KeyError, IndexError, TypeError) as e:
        raise ToolError(f"Weather API returned a malformed payload (missing {e})") from e


@registry.register(category="weather")
async def get_current_weather(city: str) -> str:
    """
    Get the current weather in a given city. Input should be a city name.

    Returns a JSON object with temperature (°C), description, humidity (%)
    and windSpeed (m/s).
    """
    settings = get_settings()
    city = (city or "").strip()
    if not city:
        raise ToolError("A city name is required")
    if not settings.OPENWEATHER_API_KEY:
        raise ToolError("OPENWEATHER_API_KEY environment variable is not set")

    status, payload = await http.get_json(
        f"{settings.OPENWEATHER_BASE_URL}/weather",
        {"q": city, "appid": settings.OPENWEATHER_API_KEY, "units": "metric"},
        provider="Weather API",
    )

    if not 200 <= status < 300:
        detail = payload.get("message") if isinstance(payload, dict) else None
        raise ToolError(f"Weather API error: HTTP {status}" + (f" ({detail})" if detail else ""))

    return json.dumps(format_weather(payload))
