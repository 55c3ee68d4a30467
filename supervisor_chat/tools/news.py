"""
News search tool backed by the NewsAPI `everything` endpoint.
"""
import json

from pydantic import BaseModel, Field, ValidationError

from supervisor_chat.agent.errors import ToolError
from supervisor_chat.config import get_settings
from supervisor_chat.tools import http
from supervisor_chat.tools.registry import registry


class NewsQuery(BaseModel):
    """Structured news request."""
    query: str = Field(min_length=1)
    count: int | None = None


def clamp_count(count: int | None, default: int, maximum: int) -> int:
    """Bound the article count to [1, maximum]; None means the default."""
    if count is None:
        count = default
    return max(1, min(int(count), maximum))


def parse_news_input(raw: str | dict) -> NewsQuery:
    """
    Accept either a JSON object {"query", "count"} or a plain query string.

    Anything that does not parse as a structured request is treated as the
    query text itself.
    """
    if isinstance(raw, dict):
        try:
            return NewsQuery.model_validate(raw)
        except ValidationError:
            raw = json.dumps(raw)

    text = (raw or "").strip()
    try:
        return NewsQuery.model_validate_json(text)
    except ValidationError:
        pass
    if not text:
        raise ToolError("A news query is required")
    return NewsQuery(query=text)


def format_articles(payload: object) -> list[dict]:
    try:
        articles = payload["articles"]
        return [
            {
                "title": article.get("title"),
                "description": article.get("description"),
                "url": article.get("url"),
                "publishedAt": article.get("publishedAt"),
            }
            for article in articles
        ]
    except (KeyError, TypeError, AttributeError) as e:
        raise ToolError(f"News API returned a malformed payload: {e}") from e


@registry.register(category="news")
async def fetch_news(input: str) -> str:
    """
    Fetch news articles from the News API.

    Input is either a JSON object like {"query": "...", "count": 5} or a plain
    search string. Returns a JSON list of articles with title, description,
    url and publishedAt.
    """
    settings = get_settings()
    request = parse_news_input(input)
    count = clamp_count(request.count, settings.NEWS_DEFAULT_COUNT, settings.NEWS_MAX_COUNT)

    if not settings.NEWS_API_KEY:
        raise ToolError("NEWS_API_KEY environment variable is not set")

    status, payload = await http.get_json(
        settings.NEWS_API_URL,
        {"q": request.query, "pageSize": count, "apiKey": settings.NEWS_API_KEY},
        provider="News API",
    )

    if not isinstance(payload, dict):
        raise ToolError(f"News API error: HTTP {status} with a non-JSON body")
    if not 200 <= status < 300 or payload.get("status") != "ok":
        raise ToolError(f"News API error: {payload.get('message') or f'HTTP {status}'}")

    return json.dumps(format_articles(payload)[:count])
