"""
Shared HTTP plumbing for data-provider tools.
"""
import httpx

from supervisor_chat.agent.errors import ToolError
from supervisor_chat.config import get_settings


def http_client() -> httpx.AsyncClient:
    """New async client with the configured tool timeout."""
    return httpx.AsyncClient(timeout=get_settings().TOOL_TIMEOUT_SECONDS)


async def get_json(url: str, params: dict, provider: str) -> tuple[int, object | None]:
    """
    GET `url` and decode the JSON body.

    Returns (status_code, payload); payload is None when the body is not JSON.
    Transport failures (timeouts, connection errors) raise ToolError.
    """
    try:
        async with http_client() as client:
            response = await client.get(url, params=params)
    except httpx.HTTPError as e:
        raise ToolError(f"{provider} request failed: {e}") from e

    try:
        payload = response.json()
    except ValueError:
        payload = None
    return response.status_code, payload
