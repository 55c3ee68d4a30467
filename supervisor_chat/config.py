"""
Configuration management for the supervisor chat service.
"""
import os
from functools import lru_cache
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    # Anthropic
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")

    # Model configurations
    # Router, weather, news and summary nodes share the deterministic model;
    # the persona gets the streaming one.
    BASE_MODEL: str = os.getenv("BASE_MODEL", "claude-3-5-haiku-20241022")
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "claude-3-5-haiku-20241022")
    BASE_TEMPERATURE: float = float(os.getenv("BASE_TEMPERATURE", "0"))
    CHAT_TEMPERATURE: float = float(os.getenv("CHAT_TEMPERATURE", "0.7"))
    MAX_TOKENS: int = int(os.getenv("MAX_TOKENS", "1024"))

    # Third-party data providers
    OPENWEATHER_API_KEY: str = os.getenv("OPENWEATHER_API_KEY", "")
    OPENWEATHER_BASE_URL: str = os.getenv(
        "OPENWEATHER_BASE_URL", "http://api.openweathermap.org/data/2.5"
    )
    NEWS_API_KEY: str = os.getenv("NEWS_API_KEY", "")
    NEWS_API_URL: str = os.getenv("NEWS_API_URL", "https://newsapi.org/v2/everything")
    NEWS_DEFAULT_COUNT: int = int(os.getenv("NEWS_DEFAULT_COUNT", "5"))
    NEWS_MAX_COUNT: int = int(os.getenv("NEWS_MAX_COUNT", "10"))
    TOOL_TIMEOUT_SECONDS: float = float(os.getenv("TOOL_TIMEOUT_SECONDS", "10"))

    # Orchestration
    MAX_GRAPH_STEPS: int = int(os.getenv("MAX_GRAPH_STEPS", "25"))
    SUMMARY_WINDOW: int = int(os.getenv("SUMMARY_WINDOW", "3"))

    # Checkpoint storage: "memory" or "sqlite"
    CHECKPOINT_BACKEND: str = os.getenv("CHECKPOINT_BACKEND", "memory")
    CHECKPOINT_DB_PATH: str = os.getenv("CHECKPOINT_DB_PATH", "checkpoints.db")

    # Console tracing of graph execution
    AGENT_LOG_ENABLED: bool = _env_bool("AGENT_LOG_ENABLED", True)

    # API settings
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    def validate(self) -> list[str]:
        """Validate required settings. Returns list of missing keys."""
        missing = []
        if not self.ANTHROPIC_API_KEY:
            missing.append("ANTHROPIC_API_KEY")
        if not self.OPENWEATHER_API_KEY:
            missing.append("OPENWEATHER_API_KEY")
        if not self.NEWS_API_KEY:
            missing.append("NEWS_API_KEY")
        return missing


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
