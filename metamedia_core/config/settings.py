"""
METAMEDIA CORE — Central Configuration
All settings are loaded from environment variables with sensible defaults.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field
from typing import List, Optional


class UpstreamSettings(BaseSettings):
    """Generative search upstream credentials and model selection."""
    api_key: str = Field(default="", validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"))
    search_model: str = Field(default="gemini-3-flash-preview", validation_alias="SEARCH_MODEL")
    chat_model: str = Field(default="gemini-3-pro-preview", validation_alias="CHAT_MODEL")
    chat_temperature: float = Field(default=0.7, validation_alias="CHAT_TEMPERATURE")

    ticker_symbols: List[str] = Field(
        default=["BTC", "ETH", "SOL", "BNB", "XRP", "DOGE", "PEPE", "LINK"],
        validation_alias="TICKER_SYMBOLS",
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


class RetrySettings(BaseSettings):
    """Backoff parameters for rate-limited upstream calls."""
    max_retries: int = Field(default=3, validation_alias="RETRY_MAX_RETRIES")
    initial_delay_seconds: float = Field(default=4.0, validation_alias="RETRY_INITIAL_DELAY")
    backoff_multiplier: float = Field(default=2.5, validation_alias="RETRY_BACKOFF_MULTIPLIER")
    # None = uncapped
    max_delay_seconds: Optional[float] = Field(default=None, validation_alias="RETRY_MAX_DELAY")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


class RefreshSettings(BaseSettings):
    """Dashboard refresh cadences."""
    ticker_interval_seconds: float = Field(default=180.0, validation_alias="TICKER_INTERVAL")
    events_delay_seconds: float = Field(default=10.0, validation_alias="EVENTS_DELAY")
    social_interval_seconds: float = Field(default=150.0, validation_alias="SOCIAL_INTERVAL")
    category_debounce_seconds: float = Field(default=1.0, validation_alias="CATEGORY_DEBOUNCE")
    default_category: str = Field(default="MARKETS", validation_alias="DEFAULT_CATEGORY")
    auto_refresh_social: bool = Field(default=True, validation_alias="AUTO_REFRESH_SOCIAL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


class ChatSettings(BaseSettings):
    """Conversation session limits."""
    max_tool_rounds: int = Field(default=5, validation_alias="CHAT_MAX_TOOL_ROUNDS")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


class AppSettings(BaseSettings):
    """Top-level application settings."""
    app_name: str = "METAMEDIA CORE"
    version: str = "1.0.0"
    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=8000, validation_alias="PORT")

    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    refresh: RefreshSettings = Field(default_factory=RefreshSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


# Singleton
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings
