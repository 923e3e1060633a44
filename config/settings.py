"""Configuration management."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Remote API
    api_base_url: str = Field(default="http://localhost:7300", alias="LEADSCOPE_API_URL")
    api_token: str = Field(default="", alias="LEADSCOPE_API_TOKEN")
    request_timeout: float = 30.0
    fetch_max_pages: int = 50

    # Key-value store (search cache + snapshots)
    store_path: str = "./data/store.json"

    # Global search
    search_debounce_ms: int = 300
    search_min_query_length: int = 2
    search_cache_ttl_seconds: float = 5 * 60
    search_cache_max_entries: int = 10
    search_fetch_limit: int = 100
    search_opportunity_limit: int = 10
    search_keyword_limit: int = 5

    # Opportunity filters
    filter_debounce_ms: int = 300

    # Analytics
    snapshot_days: int = 30
    trend_threshold_percent: float = 5.0

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


settings = Settings()
