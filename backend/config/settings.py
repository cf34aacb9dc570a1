"""Dashboard configuration.

Values come from the environment first, then backend/.env, then the defaults
below. Field names map to upper-case variables (QUOTE_PROVIDER, LOG_JSON, ...).
"""

from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Every tunable of the API process.

    List values are given as JSON, e.g.
        CORS_ORIGINS='["http://localhost:5173"]'
    """

    # Database
    database_url: str = "sqlite:///./data/dashboard.sqlite"
    storage_backend: Literal["sql", "memory"] = "sql"

    # API
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Identity
    default_user_id: str = "demo-user"
    default_portfolio_name: str = "My Portfolio"

    # Market Data
    quote_provider: Literal["mock", "finnhub", "yfinance"] = "mock"
    quote_fallback_to_mock: bool = True
    quote_fetch_workers: int = 8
    finnhub_api_key: str = "demo"
    finnhub_base_url: str = "https://finnhub.io/api/v1"
    finnhub_timeout_seconds: float = 10.0

    # News
    news_provider: Literal["mock", "finnhub"] = "mock"
    news_default_limit: int = 10
    news_max_limit: int = 50

    # Rate Limiting (outbound market data calls)
    rate_limit_requests_per_second: float = 1.0
    rate_limit_burst_size: int = 5

    # Valuation Pipeline
    aggregate_max_attempts: int = 3

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_dev_mode: bool = False
    log_to_file: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
