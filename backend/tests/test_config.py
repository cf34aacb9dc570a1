"""Property-Based Tests for Configuration.

Tests using Hypothesis to verify configuration properties:
- Defaults match the documented values
- Environment variables override defaults
- The provider factory follows QUOTE_PROVIDER / QUOTE_FALLBACK_TO_MOCK
"""

import os

import pytest
from hypothesis import given, strategies as st, settings
from pydantic import ValidationError
from unittest.mock import patch

from app.data.providers import FallbackQuoteProvider, MockQuoteProvider, get_quote_provider
from config.settings import Settings, get_settings

SETTINGS_ENV_VARS = [
    'DATABASE_URL',
    'STORAGE_BACKEND',
    'DEFAULT_USER_ID',
    'QUOTE_PROVIDER',
    'QUOTE_FALLBACK_TO_MOCK',
    'NEWS_PROVIDER',
    'NEWS_DEFAULT_LIMIT',
    'NEWS_MAX_LIMIT',
    'RATE_LIMIT_REQUESTS_PER_SECOND',
    'RATE_LIMIT_BURST_SIZE',
    'AGGREGATE_MAX_ATTEMPTS',
    'LOG_TO_FILE',
    'LOG_DEV_MODE',
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every settings variable from the environment for the test."""
    for var in SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


# =============================================================================
# Unit Tests for Default Values
# =============================================================================

class TestDefaultValues:
    """Unit tests for configuration default values."""

    def test_storage_defaults(self, clean_env):
        config = Settings(_env_file=None)

        assert config.database_url == "sqlite:///./data/dashboard.sqlite"
        assert config.storage_backend == "sql"

    def test_identity_defaults(self, clean_env):
        config = Settings(_env_file=None)

        assert config.default_user_id == "demo-user"
        assert config.default_portfolio_name == "My Portfolio"

    def test_market_data_defaults(self, clean_env):
        config = Settings(_env_file=None)

        assert config.quote_provider == "mock"
        assert config.quote_fallback_to_mock is True
        assert config.news_provider == "mock"
        assert config.news_default_limit == 10
        assert config.news_max_limit == 50

    def test_rate_limit_and_concurrency_defaults(self, clean_env):
        config = Settings(_env_file=None)

        assert config.rate_limit_requests_per_second == 1.0
        assert config.rate_limit_burst_size == 5
        assert config.aggregate_max_attempts == 3


# =============================================================================
# Environment Variable Override
# =============================================================================

class TestEnvironmentOverride:
    """Property tests for environment variable override."""

    @given(st.floats(min_value=0.1, max_value=100.0, allow_nan=False))
    @settings(max_examples=20)
    def test_rate_limit_override(self, rps):
        with patch.dict(os.environ, {"RATE_LIMIT_REQUESTS_PER_SECOND": str(rps)}):
            config = Settings(_env_file=None)
        assert config.rate_limit_requests_per_second == pytest.approx(rps)

    @given(st.integers(min_value=1, max_value=10))
    @settings(max_examples=10)
    def test_aggregate_attempts_override(self, attempts):
        with patch.dict(os.environ, {"AGGREGATE_MAX_ATTEMPTS": str(attempts)}):
            config = Settings(_env_file=None)
        assert config.aggregate_max_attempts == attempts

    def test_env_names_are_case_insensitive(self):
        with patch.dict(os.environ, {"default_user_id": "alice"}):
            config = Settings(_env_file=None)
        assert config.default_user_id == "alice"

    def test_unknown_quote_provider_rejected(self):
        with patch.dict(os.environ, {"QUOTE_PROVIDER": "bloomberg"}):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


# =============================================================================
# Provider factory
# =============================================================================

class TestQuoteProviderFactory:
    """get_quote_provider builds the configured chain."""

    def test_mock_provider(self, clean_env):
        provider = get_quote_provider(Settings(_env_file=None, quote_provider="mock"))
        assert isinstance(provider, MockQuoteProvider)

    def test_live_provider_falls_back_to_mock(self, clean_env):
        provider = get_quote_provider(Settings(_env_file=None, quote_provider="finnhub"))

        assert isinstance(provider, FallbackQuoteProvider)
        assert [p.name for p in provider.providers] == ["finnhub", "mock"]

    def test_live_provider_without_fallback(self, clean_env):
        provider = get_quote_provider(
            Settings(_env_file=None, quote_provider="yfinance", quote_fallback_to_mock=False)
        )
        assert provider.name == "yfinance"
