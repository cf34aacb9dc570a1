"""Property-Based Tests for Structured Logger.

- Every message carries the [Component] prefix at every level
- Emojis are stripped outside dev mode
- Keyword context is forwarded as extra_fields
- Metrics and timings are logged as JSON lines
"""

import json
import logging

from hypothesis import given, strategies as st, settings
from unittest.mock import patch, MagicMock

from core.structured_logger import (
    EMOJI_PATTERN,
    StructuredLogger,
    get_structured_logger,
    strip_emojis,
)

ROCKET = "\U0001F680"
CHART = "\U0001F4CA"
WARNING_SIGN = "⚠"


def logger_with_mock(component="ValuationPipeline", dev_mode=True):
    mock_logger = MagicMock()
    return StructuredLogger(component, logger=mock_logger, dev_mode=dev_mode), mock_logger


def logged(mock_logger):
    """(level, message, kwargs) of the last log() call."""
    args, kwargs = mock_logger.log.call_args
    return args[0], args[1], kwargs


class TestPrefix:

    @given(st.text(min_size=1, max_size=20, alphabet=st.characters(whitelist_categories=('L', 'N'))))
    @settings(max_examples=30)
    def test_prefix_on_every_level(self, component):
        logger, mock_logger = logger_with_mock(component)

        for method, level in [("debug", logging.DEBUG), ("info", logging.INFO),
                              ("warning", logging.WARNING), ("error", logging.ERROR)]:
            getattr(logger, method)("Refreshed portfolio 1")
            logged_level, message, _ = logged(mock_logger)
            assert logged_level == level
            assert message == f"[{component}] Refreshed portfolio 1"

    def test_keyword_context_passed_as_extra_fields(self):
        logger, mock_logger = logger_with_mock("PortfolioService")

        logger.info("Added holding", portfolio_id=7, holding_id=3)

        _, _, kwargs = logged(mock_logger)
        assert kwargs["extra"] == {"extra_fields": {"portfolio_id": 7, "holding_id": 3}}
        assert kwargs["exc_info"] is False

    def test_error_includes_traceback_by_default(self):
        logger, mock_logger = logger_with_mock()

        logger.error("Refresh failed")
        assert logged(mock_logger)[2]["exc_info"] is True

        logger.error("Refresh failed", exc_info=False)
        assert logged(mock_logger)[2]["exc_info"] is False


class TestEmojis:

    def test_strip_emojis(self):
        assert strip_emojis(f"{ROCKET} Server ready {CHART}") == "Server ready"
        assert strip_emojis("Plain text") == "Plain text"

    @given(st.text(max_size=40), st.lists(st.sampled_from([ROCKET, CHART, WARNING_SIGN]), min_size=1, max_size=4))
    @settings(max_examples=50)
    def test_stripped_outside_dev_mode(self, message, emojis):
        logger, mock_logger = logger_with_mock(dev_mode=False)

        logger.info(f"{''.join(emojis)} {message}")

        assert not EMOJI_PATTERN.search(logged(mock_logger)[1])

    def test_kept_in_dev_mode(self):
        logger, mock_logger = logger_with_mock(dev_mode=True)
        logger.info(f"{ROCKET} ready")
        assert ROCKET in logged(mock_logger)[1]


class TestFactory:

    def test_get_structured_logger(self):
        logger = get_structured_logger("NewsService")
        assert isinstance(logger, StructuredLogger)
        assert logger.component == "NewsService"

    @patch('config.settings.get_settings')
    def test_dev_mode_from_settings(self, mock_get_settings):
        mock_get_settings.return_value = MagicMock(log_dev_mode=True)
        assert StructuredLogger.from_config("NewsService")._dev_mode is True


class TestMetrics:

    def _payload(self, mock_logger):
        message = mock_logger.info.call_args[0][0]
        assert message.startswith("METRIC: ")
        return json.loads(message[len("METRIC: "):])

    def test_metric_json_line(self):
        logger, mock_logger = logger_with_mock("MarketDataService")

        logger.metric("quote_latency", 150.5, unit="ms", tags={"provider": "mock"})

        assert self._payload(mock_logger) == {
            "component": "MarketDataService",
            "metric": "quote_latency",
            "value": 150.5,
            "unit": "ms",
            "tags": {"provider": "mock"},
        }

    def test_metric_without_unit_or_tags(self):
        logger, mock_logger = logger_with_mock()
        logger.metric("holdings_skipped", 2)
        assert set(self._payload(mock_logger)) == {"component", "metric", "value"}

    def test_performance(self):
        logger, mock_logger = logger_with_mock()

        logger.performance("valuation_refresh", 250.456, success=False, portfolio_id=1)

        payload = self._payload(mock_logger)
        assert payload["metric"] == "valuation_refresh_duration"
        assert payload["value"] == 250.46
        assert payload["tags"] == {"success": "false", "portfolio_id": "1"}
