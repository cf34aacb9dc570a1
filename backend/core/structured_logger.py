"""Component loggers for the dashboard services.

Every message is prefixed with its component ("[ValuationPipeline] ...") and
keyword context travels as `extra_fields`, which the JSON formatter in
app.core.logging_config merges into the log line. Emojis are stripped unless
LOG_DEV_MODE is set. Timings are logged as single-line JSON metrics.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

EMOJI_PATTERN = re.compile(
    "["
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F300-\U0001F5FF"  # symbols & pictographs
    "\U0001F680-\U0001F6FF"  # transport & map symbols
    "\U0001F1E0-\U0001F1FF"  # flags
    "\U00002702-\U000027B0"  # dingbats
    "\U0001F900-\U0001F9FF"  # supplemental symbols
    "\U0001FA70-\U0001FAFF"  # symbols and pictographs extended
    "\U00002600-\U000026FF"  # misc symbols
    "]+",
    flags=re.UNICODE
)


def strip_emojis(text: str) -> str:
    return EMOJI_PATTERN.sub('', text).strip()


class StructuredLogger:
    """
    Thin wrapper over a stdlib logger named after the component.

    Usage:
        logger = get_structured_logger("ValuationPipeline")
        logger.info("Refreshed portfolio 1", portfolio_id=1, skipped=0)
        logger.performance("valuation_refresh", 12.5, portfolio_id=1)
    """

    def __init__(self, component: str, logger: Optional[logging.Logger] = None, dev_mode: bool = False):
        self.component = component
        self._logger = logger or logging.getLogger(component)
        self._dev_mode = dev_mode

    @classmethod
    def from_config(cls, component: str) -> 'StructuredLogger':
        from config.settings import get_settings
        return cls(component=component, dev_mode=get_settings().log_dev_mode)

    def _format_message(self, message: str) -> str:
        if not self._dev_mode:
            message = strip_emojis(message)
        return f"[{self.component}] {message}"

    def _log(self, level: int, message: str, fields: Dict[str, Any], exc_info: bool = False) -> None:
        self._logger.log(level, self._format_message(message), exc_info=exc_info, extra={'extra_fields': fields})

    def debug(self, message: str, **fields) -> None:
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, **fields) -> None:
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, **fields) -> None:
        self._log(logging.WARNING, message, fields)

    def error(self, message: str, exc_info: bool = True, **fields) -> None:
        self._log(logging.ERROR, message, fields, exc_info=exc_info)

    def metric(self, metric_name: str, value: float, unit: str = "", tags: Optional[Dict[str, str]] = None) -> None:
        """
        Log one measurement as `METRIC: {...}`.

        Args:
            metric_name: e.g. "fetch_quotes_duration"
            value: Measured value
            unit: "ms", "count", ...
            tags: String labels such as portfolio_id or success
        """
        payload: Dict[str, Any] = {"component": self.component, "metric": metric_name, "value": value}
        if unit:
            payload["unit"] = unit
        if tags:
            payload["tags"] = tags
        self._logger.info(f"METRIC: {json.dumps(payload)}")

    def performance(self, operation: str, duration_ms: float, success: bool = True, **tags) -> None:
        """Duration of an operation in milliseconds, tagged with its outcome."""
        self.metric(
            metric_name=f"{operation}_duration",
            value=round(duration_ms, 2),
            unit="ms",
            tags={"success": str(success).lower(), **{k: str(v) for k, v in tags.items()}},
        )


def get_structured_logger(component: str) -> StructuredLogger:
    return StructuredLogger.from_config(component)
