"""Error categorization for market data and news calls.

Provider failures are never fatal to a request: the failed call is logged at a
level matching its category and the caller gets a default (usually None, which
the pipeline treats as "no quote"). Nothing in here retries.

- TRANSIENT: network trouble, timeouts, upstream 429/5xx
- DATA_QUALITY: the upstream answered but the payload was unusable
- PERMANENT: everything else, including upstream 4xx (bad key, bad request)
"""

import logging
from enum import Enum
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

import requests

logger = logging.getLogger(__name__)

T = TypeVar('T')

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class ErrorCategory(Enum):
    TRANSIENT = "transient"
    DATA_QUALITY = "data_quality"
    PERMANENT = "permanent"


class ErrorHandler:
    """Maps exceptions to an ErrorCategory and logs them accordingly."""

    TRANSIENT_ERRORS: Tuple[Type[Exception], ...] = (
        ConnectionError,
        TimeoutError,
        requests.ConnectionError,
        requests.Timeout,
        OSError,
    )

    DATA_QUALITY_ERRORS: Tuple[Type[Exception], ...] = (
        ValueError,
        KeyError,
        TypeError,
        AttributeError,
    )

    @classmethod
    def categorize(cls, error: Exception) -> ErrorCategory:
        # HTTPError is an OSError, so the status code has to be checked first
        if isinstance(error, requests.HTTPError):
            status = getattr(error.response, "status_code", None)
            if status is None or status in RETRYABLE_STATUS_CODES:
                return ErrorCategory.TRANSIENT
            return ErrorCategory.PERMANENT
        if isinstance(error, cls.TRANSIENT_ERRORS):
            return ErrorCategory.TRANSIENT
        if isinstance(error, cls.DATA_QUALITY_ERRORS):
            return ErrorCategory.DATA_QUALITY
        return ErrorCategory.PERMANENT

    @classmethod
    def log_error(cls, error: Exception, context: str, component: str = "ErrorHandler") -> ErrorCategory:
        """
        Log a caught exception.

        Permanent errors are logged at ERROR with the traceback, the rest at
        WARNING on one line.

        Args:
            error: The exception that was caught
            context: What was being attempted ("quote fetch for AAPL")
            component: Component name for the log prefix

        Returns:
            The category the error was logged under
        """
        category = cls.categorize(error)
        description = f"{type(error).__name__}: {error}"
        if category is ErrorCategory.PERMANENT:
            logger.error(f"[{component}] Error in {context}: {description}", exc_info=error)
        else:
            logger.warning(f"[{component}] {category.value} error in {context}: {description}")
        return category

    @classmethod
    def handle_gracefully(cls, default: Optional[T] = None, component: str = "ErrorHandler") -> Callable:
        """Decorator: log any exception from the wrapped call and return default instead."""
        def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
            @wraps(func)
            def wrapper(*args, **kwargs) -> Optional[T]:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    cls.log_error(e, func.__name__, component)
                    return default
            return wrapper
        return decorator


def handle_gracefully(default: Optional[Any] = None, component: str = "ErrorHandler") -> Callable:
    """Shorthand for ErrorHandler.handle_gracefully."""
    return ErrorHandler.handle_gracefully(default=default, component=component)
