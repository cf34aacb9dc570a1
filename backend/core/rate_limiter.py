"""Token bucket throttling for outbound market data calls.

Finnhub allows a small number of requests per second per API key. Quote
fetches run in a thread pool and news fetches run on request threads, so all
callers share one named bucket and block until it holds a token.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class RateLimitConfig:
    """Sustained rate and bucket capacity for one upstream API."""
    requests_per_second: float = 1.0
    burst_size: int = 5


class TokenBucketRateLimiter:
    """
    Named token bucket shared by every caller of one upstream API.

    The bucket starts full (burst_size tokens) and refills continuously at
    requests_per_second. Each call spends one token.

    Usage:
        limiter = TokenBucketRateLimiter.get_instance("finnhub")
        limiter.acquire_sync()
        response = session.get(...)
    """

    _registry: Dict[str, "TokenBucketRateLimiter"] = {}
    _registry_lock = threading.Lock()

    def __init__(self, name: str, config: Optional[RateLimitConfig] = None):
        self.name = name
        self.config = config or RateLimitConfig()
        self._tokens = float(self.config.burst_size)
        self._refilled_at = time.monotonic()
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls, name: str = "default", config: Optional[RateLimitConfig] = None) -> "TokenBucketRateLimiter":
        """Bucket registered under name; config only applies when it is created."""
        with cls._registry_lock:
            limiter = cls._registry.get(name)
            if limiter is None:
                limiter = cls._registry[name] = cls(name, config)
                logger.info(
                    f"[RateLimiter:{name}] {limiter.config.requests_per_second}/s, "
                    f"burst {limiter.config.burst_size}"
                )
            return limiter

    @classmethod
    def reset_instances(cls) -> None:
        with cls._registry_lock:
            cls._registry.clear()

    def _refill(self) -> None:
        now = time.monotonic()
        earned = (now - self._refilled_at) * self.config.requests_per_second
        self._tokens = min(float(self.config.burst_size), self._tokens + earned)
        self._refilled_at = now

    def _seconds_until_token(self) -> float:
        self._refill()
        missing = 1.0 - self._tokens
        return max(0.0, missing / self.config.requests_per_second)

    def acquire_sync(self) -> float:
        """
        Take a token, sleeping the calling thread until one is available.

        Returns:
            Seconds spent waiting
        """
        with self._lock:
            delay = self._seconds_until_token()
            if delay > 0:
                logger.debug(f"[RateLimiter:{self.name}] throttled for {delay:.2f}s")
                time.sleep(delay)
                self._refill()
            self._tokens -= 1.0
            return delay

    def try_acquire(self) -> bool:
        """Take a token only if one is available right now."""
        with self._lock:
            self._refill()
            if self._tokens < 1.0:
                return False
            self._tokens -= 1.0
            return True

    @property
    def available_tokens(self) -> float:
        with self._lock:
            self._refill()
            return self._tokens


def get_finnhub_rate_limiter() -> TokenBucketRateLimiter:
    """The bucket shared by the Finnhub quote and news calls, sized from settings."""
    from config.settings import get_settings

    settings = get_settings()
    return TokenBucketRateLimiter.get_instance(
        "finnhub",
        RateLimitConfig(
            requests_per_second=settings.rate_limit_requests_per_second,
            burst_size=settings.rate_limit_burst_size,
        ),
    )
