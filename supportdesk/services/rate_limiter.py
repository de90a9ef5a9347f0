"""Sliding-window rate limiting over a pluggable ``limits`` storage."""

import math

from limits import RateLimitItemPerSecond
from limits.storage import Storage, storage_from_string
from limits.strategies import MovingWindowRateLimiter

from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)

NAMESPACE = "ratelimit"


class RateLimiter:
    """Per-key sliding-window limiter.

    Backed by ``memory://`` in development and tests, ``redis://...`` in
    production. Storage failures fail open.
    """

    def __init__(self, storage_uri: str = "memory://", storage: Storage | None = None):
        """Initialize rate limiter.

        Args:
            storage_uri: ``limits`` storage URI, used when ``storage`` is not given
            storage: Pre-built storage backend
        """
        self.storage = storage or storage_from_string(storage_uri)
        self.limiter = MovingWindowRateLimiter(self.storage)

    def check(self, key: str, limit: int, window_ms: int) -> bool:
        """Record a hit for ``key`` unless ``limit`` hits already fall inside the window.

        Args:
            key: Identity being limited, e.g. ``"<tenantId>:<customerId>"``
            limit: Maximum hits per window
            window_ms: Window length in milliseconds, rounded up to whole seconds

        Returns:
            True if the request is allowed
        """
        window_seconds = max(1, math.ceil(window_ms / 1000))
        item = RateLimitItemPerSecond(limit, window_seconds)

        try:
            allowed = self.limiter.hit(item, NAMESPACE, key)
        except Exception as e:
            logger.error(f"Rate limit check failed for {key}, allowing request: {e}")
            return True

        if not allowed:
            logger.info(f"Rate limit exceeded for {key} ({limit} per {window_seconds}s)")
        return allowed

    def reset(self) -> None:
        """Clear all recorded hits."""
        self.storage.reset()
