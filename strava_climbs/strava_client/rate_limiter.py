"""Header-driven throttle for sequential Strava API calls."""

from __future__ import annotations

import logging
import time
from typing import Callable, Mapping, Optional, Tuple

from ..config import RATE_LIMIT_NEAR_LIMIT_BUFFER, RATE_LIMIT_THROTTLE_SECONDS

__all__ = ["RateLimiter", "parse_rate_limit_headers"]

LOGGER = logging.getLogger(__name__)


def parse_rate_limit_headers(
    headers: Mapping[str, object] | None,
) -> Optional[Tuple[int, int]]:
    """Return ``(used, limit)`` for the short (15 minute) window, if present."""

    if not headers:
        return None
    usage = headers.get("X-RateLimit-Usage")
    limit = headers.get("X-RateLimit-Limit")
    if not usage or not limit:
        return None
    try:
        return int(str(usage).split(",")[0]), int(str(limit).split(",")[0])
    except (ValueError, TypeError) as exc:
        LOGGER.debug(
            "Failed to parse rate limit headers usage=%s limit=%s: %s",
            usage,
            limit,
            exc,
        )
        return None


class RateLimiter:
    """Delays the next request when Strava reports usage near the short-window limit.

    Requests are issued one at a time, so there is no concurrency cap: the
    limiter only remembers a ``throttle_until`` deadline.
    """

    def __init__(
        self,
        *,
        near_limit_buffer: int = RATE_LIMIT_NEAR_LIMIT_BUFFER,
        throttle_seconds: float = RATE_LIMIT_THROTTLE_SECONDS,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._near_limit_buffer = near_limit_buffer
        self._throttle_seconds = throttle_seconds
        self._clock = clock
        self._sleep = sleep
        self._throttle_until = 0.0

    def before_request(self) -> None:
        wait_for = max(0.0, self._throttle_until - self._clock())
        if wait_for > 0:
            LOGGER.info("Throttling %.1fs before next Strava request", wait_for)
            self._sleep(wait_for)

    def after_response(
        self, headers: Mapping[str, object] | None, status_code: int | None
    ) -> bool:
        """Record the response; return True when a throttle was scheduled."""

        throttle = False
        if status_code == 429:
            throttle = True
            LOGGER.warning("Rate limit: 429. Throttling %ss.", self._throttle_seconds)
        else:
            usage = parse_rate_limit_headers(headers)
            if usage is not None:
                used, limit = usage
                if used >= max(limit - self._near_limit_buffer, 0):
                    throttle = True
                    LOGGER.info(
                        "Approaching short-window limit (%s/%s). Throttling %ss.",
                        used,
                        limit,
                        self._throttle_seconds,
                    )
        if throttle:
            self._throttle_until = self._clock() + self._throttle_seconds
        return throttle
