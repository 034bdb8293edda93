"""Rate limiter: per-caller daily gate enforced before any expensive work.

Window state lives in SQLite, one row per (caller_key, window_start).
A new window starts a new row, so no explicit reset is needed.
"""

import logging
import math
import sqlite3
from datetime import date, datetime, time, timedelta

from leadfinder.core.config import RateLimitConfig
from leadfinder.core.db import get_window_count, increment_window_if_below
from leadfinder.core.schemas import Allowed, Denied, RateLimitDecision

logger = logging.getLogger(__name__)

_EPOCH = date(1970, 1, 1)


def window_start_for(day: date, window_size_days: int = 1) -> date:
    """Floor ``day`` to the start of its window (multiples of ``window_size_days`` since epoch)."""
    offset = (day - _EPOCH).days % window_size_days
    return day - timedelta(days=offset)


class RateLimiter:
    """Enforces per-caller request quotas.

    Usage::

        limiter = RateLimiter(conn, {"preview": RateLimitConfig(requests_per_window=3)})
        decision = limiter.check_tier("ip:203.0.113.7", "preview")
        if isinstance(decision, Denied):
            ...  # reject with 429
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        tiers: dict[str, RateLimitConfig] | None = None,
    ) -> None:
        self._conn = conn
        self._tiers = tiers or {}

    def check_and_increment(
        self,
        caller_key: str,
        limit: int,
        window_size_days: int = 1,
        *,
        today: date | None = None,
    ) -> RateLimitDecision:
        """Allow and count the request if the caller is under ``limit`` for the window.

        Denials never increment the counter.
        """
        start = window_start_for(today or date.today(), window_size_days)
        reset_at = datetime.combine(start + timedelta(days=window_size_days), time.min)

        if limit <= 0:
            return Denied(reset_at=reset_at, retry_after_seconds=_seconds_until(reset_at))

        count = increment_window_if_below(self._conn, caller_key, start, limit)
        if count is None:
            logger.info("Rate limit reached for '%s': %d/%d", caller_key, limit, limit)
            return Denied(reset_at=reset_at, retry_after_seconds=_seconds_until(reset_at))

        logger.debug("Recorded request %d/%d for '%s'", count, limit, caller_key)
        return Allowed(remaining=limit - count, reset_at=reset_at)

    def check_tier(
        self,
        caller_key: str,
        tier: str,
        *,
        today: date | None = None,
    ) -> RateLimitDecision:
        """check_and_increment using the configured quota for ``tier``."""
        config = self._config_for(tier)
        return self.check_and_increment(
            caller_key,
            config.requests_per_window,
            config.window_size_days,
            today=today,
        )

    def remaining(self, caller_key: str, tier: str, *, today: date | None = None) -> int:
        """Return how many more requests the caller may make in the current window."""
        config = self._config_for(tier)
        start = window_start_for(today or date.today(), config.window_size_days)
        used = get_window_count(self._conn, caller_key, start)
        return max(0, config.requests_per_window - used)

    def _config_for(self, tier: str) -> RateLimitConfig:
        config = self._tiers.get(tier)
        if config is None:
            logger.debug("No rate limit config for tier '%s' - using defaults", tier)
            return RateLimitConfig()
        return config


def _seconds_until(moment: datetime) -> int:
    return max(1, math.ceil((moment - datetime.now()).total_seconds()))
