"""Tests for RateLimiter: gate enforcement, atomic increment, window rollover."""

import sqlite3
import threading
from datetime import date, timedelta

import pytest

from leadfinder.core.config import RateLimitConfig
from leadfinder.core.db import get_window_count, init_db
from leadfinder.core.schemas import Allowed, Denied
from leadfinder.pipeline.rate_limiter import RateLimiter, window_start_for

TODAY = date(2026, 3, 10)


@pytest.fixture
def db(tmp_path: pytest.TempPathFactory) -> sqlite3.Connection:  # type: ignore[type-arg]
    return init_db(tmp_path / "test.db")


def _limiter(db: sqlite3.Connection, **kwargs: int) -> RateLimiter:
    """Create a RateLimiter with a preview tier of the given size."""
    config = RateLimitConfig(
        requests_per_window=kwargs.get("limit", 3),
        window_size_days=kwargs.get("window_days", 1),
    )
    return RateLimiter(db, {"preview": config})


# ---------------------------------------------------------------------------
# check_and_increment
# ---------------------------------------------------------------------------


class TestCheckAndIncrement:
    def test_first_call_allowed_and_creates_row(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db)
        decision = limiter.check_and_increment("ip:1.2.3.4", 3, today=TODAY)
        assert isinstance(decision, Allowed)
        assert decision.remaining == 2
        assert get_window_count(db, "ip:1.2.3.4", TODAY) == 1

    def test_fourth_call_denied_without_increment(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db)
        decisions = [
            limiter.check_and_increment("ip:1.2.3.4", 3, today=TODAY) for _ in range(4)
        ]
        assert all(isinstance(d, Allowed) for d in decisions[:3])
        assert isinstance(decisions[3], Denied)
        assert get_window_count(db, "ip:1.2.3.4", TODAY) == 3

    def test_repeated_denials_never_increment(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db)
        for _ in range(10):
            limiter.check_and_increment("ip:1.2.3.4", 3, today=TODAY)
        assert get_window_count(db, "ip:1.2.3.4", TODAY) == 3

    def test_next_window_allowed_again(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db)
        for _ in range(4):
            limiter.check_and_increment("ip:1.2.3.4", 3, today=TODAY)
        tomorrow = TODAY + timedelta(days=1)
        decision = limiter.check_and_increment("ip:1.2.3.4", 3, today=tomorrow)
        assert isinstance(decision, Allowed)
        assert decision.remaining == 2

    def test_callers_isolated(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db)
        for _ in range(3):
            limiter.check_and_increment("ip:1.2.3.4", 3, today=TODAY)
        assert isinstance(limiter.check_and_increment("ip:1.2.3.4", 3, today=TODAY), Denied)
        assert isinstance(limiter.check_and_increment("ip:5.6.7.8", 3, today=TODAY), Allowed)

    def test_zero_limit_always_denied(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db)
        decision = limiter.check_and_increment("ip:1.2.3.4", 0, today=TODAY)
        assert isinstance(decision, Denied)
        assert get_window_count(db, "ip:1.2.3.4", TODAY) == 0

    def test_denial_reports_reset_at_next_window(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db)
        limiter.check_and_increment("ip:1.2.3.4", 1, today=TODAY)
        decision = limiter.check_and_increment("ip:1.2.3.4", 1, today=TODAY)
        assert isinstance(decision, Denied)
        assert decision.reset_at.date() == TODAY + timedelta(days=1)
        assert decision.retry_after_seconds >= 1

    def test_multi_day_window_spans_days(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db)
        start = window_start_for(TODAY, 7)
        for offset in range(2):
            day = start + timedelta(days=offset)
            assert isinstance(limiter.check_and_increment("user:u1", 2, 7, today=day), Allowed)
        later = start + timedelta(days=5)
        assert isinstance(limiter.check_and_increment("user:u1", 2, 7, today=later), Denied)
        next_window = start + timedelta(days=7)
        assert isinstance(limiter.check_and_increment("user:u1", 2, 7, today=next_window), Allowed)


class TestConcurrency:
    def test_parallel_connections_never_exceed_limit(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        path = tmp_path / "shared.db"
        init_db(path).close()
        allowed: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            conn = sqlite3.connect(str(path), timeout=10)
            conn.row_factory = sqlite3.Row
            decision = RateLimiter(conn).check_and_increment("ip:9.9.9.9", 5, today=TODAY)
            with lock:
                allowed.append(isinstance(decision, Allowed))
            conn.close()

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(allowed) == 5
        conn = init_db(path)
        assert get_window_count(conn, "ip:9.9.9.9", TODAY) == 5


# ---------------------------------------------------------------------------
# Tier helpers
# ---------------------------------------------------------------------------


class TestTiers:
    def test_check_tier_uses_config(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db, limit=1)
        assert isinstance(limiter.check_tier("ip:1.1.1.1", "preview", today=TODAY), Allowed)
        assert isinstance(limiter.check_tier("ip:1.1.1.1", "preview", today=TODAY), Denied)

    def test_remaining_counts_down(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db, limit=3)
        assert limiter.remaining("ip:1.1.1.1", "preview", today=TODAY) == 3
        limiter.check_tier("ip:1.1.1.1", "preview", today=TODAY)
        assert limiter.remaining("ip:1.1.1.1", "preview", today=TODAY) == 2

    def test_unknown_tier_uses_defaults(self, db: sqlite3.Connection) -> None:
        limiter = _limiter(db)
        assert limiter.remaining("ip:1.1.1.1", "enterprise", today=TODAY) == 3


class TestWindowStart:
    def test_single_day_window_is_the_day(self) -> None:
        assert window_start_for(TODAY, 1) == TODAY

    def test_multi_day_window_floors(self) -> None:
        start = window_start_for(TODAY, 7)
        assert start <= TODAY < start + timedelta(days=7)
        assert window_start_for(start + timedelta(days=6), 7) == start
