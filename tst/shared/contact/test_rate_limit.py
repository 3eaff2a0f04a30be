"""Tests for fixed-window rate limiting."""

import hashlib
import json
import threading

from starlette.requests import Request

from litsite.shared.contact.rate_limit import (
    CLIENT_RATE_LIMIT_KEY,
    BoundedWindowStore,
    FixedWindowRateLimiter,
    RateLimitRecord,
    SessionStorageStore,
    create_client_rate_limiter,
    get_rate_limit_identifier,
)


def make_request(headers):
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/api/send-contact-email",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("203.0.113.7", 51000),
    })


class TestFixedWindowRateLimiter:
    def test_n_plus_first_call_in_window_is_limited(self):
        limiter = FixedWindowRateLimiter(max_requests=3, window_seconds=60)

        assert [limiter.is_limited("ua", now=t) for t in (0, 10, 20)] == [False, False, False]
        assert limiter.is_limited("ua", now=30) is True

    def test_limited_calls_do_not_increment(self):
        limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=60)
        for t in range(5):
            limiter.is_limited("ua", now=t)

        assert limiter.store.get("ua").count == 2

    def test_window_resets_once_elapsed(self):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60)
        assert limiter.is_limited("ua", now=100) is False
        assert limiter.is_limited("ua", now=159) is True

        assert limiter.is_limited("ua", now=160) is False
        record = limiter.store.get("ua")
        assert record.count == 1
        assert record.window_start == 160

    def test_identifiers_are_independent(self):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60)
        assert limiter.is_limited("a", now=0) is False
        assert limiter.is_limited("a", now=1) is True
        assert limiter.is_limited("b", now=1) is False

    def test_uses_clock_when_now_not_given(self):
        ticks = iter([0.0, 1.0, 2.0])
        limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=60, clock=lambda: next(ticks))

        assert limiter.is_limited("ua") is False
        assert limiter.is_limited("ua") is False
        assert limiter.is_limited("ua") is True

    def test_concurrent_calls_admit_at_most_max_requests(self):
        limiter = FixedWindowRateLimiter(max_requests=5, window_seconds=60)
        barrier = threading.Barrier(20)
        results = []

        def submit():
            barrier.wait()
            results.append(limiter.is_limited("ua", now=1.0))

        threads = [threading.Thread(target=submit) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(False) == 5
        assert results.count(True) == 15
        assert limiter.store.get("ua").count == 5

    def test_reset_clears_counts(self):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60)
        limiter.is_limited("ua", now=0)
        limiter.reset()
        assert limiter.is_limited("ua", now=1) is False


class TestBoundedWindowStore:
    def test_evicts_least_recently_used_at_capacity(self):
        store = BoundedWindowStore(window_seconds=60, max_entries=2)
        store.set("a", RateLimitRecord(count=1, window_start=0))
        store.set("b", RateLimitRecord(count=1, window_start=1))
        store.get("a")
        store.set("c", RateLimitRecord(count=1, window_start=2))

        assert len(store) == 2
        assert store.get("b") is None
        assert store.get("a") is not None
        assert store.get("c") is not None

    def test_prunes_expired_records_before_evicting(self):
        store = BoundedWindowStore(window_seconds=10, max_entries=2)
        store.set("old", RateLimitRecord(count=1, window_start=0))
        store.set("recent", RateLimitRecord(count=1, window_start=5))
        store.set("new", RateLimitRecord(count=1, window_start=12))

        assert store.get("old") is None
        assert store.get("recent") is not None
        assert store.get("new") is not None

    def test_table_stays_bounded_under_many_identifiers(self):
        limiter = FixedWindowRateLimiter(
            max_requests=5,
            window_seconds=60,
            store=BoundedWindowStore(window_seconds=60, max_entries=100),
        )
        for i in range(1000):
            limiter.is_limited(f"agent-{i}", now=i * 0.01)

        assert len(limiter.store) == 100


class BrokenStorage(dict):
    def get(self, key, default=None):
        raise OSError("storage disabled")


class TestClientRateLimiter:
    def test_limits_after_three_submissions(self):
        limiter = create_client_rate_limiter({})
        results = [limiter.is_limited(CLIENT_RATE_LIMIT_KEY, now=t) for t in (0, 1, 2, 3)]
        assert results == [False, False, False, True]

    def test_records_are_stored_as_json(self):
        storage = {}
        limiter = create_client_rate_limiter(storage)
        limiter.is_limited(CLIENT_RATE_LIMIT_KEY, now=1000.0)
        limiter.is_limited(CLIENT_RATE_LIMIT_KEY, now=1001.0)

        assert json.loads(storage[CLIENT_RATE_LIMIT_KEY]) == {"count": 2, "window_start": 1000.0}

    def test_fails_open_when_storage_raises(self):
        limiter = create_client_rate_limiter(BrokenStorage())
        assert all(limiter.is_limited(CLIENT_RATE_LIMIT_KEY, now=t) is False for t in range(10))

    def test_fails_open_on_corrupt_record(self):
        limiter = create_client_rate_limiter({CLIENT_RATE_LIMIT_KEY: "not json"})
        assert limiter.is_limited(CLIENT_RATE_LIMIT_KEY, now=0) is False

    def test_session_store_round_trips_record(self):
        store = SessionStorageStore()
        store.set("k", RateLimitRecord(count=3, window_start=12.5))
        assert store.get("k") == RateLimitRecord(count=3, window_start=12.5)
        assert store.get("missing") is None


class TestRateLimitIdentifier:
    def test_derived_from_user_agent_hash(self):
        request = make_request({"User-Agent": "Mozilla/5.0"})
        expected = hashlib.sha256(b"Mozilla/5.0").hexdigest()[:16]
        assert get_rate_limit_identifier(request) == expected

    def test_ignores_network_addresses(self):
        direct = make_request({"User-Agent": "Mozilla/5.0"})
        proxied = make_request({"User-Agent": "Mozilla/5.0", "X-Forwarded-For": "198.51.100.4"})

        identifier = get_rate_limit_identifier(direct)
        assert identifier == get_rate_limit_identifier(proxied)
        assert "203.0.113.7" not in identifier

    def test_missing_user_agent_uses_shared_bucket(self):
        request = make_request({})
        assert get_rate_limit_identifier(request) == hashlib.sha256(b"unknown").hexdigest()[:16]
