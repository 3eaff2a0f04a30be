"""Fixed-window rate limiting for contact form submissions."""

import hashlib
import json
import logging
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Callable, MutableMapping, Optional

from fastapi import Request

logger = logging.getLogger(__name__)

# Server-side limits
RATE_LIMIT_WINDOW_SECONDS = 60
RATE_LIMIT_MAX_REQUESTS = 5
RATE_LIMIT_MAX_ENTRIES = 10000

# Browser-side limits
CLIENT_RATE_LIMIT_KEY = "contact_form_submissions"
CLIENT_RATE_LIMIT_WINDOW_SECONDS = 60
CLIENT_RATE_LIMIT_MAX_REQUESTS = 3


@dataclass
class RateLimitRecord:
    """Submissions seen from one identifier in the current window."""
    count: int
    window_start: float


class BoundedWindowStore:
    """
    In-memory rate limit table with a fixed capacity.

    When a write takes the table over capacity, records whose window has
    expired are dropped first, then the least recently touched ones.
    """

    def __init__(self, window_seconds: float, max_entries: int = RATE_LIMIT_MAX_ENTRIES):
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self._records: "OrderedDict[str, RateLimitRecord]" = OrderedDict()

    def get(self, identifier: str) -> Optional[RateLimitRecord]:
        record = self._records.get(identifier)
        if record is not None:
            self._records.move_to_end(identifier)
        return record

    def set(self, identifier: str, record: RateLimitRecord) -> None:
        self._records[identifier] = record
        self._records.move_to_end(identifier)
        if len(self._records) > self.max_entries:
            self._prune(now=record.window_start)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def _prune(self, now: float) -> None:
        expired = [
            key for key, record in self._records.items()
            if now - record.window_start >= self.window_seconds
        ]
        for key in expired:
            del self._records[key]
        while len(self._records) > self.max_entries:
            self._records.popitem(last=False)


class SessionStorageStore:
    """
    Rate limit records kept as JSON strings in a per-session mapping.

    Mirrors browser session storage: values are strings, and reads or writes
    may fail. Any such failure propagates to the limiter.
    """

    def __init__(self, storage: Optional[MutableMapping[str, str]] = None):
        self.storage = storage if storage is not None else {}

    def get(self, identifier: str) -> Optional[RateLimitRecord]:
        stored = self.storage.get(identifier)
        if not stored:
            return None
        data = json.loads(stored)
        return RateLimitRecord(count=int(data["count"]), window_start=float(data["window_start"]))

    def set(self, identifier: str, record: RateLimitRecord) -> None:
        self.storage[identifier] = json.dumps(asdict(record))

    def clear(self) -> None:
        self.storage.clear()


class FixedWindowRateLimiter:
    """
    Counts submissions per identifier in fixed windows.

    A window opens on the first submission and lasts window_seconds. Once
    max_requests submissions have been admitted in a window, further ones are
    limited (and not counted) until the window expires.

    With fail_open=True, a store that raises is treated as "not limited".
    This is deliberate for the browser-side limiter: it only gives early
    feedback, the server-side limiter is the enforcement point, and a broken
    session store must never block a legitimate visitor.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        store=None,
        clock: Callable[[], float] = time.monotonic,
        fail_open: bool = False,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.store = store if store is not None else BoundedWindowStore(window_seconds)
        self.clock = clock
        self.fail_open = fail_open
        self._lock = Lock()

    def is_limited(self, identifier: str, now: Optional[float] = None) -> bool:
        """Record a submission attempt and report whether it must be refused."""
        if now is None:
            now = self.clock()

        with self._lock:
            if not self.fail_open:
                return self._check(identifier, now)
            try:
                return self._check(identifier, now)
            except Exception as e:
                logger.warning(f"Rate limit storage unavailable, allowing submission: {type(e).__name__}")
                return False

    def reset(self) -> None:
        with self._lock:
            self.store.clear()

    def _check(self, identifier: str, now: float) -> bool:
        record = self.store.get(identifier)

        if record is None or now - record.window_start >= self.window_seconds:
            self.store.set(identifier, RateLimitRecord(count=1, window_start=now))
            return False

        if record.count >= self.max_requests:
            return True

        record.count += 1
        self.store.set(identifier, record)
        return False


def get_rate_limit_identifier(request: Request) -> str:
    """
    Derive the rate limit key from the User-Agent header.

    Network addresses (peer address, X-Forwarded-For) are never read, so no
    address is stored in the rate limit table or written to logs.
    """
    user_agent = request.headers.get("user-agent") or "unknown"
    return hashlib.sha256(user_agent.encode("utf-8")).hexdigest()[:16]


contact_rate_limiter = FixedWindowRateLimiter(
    max_requests=RATE_LIMIT_MAX_REQUESTS,
    window_seconds=RATE_LIMIT_WINDOW_SECONDS,
)


def create_client_rate_limiter(storage: Optional[MutableMapping[str, str]] = None) -> FixedWindowRateLimiter:
    """Browser-side limiter backed by session storage; fails open."""
    return FixedWindowRateLimiter(
        max_requests=CLIENT_RATE_LIMIT_MAX_REQUESTS,
        window_seconds=CLIENT_RATE_LIMIT_WINDOW_SECONDS,
        store=SessionStorageStore(storage),
        clock=time.time,
        fail_open=True,
    )
