# core/cache.py

"""
In-memory TTL cache of resolved roles, keyed by user id.

Expiry is checked on read; there is no background eviction. Concurrent
misses for the same user collapse into a single fetch ("single-flight")
whose result every waiter shares.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable, Dict, Optional, Tuple

from core.logging_config import logger
from models.enums import Role
from models.roles import CachedRoleEntry

DEFAULT_TTL_SECONDS = 300


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PermissionCache:
    """
    TTL-keyed store of resolved roles with single-flight misses.

    Thread-safe for concurrent access. The clock is injectable so tests
    can move time without sleeping.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
        max_workers: int = 8,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CachedRoleEntry] = {}
        self._inflight: Dict[str, Tuple[object, Future]] = {}
        self._lock = Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="role-lookup",
        )

    # -----------------------------------------------------
    # Basic operations
    # -----------------------------------------------------
    def get(self, user_id: str) -> Optional[CachedRoleEntry]:
        """
        Return the live entry for `user_id`, or None on a miss.
        An expired entry is dropped and reported as a miss.
        """
        with self._lock:
            return self._get_locked(user_id)

    def put(self, user_id: str, role: Role, ttl_seconds: Optional[int] = None) -> CachedRoleEntry:
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        with self._lock:
            return self._put_locked(user_id, role, ttl_seconds)

    def invalidate(self, user_id: str) -> bool:
        """
        Drop the entry and any in-flight fetch for `user_id`.
        The next lookup is a hard miss. Returns True if an entry was removed.
        """
        with self._lock:
            self._inflight.pop(user_id, None)
            return self._entries.pop(user_id, None) is not None

    def invalidate_all(self):
        """Clear every entry. Used when the role catalog is reloaded."""
        with self._lock:
            self._entries.clear()
            self._inflight.clear()

    def size(self) -> int:
        """Get the number of stored entries (expired ones included until read)."""
        with self._lock:
            return len(self._entries)

    def close(self):
        """Stop the lookup workers. In-flight fetches finish first."""
        self._executor.shutdown(wait=True)

    # -----------------------------------------------------
    # Single-flight lookup
    # -----------------------------------------------------
    def get_or_fetch(
        self,
        user_id: str,
        fetch: Callable[[str], Role],
        timeout: Optional[float] = None,
    ) -> Tuple[CachedRoleEntry, bool]:
        """
        Return (entry, cache_hit).

        On a miss, `fetch(user_id)` runs once on a worker thread no matter
        how many callers are waiting for the same user. Errors raised by
        `fetch` reach every waiter and are not cached.

        Raises concurrent.futures.TimeoutError if the fetch does not finish
        within `timeout` seconds. The fetch keeps running and still fills
        the cache for the next caller.
        """
        with self._lock:
            entry = self._get_locked(user_id)
            if entry is not None:
                logger.debug(f"Role cache hit: {user_id}")
                return entry, True

            inflight = self._inflight.get(user_id)
            if inflight is None:
                token = object()
                future = self._executor.submit(self._load, user_id, fetch, token)
                self._inflight[user_id] = (token, future)
                logger.debug(f"Role cache miss, fetching: {user_id}")
            else:
                future = inflight[1]
                logger.debug(f"Role cache miss, joining in-flight fetch: {user_id}")

        return future.result(timeout=timeout), False

    def _load(self, user_id: str, fetch: Callable[[str], Role], token: object) -> CachedRoleEntry:
        try:
            role = fetch(user_id)
        except BaseException:
            with self._lock:
                self._finish_flight_locked(user_id, token)
            raise

        with self._lock:
            if self._finish_flight_locked(user_id, token):
                return self._put_locked(user_id, role, None)

        # Invalidated while fetching: hand the result to the waiters of this
        # fetch but keep it out of the cache.
        now = self._clock()
        return CachedRoleEntry(
            user_id=user_id,
            role=role,
            fetched_at=now,
            expires_at=now,
        )

    # -----------------------------------------------------
    # Lock-held helpers
    # -----------------------------------------------------
    def _finish_flight_locked(self, user_id: str, token: object) -> bool:
        """Drop the in-flight slot if it still belongs to `token`."""
        current = self._inflight.get(user_id)
        if current is None or current[0] is not token:
            return False
        del self._inflight[user_id]
        return True

    def _get_locked(self, user_id: str) -> Optional[CachedRoleEntry]:
        entry = self._entries.get(user_id)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del self._entries[user_id]
            return None

        return entry

    def _put_locked(self, user_id: str, role: Role, ttl_seconds: Optional[int]) -> CachedRoleEntry:
        now = self._clock()
        entry = CachedRoleEntry(
            user_id=user_id,
            role=role,
            fetched_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds if ttl_seconds is None else ttl_seconds),
        )
        self._entries[user_id] = entry
        return entry
