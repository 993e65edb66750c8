"""
In-memory vault holding safes keyed by an opaque handle.

Every operation takes the vault lock for its whole check-then-mutate step,
so the expiry check, the unlock decrement and the eviction of a safe are a
single atomic step for all callers, whether they run on the event loop or
in worker threads.

Expired safes are evicted lazily, on the next unlock attempt.
"""

import secrets
import threading
import time
from typing import Any, Callable, Optional

from ..logging import get_logger
from .safe import Safe

logger = get_logger("vault")

# 16 random bytes rendered as 32 lowercase hex characters
SAFE_ID_BYTES = 16
DEFAULT_UNLOCKS = 1


def generate_safe_id() -> str:
    """Generate a 128-bit safe handle from the OS CSPRNG."""
    return secrets.token_hex(SAFE_ID_BYTES)


class Vault:
    """Concurrent handle -> Safe mapping exposing lock and unlock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._safes: dict[str, Safe] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._safes)

    def lock_safe(
        self,
        open_duration: int,
        payload: Any,
        unlocks: Optional[int] = None,
    ) -> str:
        """
        Store a payload and return the handle that unlocks it.

        Args:
            open_duration: Seconds the safe can be unlocked for (0 means it
                is already closed)
            payload: Opaque secret; never inspected by the vault
            unlocks: How many times the safe can be unlocked (default 1)

        Returns:
            The safe handle (32 lowercase hex characters)
        """
        if unlocks is None:
            unlocks = DEFAULT_UNLOCKS
        if open_duration < 0:
            raise ValueError(f"open_duration must be >= 0, got {open_duration}")
        if unlocks < 0:
            raise ValueError(f"unlocks must be >= 0, got {unlocks}")

        safe = Safe(
            created_at=self._clock(),
            open_duration=open_duration,
            unlocks_left=unlocks,
            payload=payload,
        )

        with self._lock:
            safe_id = generate_safe_id()
            while safe_id in self._safes:
                safe_id = generate_safe_id()
            # A safe with no unlocks is exhausted before anyone can reach it
            if unlocks > 0:
                self._safes[safe_id] = safe

        logger.info(
            "Safe locked: %s (open %ss, %d unlocks)",
            safe_id[:8], open_duration, unlocks,
        )
        return safe_id

    def unlock_safe(self, safe_id: str) -> Optional[Any]:
        """
        Unlock a safe and return a copy of its payload.

        Returns None when the safe is unknown, its window has elapsed, or its
        unlocks were already used up. Callers cannot tell the three cases
        apart.
        """
        with self._lock:
            safe = self._safes.get(safe_id)
            if safe is None:
                return None

            if not safe.is_open(self._clock()):
                del self._safes[safe_id]
                logger.info("Safe expired: %s", safe_id[:8])
                return None

            payload = safe.take_unlock()
            if safe.is_exhausted:
                del self._safes[safe_id]
                logger.info("Safe exhausted: %s", safe_id[:8])

        return payload

    def safe_exists(self, safe_id: str) -> bool:
        """Check whether a handle is currently stored. Does not evaluate expiry."""
        with self._lock:
            return safe_id in self._safes

    def purge_expired(self) -> int:
        """Evict every safe whose window has elapsed. Returns how many were evicted."""
        with self._lock:
            now = self._clock()
            expired = [
                safe_id for safe_id, safe in self._safes.items()
                if not safe.is_open(now)
            ]
            for safe_id in expired:
                del self._safes[safe_id]

        if expired:
            logger.info("Purged %d expired safes", len(expired))
        return len(expired)
