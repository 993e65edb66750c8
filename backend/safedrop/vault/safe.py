"""
A single escrowed secret and its expiry policy.

A safe stays open for ``open_duration`` seconds after it was locked and can
be unlocked ``unlocks_left`` times. Concurrency is owned by the Vault; a
Safe on its own is a plain value.
"""

import copy
from dataclasses import dataclass
from typing import Any


@dataclass
class Safe:
    """One secret held by the vault."""

    created_at: float
    open_duration: float
    unlocks_left: int
    payload: Any

    def is_open(self, now: float) -> bool:
        """Check whether the time window is still running at ``now``."""
        return now - self.created_at < self.open_duration

    def take_unlock(self) -> Any:
        """
        Spend one unlock and hand out a copy of the payload.

        The caller must have checked ``is_open`` first. The payload itself
        stays in the safe so that it remains valid until the vault evicts it.

        Returns:
            A copy of the payload as it was before the unlock
        """
        if self.unlocks_left <= 0:
            raise ValueError("Safe has no unlocks left")
        self.unlocks_left -= 1
        return copy.deepcopy(self.payload)

    @property
    def is_exhausted(self) -> bool:
        return self.unlocks_left == 0
