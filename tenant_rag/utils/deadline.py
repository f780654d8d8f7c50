"""
Caller deadlines.

A Deadline is created once per public operation from the caller's timeout and
handed down to every external call of that operation, so the whole call
(embed + upsert, or embed + query) shares one time budget.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


class DeadlineExceeded(Exception):
    """Raised when the budget is already spent before a call starts."""


class Deadline:
    """Absolute point in (monotonic) time after which work must stop."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be > 0")
        self._expires_at = None if timeout is None else time.monotonic() + timeout

    @classmethod
    def none(cls) -> "Deadline":
        return cls(None)

    @property
    def bounded(self) -> bool:
        return self._expires_at is not None

    def remaining(self) -> Optional[float]:
        """Seconds left, None for an unbounded deadline."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def budget(self, cap: Optional[float]) -> Optional[float]:
        """
        Time allowed for the next external call: the smaller of the remaining
        budget and the per-call cap from settings.
        """
        remaining = self.remaining()
        if remaining is None:
            return cap
        if cap is None:
            return remaining
        return min(remaining, cap)

    async def run(self, awaitable: Awaitable[T], cap: Optional[float] = None) -> T:
        """
        Await with the current budget.

        Raises:
            DeadlineExceeded: budget already spent (awaitable is closed, never run)
            asyncio.TimeoutError: budget ran out while waiting
        """
        if self.expired():
            close = getattr(awaitable, "close", None)
            if close is not None:
                close()
            raise DeadlineExceeded("deadline already expired")
        return await asyncio.wait_for(awaitable, timeout=self.budget(cap))
