"""Wall clock used by the scheduler."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime:
        """Current instant (timezone-aware)."""
        ...

    async def sleep_until(self, instant: datetime) -> None:
        """Block until ``instant`` has been reached."""
        ...


class SystemClock:
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep_until(self, instant: datetime) -> None:
        # Re-check after waking: long sleeps can return slightly early.
        while True:
            remaining = (instant - self.now()).total_seconds()
            if remaining <= 0:
                return
            await asyncio.sleep(remaining)
