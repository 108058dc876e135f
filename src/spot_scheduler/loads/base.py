"""Protocol for device command executors."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Protocol, runtime_checkable


class CommandLaunchError(RuntimeError):
    """A device command could not be started at all."""


class DeviceState(str, Enum):
    """Decision for a device in one slot."""

    ENABLED = "enabled"
    DISABLED = "disabled"


@runtime_checkable
class CommandExecutor(Protocol):
    """Runs device commands.

    Implementations: ShellExecutor.
    """

    async def run(self, argv: Sequence[str]) -> int | None:
        """Run ``argv`` to completion.

        Returns the exit code, or None if the process ended abnormally
        (killed by a signal). Raises CommandLaunchError if it cannot start.
        """
        ...
