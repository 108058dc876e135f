"""Shell command executor for device switching."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from spot_scheduler.loads.base import CommandLaunchError

logger = logging.getLogger(__name__)


class ShellExecutor:
    """Runs a device command as a child process and waits for it.

    The program is started directly (no shell); output is captured and
    logged at debug level.
    """

    async def run(self, argv: Sequence[str]) -> int | None:
        program, *args = argv
        try:
            proc = await asyncio.create_subprocess_exec(
                program,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandLaunchError(f"Failed to run '{program}': {e}") from e

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            # Shutdown while a command runs: do not leave the child behind.
            if proc.returncode is None:
                proc.kill()
            await proc.wait()
            logger.warning("'%s' killed on cancellation", program)
            raise
        if stdout:
            logger.debug("%s stdout: %s", program, stdout.decode(errors="replace").rstrip())
        if stderr:
            logger.debug("%s stderr: %s", program, stderr.decode(errors="replace").rstrip())

        # Negative return codes mean the child was terminated by a signal.
        if proc.returncode is None or proc.returncode < 0:
            logger.warning("'%s' terminated abnormally (%s)", program, proc.returncode)
            return None
        return proc.returncode
