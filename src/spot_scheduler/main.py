"""Spot Scheduler entry point.

Startup sequence:
  arguments → config (validated once) → logging → market client →
  executor → day scheduler
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from spot_scheduler import __version__
from spot_scheduler.config.manager import ConfigManager
from spot_scheduler.config.schema import AppConfig
from spot_scheduler.control.loop import DayReport, DayScheduler
from spot_scheduler.loads.adapters.shell import ShellExecutor
from spot_scheduler.loads.base import CommandLaunchError
from spot_scheduler.logging.structured import setup_logging
from spot_scheduler.tariff.base import MarketError
from spot_scheduler.tariff.providers.elering import EleringProvider

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="spot-scheduler",
        description="Switch devices on and off following the electricity spot price.",
    )
    parser.add_argument("config", type=Path, help="YAML configuration file")
    parser.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="Simulate the current day without executing any commands",
    )
    parser.add_argument(
        "--defaults", type=Path, default=Path("config.defaults.yaml"),
        help="Optional defaults file merged under the configuration file",
    )
    parser.add_argument("--log-level", default=None, help="Override logging.level")
    parser.add_argument(
        "--log-format", choices=("json", "console"), default=None,
        help="Override logging.format",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


async def run_scheduler(config: AppConfig, simulate: bool) -> DayReport | None:
    """Wire collaborators together and run the scheduler to completion."""
    market = EleringProvider(config.market)
    try:
        scheduler = DayScheduler(
            config=config,
            market=market,
            executor=ShellExecutor(),
            simulate=simulate,
        )
        return await scheduler.run()
    finally:
        await market.close()


def main(argv: list[str] | None = None) -> int:
    """Entry point for the application. Returns the process exit status."""
    args = parse_args(argv)

    try:
        config = ConfigManager(defaults_path=args.defaults, user_path=args.config).load()
    except (OSError, yaml.YAMLError, ValidationError) as e:
        setup_logging(level=args.log_level or "INFO", fmt=args.log_format or "console")
        logger.error("Invalid configuration %s: %s", args.config, e)
        return EXIT_CONFIG_ERROR

    try:
        setup_logging(
            level=args.log_level or config.logging.level,
            fmt=args.log_format or config.logging.format,
            log_file=config.logging.file,
        )
    except OSError as e:
        setup_logging(level=args.log_level or "INFO", fmt=args.log_format or "console")
        logger.error("Cannot open log file %s: %s", config.logging.file, e)
        return EXIT_CONFIG_ERROR
    logger.info("Starting Spot Scheduler v%s", __version__)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    task = loop.create_task(run_scheduler(config, simulate=args.dry_run))

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, task.cancel)

    try:
        loop.run_until_complete(task)
    except asyncio.CancelledError:
        logger.info("Stopped by signal")
        return EXIT_INTERRUPTED
    except KeyboardInterrupt:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            loop.run_until_complete(task)
        logger.info("Interrupted")
        return EXIT_INTERRUPTED
    except (MarketError, CommandLaunchError) as e:
        logger.error("Fatal: %s", e)
        return EXIT_RUNTIME_ERROR
    finally:
        loop.close()
        asyncio.set_event_loop(None)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
