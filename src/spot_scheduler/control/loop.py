"""Daily scheduling loop: fetch, adjust, solve, then switch devices slot by slot."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

import structlog

from spot_scheduler.config.schema import AppConfig, DeviceConfig
from spot_scheduler.control.clock import Clock, SystemClock
from spot_scheduler.loads.base import CommandExecutor, DeviceState
from spot_scheduler.optimisation.constraints import satisfy_constraints
from spot_scheduler.tariff.base import MarketProvider, PricePoint, PriceSeries
from spot_scheduler.tariff.grid import adjust_series
from spot_scheduler.timezone_utils import REFERENCE_TIMEZONE, day_bounds, first_day, next_day

logger = logging.getLogger(__name__)


class LoopPhase(str, Enum):
    FETCHING = "fetching"
    ADJUSTING = "adjusting"
    SOLVING = "solving"
    EXECUTING = "executing"
    DONE = "done"


@dataclass
class SlotReport:
    """What was decided (and run) for one slot."""

    timestamp: datetime
    price: float
    states: dict[str, DeviceState] = field(default_factory=dict)
    exit_codes: dict[str, int | None] = field(default_factory=dict)


@dataclass
class DayReport:
    day_start: datetime
    slots: list[SlotReport] = field(default_factory=list)


@dataclass
class DayCycle:
    """Everything owned by one day's run; replaced when the next day starts."""

    start: datetime
    end: datetime
    market_prices: PriceSeries | None = None
    prices: PriceSeries | None = None
    enabled: dict[str, frozenset[datetime]] = field(default_factory=dict)
    report: DayReport | None = None


class DayScheduler:
    """Day-by-day scheduler driven as an explicit state machine.

    FETCHING -> ADJUSTING -> SOLVING -> EXECUTING -> FETCHING (next day),
    or -> DONE after the first day in simulation mode.

    Everything runs sequentially in one task: a slot's device commands run
    one after another in device-name order, and the wait for a slot blocks
    the whole schedule.
    """

    def __init__(
        self,
        config: AppConfig,
        market: MarketProvider,
        executor: CommandExecutor,
        clock: Clock | None = None,
        simulate: bool = False,
    ) -> None:
        self._config = config
        self._market = market
        self._executor = executor
        self._clock = clock or SystemClock()
        self._simulate = simulate
        self._devices: list[tuple[str, DeviceConfig]] = sorted(config.devices.items())
        self._phase = LoopPhase.FETCHING
        self._day_start: datetime | None = None
        self._cycle: DayCycle | None = None
        self._handlers: dict[LoopPhase, Callable[[], Awaitable[LoopPhase]]] = {
            LoopPhase.FETCHING: self._fetch,
            LoopPhase.ADJUSTING: self._adjust,
            LoopPhase.SOLVING: self._solve,
            LoopPhase.EXECUTING: self._execute,
        }

    @property
    def phase(self) -> LoopPhase:
        return self._phase

    @property
    def cycle(self) -> DayCycle | None:
        return self._cycle

    async def run(self) -> DayReport | None:
        """Run until DONE (simulation) or forever.

        Returns the report of the last completed day. MarketError and
        CommandLaunchError propagate and end the run.
        """
        self._day_start = first_day(
            self._clock.now(),
            start_today=self._simulate or self._config.scheduler.start_today,
        )
        self._phase = LoopPhase.FETCHING
        logger.info(
            "Scheduler starting (%d devices, first day %s, simulate=%s)",
            len(self._devices), self._day_start.date().isoformat(), self._simulate,
        )

        while self._phase is not LoopPhase.DONE:
            self._phase = await self._handlers[self._phase]()

        logger.info("Scheduler finished")
        return self._cycle.report if self._cycle else None

    async def _fetch(self) -> LoopPhase:
        start, end = day_bounds(self._day_start)
        self._cycle = DayCycle(start=start, end=end)
        # Log records of this day carry its date; the previous day's binding is dropped.
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(day=start.date().isoformat())
        self._cycle.market_prices = await self._market.fetch_prices(start, end)
        return LoopPhase.ADJUSTING

    async def _adjust(self) -> LoopPhase:
        self._cycle.prices = adjust_series(self._cycle.market_prices, self._config.package)
        return LoopPhase.SOLVING

    async def _solve(self) -> LoopPhase:
        for name, device in self._devices:
            enabled = satisfy_constraints(self._cycle.prices, device)
            self._cycle.enabled[name] = enabled
            logger.info(
                "Device '%s': enabled in %d of %d slots",
                name, len(enabled), len(self._cycle.prices),
            )
        return LoopPhase.EXECUTING

    async def _execute(self) -> LoopPhase:
        report = DayReport(day_start=self._cycle.start)
        self._cycle.report = report

        for point in self._cycle.prices:
            if not self._simulate:
                if point.timestamp < self._clock.now():
                    continue  # already past, no catch-up
                await self._clock.sleep_until(point.timestamp)
            report.slots.append(await self._run_slot(point))

        if self._simulate:
            return LoopPhase.DONE
        self._day_start = next_day(self._day_start)
        return LoopPhase.FETCHING

    async def _run_slot(self, point: PricePoint) -> SlotReport:
        slot = SlotReport(timestamp=point.timestamp, price=point.price)
        local = point.timestamp.astimezone(REFERENCE_TIMEZONE).replace(tzinfo=None)
        logger.info("%s (%6.2f EUR/MWh)", local.isoformat(sep=" "), point.price)

        for name, device in self._devices:
            is_enabled = point.timestamp in self._cycle.enabled[name]
            state = DeviceState.ENABLED if is_enabled else DeviceState.DISABLED
            slot.states[name] = state
            logger.info("  %s: %s", name, state.value)
            if self._simulate:
                continue

            argv = device.cmd_on if is_enabled else device.cmd_off
            exit_code = await self._executor.run(argv)
            slot.exit_codes[name] = exit_code
            if exit_code is None:
                continue
            log_fn = logger.info if exit_code == 0 else logger.warning
            log_fn("    %s (exit %d)", " ".join(argv), exit_code)

        return slot
