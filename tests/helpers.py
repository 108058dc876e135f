"""Shared test helpers for Spot Scheduler tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from spot_scheduler.config.schema import DeviceConfig
from spot_scheduler.tariff.base import PricePoint, PriceSeries

# Wednesday 2024-01-17 00:00 in Tallinn (UTC+2).
DAY_START_UTC = datetime(2024, 1, 16, 22, 0, tzinfo=timezone.utc)


def make_series(
    prices: list[float],
    start: datetime = DAY_START_UTC,
    step: timedelta = timedelta(hours=1),
) -> PriceSeries:
    return PriceSeries(
        PricePoint(timestamp=start + i * step, price=price)
        for i, price in enumerate(prices)
    )


def make_device(**kwargs) -> DeviceConfig:
    kwargs.setdefault("cmd_on", ["switch", "on"])
    kwargs.setdefault("cmd_off", ["switch", "off"])
    return DeviceConfig(**kwargs)
