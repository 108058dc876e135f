"""Grid distribution rates added on top of the spot price."""

from __future__ import annotations

from dataclasses import replace
from datetime import tzinfo

from spot_scheduler.config.schema import GridPackageConfig
from spot_scheduler.tariff.base import PricePoint, PriceSeries
from spot_scheduler.timezone_utils import REFERENCE_TIMEZONE

DAY_START_HOUR = 7
DAY_END_HOUR = 22  # exclusive


def is_day_rate(point: PricePoint, tz: tzinfo = REFERENCE_TIMEZONE) -> bool:
    """Day rate applies on weekdays between 07:00 and 22:00 local time."""
    local = point.timestamp.astimezone(tz)
    return DAY_START_HOUR <= local.hour < DAY_END_HOUR and local.weekday() < 5


def add_grid_rate(
    point: PricePoint,
    package: GridPackageConfig,
    tz: tzinfo = REFERENCE_TIMEZONE,
) -> PricePoint:
    """Return ``point`` with the package's day or night rate added."""
    rate = package.day if is_day_rate(point, tz) else package.night
    return replace(point, price=point.price + rate)


def adjust_series(series: PriceSeries, package: GridPackageConfig) -> PriceSeries:
    return PriceSeries(add_grid_rate(p, package) for p in series)
