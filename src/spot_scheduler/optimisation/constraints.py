"""Windowed constraint solver: decides which slots a device is enabled in."""

from __future__ import annotations

import logging
import math
from datetime import datetime

from spot_scheduler.config.schema import DeviceConfig
from spot_scheduler.tariff.base import PricePoint, PriceSeries

logger = logging.getLogger(__name__)


def _by_price(window: tuple[PricePoint, ...]) -> list[PricePoint]:
    # sorted() is stable, so equal prices keep chronological order.
    return sorted(window, key=lambda p: p.price)


def _scaled(ratio: float, window_size: int) -> float:
    # Rounded so that e.g. 0.3 * 10 counts as 3 slots, not 3.0000000000000004.
    return round(ratio * window_size, 9)


def satisfy_constraints(series: PriceSeries, device: DeviceConfig) -> frozenset[datetime]:
    """Compute the set of slot timestamps in which ``device`` is enabled.

    Passes, in order:
    1. Threshold: enable every slot priced at or below ``threshold``.
    2. Ratio max (needs a threshold): in every sliding window, drop the
       slots ranked beyond ``floor(ratio_max * window_size)`` by price.
    3. Ratio min: in every sliding window, force-enable the
       ``ceil(ratio_min * window_size)`` cheapest slots.

    The min pass runs last and may re-enable slots the max pass removed.
    Windows longer than the series produce no windows, making both ratio
    passes no-ops.
    """
    enabled: set[datetime] = set()
    window_size = series.window_size(device.window)

    if device.threshold is not None:
        enabled.update(p.timestamp for p in series if p.price <= device.threshold)

        if device.ratio_max is not None:
            max_enabled = math.floor(_scaled(device.ratio_max, window_size))
            for window in series.windows(window_size):
                for p in _by_price(window)[max_enabled:]:
                    enabled.discard(p.timestamp)

    if device.ratio_min is not None:
        min_enabled = math.ceil(_scaled(device.ratio_min, window_size))
        for window in series.windows(window_size):
            enabled.update(p.timestamp for p in _by_price(window)[:min_enabled])

    logger.debug(
        "Constraints solved: %d/%d slots enabled (window=%d slots)",
        len(enabled), len(series), window_size,
    )
    return frozenset(enabled)
