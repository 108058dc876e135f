"""Price data model and the abstract market provider."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta


class MarketError(RuntimeError):
    """The market price request failed or returned unusable data."""


@dataclass(frozen=True)
class PricePoint:
    """Price of one time slot, starting at ``timestamp`` (UTC)."""

    timestamp: datetime
    price: float  # EUR/MWh


class PriceSeries(Sequence[PricePoint]):
    """One day of prices: non-empty, chronological, uniformly spaced.

    Bounds are exposed through ``first``/``last`` so that interval and
    window computations can guard the single-point case explicitly.
    """

    __slots__ = ("_points",)

    def __init__(self, points: Iterable[PricePoint]) -> None:
        points = tuple(points)
        if not points:
            raise ValueError("price series must not be empty")
        for prev, cur in zip(points, points[1:]):
            if cur.timestamp <= prev.timestamp:
                raise ValueError(
                    f"price series must be strictly chronological "
                    f"({prev.timestamp.isoformat()} >= {cur.timestamp.isoformat()})"
                )
        self._points = points

    def __getitem__(self, index):  # type: ignore[override]
        return self._points[index]

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[PricePoint]:
        return iter(self._points)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PriceSeries):
            return NotImplemented
        return self._points == other._points

    def __repr__(self) -> str:
        return (
            f"PriceSeries({len(self)} points, "
            f"{self.first.timestamp.isoformat()}..{self.last.timestamp.isoformat()})"
        )

    @property
    def first(self) -> PricePoint:
        return self._points[0]

    @property
    def last(self) -> PricePoint:
        return self._points[-1]

    @property
    def interval(self) -> int | None:
        """Sampling interval in whole seconds, or None for a single point."""
        if len(self) < 2:
            return None
        span = self.last.timestamp - self.first.timestamp
        return int(span.total_seconds()) // (len(self) - 1)

    def window_size(self, window: timedelta | None) -> int:
        """Number of consecutive slots covered by ``window``.

        Falls back to the whole series when no window is configured or the
        interval cannot be inferred.
        """
        interval = self.interval
        if window is None or not interval:
            return len(self)
        return int(window.total_seconds()) // interval

    def windows(self, size: int) -> Iterator[tuple[PricePoint, ...]]:
        """Yield every contiguous run of ``size`` points, step one.

        Yields nothing when ``size`` is zero or exceeds the series length.
        """
        if size <= 0:
            return
        for start in range(len(self) - size + 1):
            yield self._points[start:start + size]

    def timestamps(self) -> frozenset[datetime]:
        return frozenset(p.timestamp for p in self._points)


class MarketProvider(ABC):
    """Abstract base for spot price sources."""

    @abstractmethod
    async def fetch_prices(self, start: datetime, end: datetime) -> PriceSeries:
        """Fetch the price series covering ``[start, end]``.

        Raises MarketError on any failure or an empty result.
        """
        ...

    async def close(self) -> None:
        return None
