"""Elering Nord Pool spot price provider.

API: https://dashboard.elering.ee/api/nps/price?start=<RFC 3339>&end=<RFC 3339>
Returns ``{"success": true, "data": {"ee": [{"timestamp": 1700000000, "price": 87.1}, ...]}}``
with prices in EUR/MWh and one list per bidding area.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx
from pydantic import BaseModel, ValidationError

from spot_scheduler.config.schema import MarketConfig
from spot_scheduler.tariff.base import MarketError, MarketProvider, PricePoint, PriceSeries

logger = logging.getLogger(__name__)

PRICE_PATH = "/api/nps/price"


class _RawPrice(BaseModel):
    timestamp: int
    price: float


class _PriceResponse(BaseModel):
    success: bool
    data: dict[str, list[_RawPrice]] = {}


class EleringProvider(MarketProvider):
    """Elering dashboard API price provider."""

    def __init__(self, config: MarketConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
        )
        self._owns_client = client is None

    async def fetch_prices(self, start: datetime, end: datetime) -> PriceSeries:
        """Fetch the prices of ``[start, end]`` for the configured area."""
        params = {"start": start.isoformat(), "end": end.isoformat()}
        try:
            resp = await self._client.get(PRICE_PATH, params=params)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as e:
            raise MarketError(f"Price request failed: {e}") from e
        except ValueError as e:
            raise MarketError(f"Price response is not valid JSON: {e}") from e

        series = self._parse_prices(payload, self._config.area)
        logger.info(
            "Elering prices fetched: %d slots (%s to %s)",
            len(series),
            series.first.timestamp.isoformat(),
            series.last.timestamp.isoformat(),
        )
        return series

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def _parse_prices(payload: object, area: str) -> PriceSeries:
        """Validate an Elering response and convert it to a PriceSeries."""
        try:
            response = _PriceResponse.model_validate(payload)
        except ValidationError as e:
            raise MarketError(f"Malformed price response: {e}") from e

        if not response.success:
            raise MarketError("Price response reported success=false")
        raw = response.data.get(area)
        if not raw:
            raise MarketError(f"Price response contains no prices for area '{area}'")

        points = [
            PricePoint(
                timestamp=datetime.fromtimestamp(entry.timestamp, tz=timezone.utc),
                price=entry.price,
            )
            for entry in raw
        ]
        try:
            return PriceSeries(points)
        except ValueError as e:
            raise MarketError(f"Unusable price series: {e}") from e
