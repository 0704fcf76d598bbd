"""Best-effort USD reference price for the native gas asset."""

import asyncio
import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

import httpx

from deposit_core.config import EngineConfig

logger = logging.getLogger(__name__)


class ReferencePriceCache:
    """Caches the last known price and keeps it when a refresh fails."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: EngineConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._url = config.price_feed_url
        self._asset_id = config.price_asset_id
        self._timeout = config.price_timeout_seconds
        self._max_age = config.price_max_age_seconds
        self._clock = clock
        self._price = config.default_native_price_usd
        self._refreshed_at: Optional[float] = None

    @property
    def price(self) -> Decimal:
        return self._price

    async def refresh(self) -> Decimal:
        if self._refreshed_at is not None and self._clock() - self._refreshed_at < self._max_age:
            return self._price

        try:
            self._price = await asyncio.wait_for(self._fetch(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Price refresh timed out; keeping %s USD", self._price)
        except (
            httpx.HTTPError,
            httpx.InvalidURL,
            ValueError,
            KeyError,
            TypeError,
            InvalidOperation,
        ) as exc:
            logger.warning("Price refresh failed (%s); keeping %s USD", exc, self._price)
        else:
            self._refreshed_at = self._clock()
        return self._price

    async def _fetch(self) -> Decimal:
        response = await self._client.get(
            self._url, params={"ids": self._asset_id, "vs_currencies": "usd"}
        )
        response.raise_for_status()
        price = Decimal(str(response.json()[self._asset_id]["usd"]))
        if not price.is_finite() or price <= 0:
            raise ValueError(f"Unusable price {price}")
        return price
