# market_data.py
"""MEXC spot market-data client: daily klines and the last traded price.

Symbols are base assets ("BTC"); the quote asset from config is appended to
form the exchange pair ("BTCUSDT"). Any transport, HTTP or decoding failure is
raised as ``MarketDataError``; retries and rate limits belong to the caller.
"""

import logging
from typing import Any, List, Optional, Protocol

import httpx

import config
from errors import MarketDataError

logger = logging.getLogger(__name__)


class MarketDataProvider(Protocol):
    async def get_daily_candles(self, symbol: str, lookback_days: int) -> List[Any]: ...

    async def get_live_price(self, symbol: str) -> float: ...


def exchange_symbol(symbol: str, quote: str = config.MEXC_QUOTE_ASSET) -> str:
    return f"{symbol.strip().upper()}{quote}"


class MexcMarketData:
    def __init__(self, client: Optional[httpx.AsyncClient] = None, base_url: str = config.MEXC_API_URL):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=config.HTTP_TIMEOUT_S,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, path: str, params: dict) -> Any:
        try:
            resp = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise MarketDataError(f"MEXC request {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise MarketDataError(f"MEXC {path} HTTP {resp.status_code}: {resp.text}")
        try:
            return resp.json()
        except ValueError as exc:
            raise MarketDataError(f"MEXC {path} returned invalid JSON: {resp.text[:200]}") from exc

    async def get_daily_candles(self, symbol: str, lookback_days: int) -> List[Any]:
        """Raw kline rows ``[openTime, open, high, low, close, volume, closeTime, ...]``, oldest first."""
        pair = exchange_symbol(symbol)
        data = await self._get_json(
            "/api/v3/klines", {"symbol": pair, "interval": "1d", "limit": int(lookback_days)}
        )
        # Shape validation is ingestion's job; just pass the payload through
        logger.debug("fetched %s klines for %s", len(data) if isinstance(data, list) else "?", pair)
        return data

    async def get_live_price(self, symbol: str) -> float:
        pair = exchange_symbol(symbol)
        data = await self._get_json("/api/v3/ticker/price", {"symbol": pair})
        try:
            return float(data["price"])
        except (KeyError, TypeError, ValueError) as exc:
            raise MarketDataError(f"MEXC ticker for {pair} has no usable price: {data!r}") from exc
