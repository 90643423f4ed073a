# market_stub.py
# Synthetic daily candles for local runs and tests (no network).
# Usage example:
#   import asyncio
#   from market_stub import StubMarketData
#   async def main():
#       md = StubMarketData(seed=7)
#       candles = await md.get_daily_candles("BTC", 90)
#       print(candles[-1], await md.get_live_price("BTC"))
#   asyncio.run(main())

import random
import zlib
from typing import Dict, List, Optional

from models import Candle

DAY_MS = 86_400_000
START_MS = 1_700_006_400_000  # 2023-11-15 00:00 UTC


def synthetic_candles(days: int,
                      base_price: float = 100.0,
                      jitter: float = 0.02,
                      drift: float = 0.0,
                      seed: Optional[int] = None) -> List[Candle]:
    """Daily OHLC random walk, oldest first.

    ``jitter`` is the daily close-to-close volatility as a fraction of price,
    ``drift`` a fractional per-day trend added to it.
    """
    rng = random.Random(seed)
    candles: List[Candle] = []
    prev_close = float(base_price)
    for i in range(days):
        open_ = prev_close
        close = max(0.01, open_ * (1.0 + drift + rng.gauss(0.0, jitter)))
        wick = abs(rng.gauss(0.0, jitter / 2))
        high = max(open_, close) * (1.0 + wick)
        low = max(0.005, min(open_, close) * (1.0 - wick))
        candles.append(Candle(
            open_time=START_MS + i * DAY_MS,
            open=round(open_, 6),
            high=round(high, 6),
            low=round(low, 6),
            close=round(close, 6),
            volume=round(rng.uniform(1_000, 10_000), 2),
        ))
        prev_close = close
    return candles


class StubMarketData:
    """Deterministic stand-in for the exchange client, same async interface."""

    def __init__(self, seed: int = 123, base_price: float = 100.0, jitter: float = 0.02,
                 history_days: int = 365):
        self.seed = seed
        self.base_price = base_price
        self.jitter = jitter
        self.history_days = history_days
        self.live_overrides: Dict[str, float] = {}

    def _history(self, symbol: str) -> List[Candle]:
        # Per-symbol seed so different symbols get different but stable walks
        sym_seed = self.seed ^ zlib.crc32(symbol.upper().encode())
        return synthetic_candles(self.history_days, self.base_price, self.jitter, seed=sym_seed)

    async def get_daily_candles(self, symbol: str, lookback_days: int) -> List[Candle]:
        return self._history(symbol)[-lookback_days:]

    async def get_live_price(self, symbol: str) -> float:
        if symbol.upper() in self.live_overrides:
            return self.live_overrides[symbol.upper()]
        return self._history(symbol)[-1].close
