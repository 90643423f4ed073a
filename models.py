# models.py
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

import config


# One daily OHLC candle (open time in epoch milliseconds, as exchanges report it)
@dataclass(frozen=True)
class Candle:
    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


# Parallel, chronological arrays produced by ingestion. Owned by one computation.
@dataclass(frozen=True)
class CandleSeries:
    symbol: str
    open_times: Tuple[int, ...]
    highs: Tuple[float, ...]
    lows: Tuple[float, ...]
    closes: Tuple[float, ...]

    def __len__(self) -> int:
        return len(self.closes)


class Trend(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True)
class Indicators:
    sma20: float
    sma50: float
    atr14: float
    atr_pct: float  # atr14 / live price
    swing_high: float
    swing_low: float
    fib618: float
    fib786: float

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (
            self.sma20, self.sma50, self.atr14, self.atr_pct,
            self.swing_high, self.swing_low, self.fib618, self.fib786,
        ))


class CamelModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntrySuggestion(CamelModel):
    name: Literal["EX1", "EX2", "EX3"]
    price: float
    pct_under_live: float


# Complete output of one computation; exactly the shape the caller persists
class EngineResult(CamelModel):
    symbol: str
    trend: Trend
    sma20: float
    sma50: float
    atr14: float
    atr_pct: float
    swing_high: float
    swing_low: float
    fib618: float
    fib786: float
    entries: List[EntrySuggestion]
    live_price: float
    user_discount_pct: float = 0.0
    computed_at_week_key: str


# --- HTTP request/response models ---

class EntryRequest(CamelModel):
    symbol: str
    lookback_days: int = config.DEFAULT_LOOKBACK_DAYS
    force: bool = False
    user_id: str = "default"


class SkippedResponse(CamelModel):
    ok: bool = True
    skipped: bool = True
    week_key: str


class DiscountSettings(CamelModel):
    discount_pct: Optional[float] = Field(default=None)


class EntryStatusResponse(CamelModel):
    symbol: str
    live_price: float
    reached: List[str]
    entries: List[EntrySuggestion]


# --- In-memory collaborators ---

class UserSettingsStore:
    """Per-user settings provider. Discount is optional and may be absent."""

    def __init__(self):
        self._discounts: Dict[str, float] = {}

    def get_discount_pct(self, user_id: str) -> Optional[float]:
        return self._discounts.get(user_id)

    def set_discount_pct(self, user_id: str, pct: Optional[float]) -> None:
        if pct is None:
            self._discounts.pop(user_id, None)
        else:
            self._discounts[user_id] = pct


class SuggestionStore:
    """Latest EngineResult per (user, symbol)."""

    def __init__(self):
        self._results: Dict[Tuple[str, str], EngineResult] = {}

    def get(self, user_id: str, symbol: str) -> Optional[EngineResult]:
        return self._results.get((user_id, symbol))

    def put(self, user_id: str, result: EngineResult) -> None:
        self._results[(user_id, result.symbol)] = result

    def clear(self) -> None:
        self._results.clear()
