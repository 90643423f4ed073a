"""Daily-candle indicators used for entry-price suggestions.

This module provides Simple Moving Average (SMA), Average True Range (ATR),
swing range and Fibonacci retracement calculations over plain float sequences,
plus the SMA(20/50) trend rule.

Notes on undefined values:
- ``calculate_sma`` and ``calculate_atr`` return ``None`` when there is not enough
  history. ``calculate_indicators`` turns that into ``InsufficientDataError``;
  a missing SMA50 must never be read as 0.0.
"""

import math
from typing import Optional, Sequence, Tuple

import config
from errors import IndicatorUnavailableError, InsufficientDataError, InvalidPriceError
from models import CandleSeries, Indicators, Trend


def calculate_sma(values: Sequence[float], period: int) -> Optional[float]:
    """Arithmetic mean of the last ``period`` values, or None if fewer are available."""
    if period <= 0:
        raise ValueError("period must be > 0")

    n = len(values)
    if n < period:
        return None

    total = 0.0
    for i in range(n - period, n):
        total += float(values[i])
    return total / period


def calculate_atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> Optional[float]:
    """Simple ATR: mean of the last ``period`` true ranges.

    True range for day i (i >= 1) is
    ``max(high - low, |high - prev_close|, |low - prev_close|)``.
    Needs at least ``period + 1`` rows; returns None otherwise.
    """
    if period <= 0:
        raise ValueError("period must be > 0")

    n = min(len(highs), len(lows), len(closes))
    if n < period + 1:
        return None

    trs = []
    for i in range(1, n):
        h = highs[i]
        l = lows[i]
        prev_close = closes[i - 1]
        trs.append(max(h - l, abs(h - prev_close), abs(l - prev_close)))

    return sum(trs[-period:]) / period


def swing_range(closes: Sequence[float]) -> Tuple[float, float]:
    """(swing_high, swing_low) as the max/min close over the whole window."""
    if not closes:
        raise InsufficientDataError("no closes for swing range")
    return max(closes), min(closes)


def fibonacci_levels(swing_high: float, swing_low: float) -> Tuple[float, float]:
    """Return (fib618, fib786) retracements measured down from ``swing_high``."""
    span = swing_high - swing_low
    return (
        swing_high - span * config.FIB_RATIO_618,
        swing_high - span * config.FIB_RATIO_786,
    )


def classify_trend(sma20: float, sma50: float) -> Trend:
    """UP only when sma20 is strictly above sma50. Ties fall to DOWN."""
    return Trend.UP if sma20 > sma50 else Trend.DOWN


def calculate_indicators(series: CandleSeries, live_price: float) -> Indicators:
    """Compute the full indicator bundle for one series and reference price."""
    if not math.isfinite(live_price) or live_price <= 0:
        raise InvalidPriceError(f"invalid live price: {live_price}")

    sma20 = calculate_sma(series.closes, config.SMA_FAST_PERIOD)
    sma50 = calculate_sma(series.closes, config.SMA_SLOW_PERIOD)
    if sma20 is None or sma50 is None:
        raise InsufficientDataError(
            f"Not enough data for SMA{config.SMA_FAST_PERIOD}/SMA{config.SMA_SLOW_PERIOD}"
            f" ({series.symbol}: {len(series)} closes)"
        )

    atr = calculate_atr(series.highs, series.lows, series.closes, config.ATR_PERIOD)
    if atr is None:
        raise InsufficientDataError(f"Not enough data for ATR{config.ATR_PERIOD} ({series.symbol})")

    swing_high, swing_low = swing_range(series.closes)
    fib618, fib786 = fibonacci_levels(swing_high, swing_low)

    result = Indicators(
        sma20=sma20,
        sma50=sma50,
        atr14=atr,
        atr_pct=atr / live_price,
        swing_high=swing_high,
        swing_low=swing_low,
        fib618=fib618,
        fib786=fib786,
    )
    if not result.is_finite():
        raise IndicatorUnavailableError(f"non-finite indicator for {series.symbol}: {result}")
    return result
