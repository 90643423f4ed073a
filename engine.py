# engine.py
"""Entry-price suggestion pipeline.

ingest -> indicators -> trend -> entries, all within one call. No state is
kept between calls, so the same inputs always give the same result (apart from
the week key, which depends on ``now``).
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional

import config
from entries import dip_sizes, synthesize_entries
from errors import InvalidPriceError
from indicators import calculate_indicators, classify_trend
from ingestion import ingest_series
from models import EngineResult

logger = logging.getLogger(__name__)


def clamp_discount(pct: Optional[float]) -> float:
    """User discount in percent: missing/non-numeric -> 0, otherwise clamped to [0, 50]."""
    if pct is None or isinstance(pct, bool) or not isinstance(pct, (int, float)):
        return 0.0
    if math.isnan(pct):
        return 0.0
    return max(0.0, min(config.MAX_DISCOUNT_PCT, float(pct)))


def iso_week_key(dt: Optional[datetime] = None) -> str:
    """ISO-8601 week identifier ``YYYY-Www`` for ``dt`` in UTC."""
    if dt is None:
        dt = datetime.now(timezone.utc)
    elif dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    year, week, _ = dt.isocalendar()
    return f"{year}-W{week:02d}"


def compute_entry_suggestions(
    symbol: str,
    candles: Any,
    live_price: float,
    user_discount_pct: Optional[float] = None,
    lookback_days: int = config.DEFAULT_LOOKBACK_DAYS,
    now: Optional[datetime] = None,
) -> EngineResult:
    """Run the full pipeline for one symbol.

    ``candles`` is the provider's daily OHLC payload, oldest first. Raises one of
    the ``errors.EngineError`` subclasses instead of returning a partial result.
    """
    if isinstance(live_price, bool) or not isinstance(live_price, (int, float)):
        raise InvalidPriceError(f"invalid live price: {live_price!r}")
    if not math.isfinite(live_price) or live_price <= 0:
        raise InvalidPriceError(f"invalid live price: {live_price}")
    live_price = float(live_price)

    series = ingest_series(symbol, lookback_days, candles)
    ind = calculate_indicators(series, live_price)
    trend = classify_trend(ind.sma20, ind.sma50)
    discount = clamp_discount(user_discount_pct)
    entries = synthesize_entries(trend, ind, live_price, discount)

    logger.info(
        "calc %s",
        {
            "symbol": symbol,
            "live_price": live_price,
            "trend": trend.value,
            "sma20": ind.sma20,
            "sma50": ind.sma50,
            "atr": ind.atr14,
            "atr_pct": ind.atr_pct,
            "swing_high": ind.swing_high,
            "swing_low": ind.swing_low,
            "fib618": ind.fib618,
            "fib786": ind.fib786,
            "dips": dip_sizes(trend, ind.atr_pct),
            "user_discount_pct": discount,
            "entries": [e.price for e in entries],
        },
    )

    return EngineResult(
        symbol=symbol,
        trend=trend,
        sma20=ind.sma20,
        sma50=ind.sma50,
        atr14=ind.atr14,
        atr_pct=ind.atr_pct,
        swing_high=ind.swing_high,
        swing_low=ind.swing_low,
        fib618=ind.fib618,
        fib786=ind.fib786,
        entries=entries,
        live_price=live_price,
        user_discount_pct=discount,
        computed_at_week_key=iso_week_key(now),
    )
