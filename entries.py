# entries.py
"""Entry synthesizer: three graduated buy-the-dip prices under the live price.

Dip sizes branch on trend. Uptrends assume shallow pullbacks, downtrends deeper
ones; both scale with ATR% above a fixed floor:

    level   UP                      DOWN
    dip1    max(3%,  atr% * 1.2)    max(7%,  atr% * 2.0)
    dip2    max(6%,  atr% * 2.0)    max(12%, atr% * 3.0)
    dip3    max(10%, atr% * 3.0)    max(18%, atr% * 4.0)

Each volatility price is then capped by a support level (fib 61.8%/78.6%,
swing low), discounted by the user's extra haircut and held at least
``MIN_UNDER_LIVE`` under live.
"""

import logging
import math
from typing import Dict, List, Sequence, Tuple

import config
from errors import IndicatorUnavailableError, InvalidPriceError
from models import EntrySuggestion, Indicators, Trend

logger = logging.getLogger(__name__)

# (floor, atr multiplier) for dip1..dip3
DIP_POLICY: Dict[Trend, Tuple[Tuple[float, float], ...]] = {
    Trend.UP: ((0.03, 1.2), (0.06, 2.0), (0.10, 3.0)),
    Trend.DOWN: ((0.07, 2.0), (0.12, 3.0), (0.18, 4.0)),
}

ENTRY_NAMES = ("EX1", "EX2", "EX3")


def dip_sizes(trend: Trend, atr_pct: float) -> Tuple[float, float, float]:
    """Fraction of live price to subtract for the near, mid and deep entry."""
    policy = DIP_POLICY[Trend(trend)]
    dip1, dip2, dip3 = (max(floor, atr_pct * mult) for floor, mult in policy)
    return dip1, dip2, dip3


def pct_under_live(price: float, live_price: float) -> float:
    return (1.0 - price / live_price) * 100.0


def synthesize_entries(
    trend: Trend,
    indicators: Indicators,
    live_price: float,
    user_discount_pct: float = 0.0,
) -> List[EntrySuggestion]:
    """Build EX1/EX2/EX3 for one computation.

    ``user_discount_pct`` is expected already clamped to [0, 50].
    The result is ordered EX1 >= EX2 >= EX3 by price.
    """
    if not math.isfinite(live_price) or live_price <= 0:
        raise InvalidPriceError(f"invalid live price: {live_price}")
    if not indicators.is_finite():
        raise IndicatorUnavailableError(f"non-finite indicator: {indicators}")

    dip1, dip2, dip3 = dip_sizes(trend, indicators.atr_pct)

    # Price already under 61.8% means that level is broken; use 78.6% instead
    support_mid = indicators.fib618 if live_price > indicators.fib618 else indicators.fib786

    raw = (
        min(live_price * (1 - dip1), support_mid),
        min(live_price * (1 - dip2), indicators.fib786),
        min(live_price * (1 - dip3), indicators.swing_low),
    )

    max_allowed = live_price * (1 - config.MIN_UNDER_LIVE)
    disc_mul = 1 - user_discount_pct / 100.0

    # Dips past 100% (extreme ATR) would go negative; zero is the floor
    prices = [max(0.0, min(r * disc_mul, max_allowed)) for r in raw]

    # Support caps can reorder levels in edge cases
    if prices != sorted(prices, reverse=True):
        logger.warning("entry levels out of order %s, re-sorting", prices)
        prices.sort(reverse=True)

    logger.debug(
        "dips=%s support_mid=%s raw=%s disc_mul=%s", (dip1, dip2, dip3), support_mid, raw, disc_mul
    )

    return [
        EntrySuggestion(name=name, price=price, pct_under_live=pct_under_live(price, live_price))
        for name, price in zip(ENTRY_NAMES, prices)
    ]


def reached_entries(live_price: float, entries: Sequence[EntrySuggestion]) -> List[str]:
    """Names of the entries the live price has traded down to (live <= entry)."""
    if not math.isfinite(live_price) or live_price <= 0:
        raise InvalidPriceError(f"invalid live price: {live_price}")
    return [e.name for e in entries if e.price > 0 and live_price <= e.price]
