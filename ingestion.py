# ingestion.py
"""Series ingestion: turn a raw daily OHLC payload into a typed ``CandleSeries``.

Accepted row shapes:
- exchange kline arrays ``[openTime, open, high, low, close, volume, ...]``
  (numeric strings are fine, that is how MEXC sends them)
- mappings with ``open_time``/``openTime``, ``high``, ``low``, ``close`` keys
- ``Candle`` instances

Rows whose high, low or close is missing, unparseable or non-finite are
dropped. The remaining rows must cover ``min(60, lookback_days)`` days,
otherwise ``InsufficientDataError`` is raised.
"""

import csv
import logging
import math
import os
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple

import config
from errors import InsufficientDataError, InvalidCandleError
from models import Candle, CandleSeries

logger = logging.getLogger(__name__)


def validate_lookback(lookback_days: int) -> int:
    if isinstance(lookback_days, bool) or not isinstance(lookback_days, (int, float)):
        raise ValueError(f"lookback_days must be a number, got {lookback_days!r}")
    if not math.isfinite(lookback_days) or not (
        config.MIN_LOOKBACK_DAYS <= lookback_days <= config.MAX_LOOKBACK_DAYS
    ):
        raise ValueError(
            f"invalid lookback_days ({config.MIN_LOOKBACK_DAYS}..{config.MAX_LOOKBACK_DAYS}): {lookback_days}"
        )
    return int(lookback_days)


def _to_float(val: Any) -> Optional[float]:
    if val is None or isinstance(val, bool):
        return None
    try:
        out = float(val)
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def _to_int(val: Any) -> int:
    f = _to_float(val)
    return int(f) if f is not None else 0


def _parse_row(row: Any) -> Optional[Tuple[int, float, float, float]]:
    """Return (open_time, high, low, close) or None for an unusable row."""
    if isinstance(row, Candle):
        open_time, h, l, c = row.open_time, row.high, row.low, row.close
    elif isinstance(row, Mapping):
        open_time = row.get("open_time", row.get("openTime"))
        h, l, c = row.get("high"), row.get("low"), row.get("close")
    elif isinstance(row, (list, tuple)):
        if len(row) < 5:
            return None
        open_time, h, l, c = row[0], row[2], row[3], row[4]
    else:
        return None

    high, low, close = _to_float(h), _to_float(l), _to_float(c)
    if high is None or low is None or close is None:
        return None
    return _to_int(open_time), high, low, close


def ingest_series(symbol: str, lookback_days: int, raw: Any) -> CandleSeries:
    """Normalize ``raw`` (oldest first) into parallel high/low/close arrays."""
    lookback_days = validate_lookback(lookback_days)

    if not isinstance(raw, (list, tuple)) or len(raw) == 0:
        raise InvalidCandleError(f"no candles returned for {symbol}")

    parsed = [p for p in (_parse_row(r) for r in raw) if p is not None]
    dropped = len(raw) - len(parsed)
    if dropped:
        logger.debug("dropped %d unusable candles for %s", dropped, symbol)

    required = min(config.MIN_LOOKBACK_DAYS, lookback_days)
    if len(parsed) < required:
        raise InsufficientDataError(
            f"Not enough candles for {symbol}. got={len(parsed)} need={required}"
        )

    # Keep only the trailing window if the provider sent more than asked for
    parsed = parsed[-lookback_days:]

    return CandleSeries(
        symbol=symbol,
        open_times=tuple(p[0] for p in parsed),
        highs=tuple(p[1] for p in parsed),
        lows=tuple(p[2] for p in parsed),
        closes=tuple(p[3] for p in parsed),
    )


# --- CSV ingestion ---

def read_ohlcv_csv(path: str) -> List[Candle]:
    """Read an OHLCV CSV and return candles in ascending time order.

    Expected columns (header order flexible):
    - timestamp (or time, datetime, open_time): epoch seconds/milliseconds or ISO8601
    - open, high, low, close, volume (volume optional)
    """
    if not os.path.exists(path):
        raise FileNotFoundError(path)

    candles: List[Candle] = []
    with open(path, "r", newline="") as f:
        reader = csv.reader(f)
        header = [h.strip().lower() for h in next(reader, [])]
        missing = [col for col in ("open", "high", "low", "close") if col not in header]
        if missing:
            raise InvalidCandleError(f"{path}: missing columns {missing}")

        ts_idx = next(
            (i for i, h in enumerate(header) if h in ("timestamp", "time", "datetime", "open_time")), 0
        )
        idx = {col: header.index(col) for col in ("open", "high", "low", "close")}
        vol_idx = header.index("volume") if "volume" in header else None

        for row in reader:
            if not row:
                continue
            try:
                ts = _parse_timestamp(row[ts_idx])
                values = {col: float(row[i]) for col, i in idx.items()}
                volume = float(row[vol_idx]) if vol_idx is not None else 0.0
            except (IndexError, ValueError):
                logger.debug("skipping malformed CSV row in %s: %r", path, row)
                continue
            candles.append(Candle(open_time=int(ts.timestamp() * 1000), volume=volume, **values))

    candles.sort(key=lambda c: c.open_time)
    return candles


def _parse_timestamp(val: str) -> datetime:
    val = val.strip()
    try:
        num = float(val)
    except ValueError:
        num = None
    if num is not None:
        # Treat large values as epoch milliseconds
        if num > 1e11:
            num /= 1000.0
        return datetime.fromtimestamp(num, tz=timezone.utc)
    try:
        ts = datetime.fromisoformat(val.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Unrecognized timestamp: {val}")
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def ingest_csv(symbol: str, lookback_days: int, path: str) -> CandleSeries:
    return ingest_series(symbol, lookback_days, read_ohlcv_csv(path))
