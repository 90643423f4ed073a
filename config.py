# config.py
"""Runtime configuration, read once from the environment."""
import os

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Market data: "mexc" for the live exchange, "stub" for synthetic candles
MARKET_DATA_PROVIDER = os.getenv("MARKET_DATA_PROVIDER", "mexc").lower()
MEXC_API_URL = os.getenv("MEXC_API_URL", "https://api.mexc.com")
MEXC_QUOTE_ASSET = os.getenv("MEXC_QUOTE_ASSET", "USDT").upper()
HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT_S", "10"))

# Requests
DEFAULT_LOOKBACK_DAYS = int(os.getenv("DEFAULT_LOOKBACK_DAYS", "90"))

# Engine constants (not environment driven)
MIN_LOOKBACK_DAYS = 60
MAX_LOOKBACK_DAYS = 365
SMA_FAST_PERIOD = 20
SMA_SLOW_PERIOD = 50
ATR_PERIOD = 14
FIB_RATIO_618 = 0.618
FIB_RATIO_786 = 0.786
MIN_UNDER_LIVE = 0.005  # entries stay at least 0.5% under live
MAX_DISCOUNT_PCT = 50.0
