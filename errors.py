# errors.py
"""Error taxonomy for the entry-price engine.

Every error is terminal for the current computation. Nothing here is retried
or replaced with a default value.
"""


class EngineError(Exception):
    """Base class for all engine failures."""


class InsufficientDataError(EngineError):
    """Too few candles for the required indicator windows."""


class InvalidCandleError(EngineError):
    """Upstream candle payload is not a non-empty array."""


class InvalidPriceError(EngineError):
    """Live price is non-positive or non-finite."""


class IndicatorUnavailableError(EngineError):
    """A computed indicator came out non-finite."""


class MarketDataError(EngineError):
    """The market-data provider could not be reached or returned garbage."""
