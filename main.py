# main.py
import logging
from contextlib import asynccontextmanager
from typing import Union

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status

import config
from engine import compute_entry_suggestions, iso_week_key
from entries import reached_entries
from errors import (
    EngineError,
    IndicatorUnavailableError,
    InsufficientDataError,
    InvalidCandleError,
    InvalidPriceError,
    MarketDataError,
)
from ingestion import validate_lookback
from market_data import MarketDataProvider, MexcMarketData
from market_stub import StubMarketData
from models import (
    DiscountSettings,
    EngineResult,
    EntryRequest,
    EntryStatusResponse,
    SkippedResponse,
    SuggestionStore,
    UserSettingsStore,
)

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Shared in-process stores. Each engine call itself is stateless.
SUGGESTIONS = SuggestionStore()
USER_SETTINGS = UserSettingsStore()

ERROR_STATUS = {
    InsufficientDataError: 422,
    InvalidCandleError: status.HTTP_502_BAD_GATEWAY,
    InvalidPriceError: status.HTTP_502_BAD_GATEWAY,
    MarketDataError: status.HTTP_502_BAD_GATEWAY,
    IndicatorUnavailableError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the market-data client on startup and close it on shutdown."""
    if config.MARKET_DATA_PROVIDER == "stub":
        app.state.market_data = StubMarketData()
    else:
        app.state.market_data = MexcMarketData()
    logger.info("market data provider: %s", type(app.state.market_data).__name__)
    try:
        yield
    finally:
        if isinstance(app.state.market_data, MexcMarketData):
            await app.state.market_data.aclose()


app = FastAPI(title="Entry Suggestion Service", lifespan=lifespan)


def get_market_data(request: Request) -> MarketDataProvider:
    return request.app.state.market_data


def get_user_settings() -> UserSettingsStore:
    return USER_SETTINGS


def get_suggestions() -> SuggestionStore:
    return SUGGESTIONS


def to_http_error(exc: EngineError) -> HTTPException:
    code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=code, detail=str(exc))


def normalize_symbol(symbol: str) -> str:
    sym = symbol.strip().upper()
    if not sym:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="symbol missing")
    return sym


# --- POST /entry ---

@app.post("/entry", response_model=Union[EngineResult, SkippedResponse], tags=["Entry"])
async def compute_entry(
    req: EntryRequest,
    market_data: MarketDataProvider = Depends(get_market_data),
    settings: UserSettingsStore = Depends(get_user_settings),
    suggestions: SuggestionStore = Depends(get_suggestions),
):
    """Recompute EX1/EX2/EX3 for a symbol, at most once per ISO week unless forced."""
    symbol = normalize_symbol(req.symbol)
    try:
        lookback_days = validate_lookback(req.lookback_days)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    week_key = iso_week_key()
    previous = suggestions.get(req.user_id, symbol)
    if not req.force and previous is not None and previous.computed_at_week_key == week_key:
        logger.info("skip %s for %s: already computed in %s", symbol, req.user_id, week_key)
        return SkippedResponse(week_key=week_key)

    try:
        live_price = await market_data.get_live_price(symbol)
        candles = await market_data.get_daily_candles(symbol, lookback_days)
        result = compute_entry_suggestions(
            symbol,
            candles,
            live_price,
            user_discount_pct=settings.get_discount_pct(req.user_id),
            lookback_days=lookback_days,
        )
    except EngineError as exc:
        logger.warning("entry computation failed for %s: %s", symbol, exc)
        raise to_http_error(exc)

    suggestions.put(req.user_id, result)
    return result


# --- GET /entry/{symbol} ---

@app.get("/entry/{symbol}", response_model=EngineResult, tags=["Entry"])
async def get_entry(
    symbol: str,
    user_id: str = Query("default", alias="userId"),
    suggestions: SuggestionStore = Depends(get_suggestions),
):
    result = suggestions.get(user_id, normalize_symbol(symbol))
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No entries for {symbol}.")
    return result


@app.get("/entry/{symbol}/status", response_model=EntryStatusResponse, tags=["Entry"])
async def get_entry_status(
    symbol: str,
    user_id: str = Query("default", alias="userId"),
    market_data: MarketDataProvider = Depends(get_market_data),
    suggestions: SuggestionStore = Depends(get_suggestions),
):
    """Which stored entries the current live price has reached."""
    sym = normalize_symbol(symbol)
    result = suggestions.get(user_id, sym)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No entries for {symbol}.")
    try:
        live_price = await market_data.get_live_price(sym)
        reached = reached_entries(live_price, result.entries)
    except EngineError as exc:
        raise to_http_error(exc)
    return EntryStatusResponse(symbol=sym, live_price=live_price, reached=reached, entries=result.entries)


# --- PUT /settings/{user_id} ---

@app.put("/settings/{user_id}", response_model=DiscountSettings, tags=["Settings"])
async def put_settings(
    user_id: str,
    body: DiscountSettings,
    settings: UserSettingsStore = Depends(get_user_settings),
):
    settings.set_discount_pct(user_id, body.discount_pct)
    return DiscountSettings(discount_pct=settings.get_discount_pct(user_id))
