("""Tests for indicators module: SMA, ATR, swing range, Fibonacci and trend.

Using pytest function tests for simplicity.
""")

import math

import pytest

from errors import IndicatorUnavailableError, InsufficientDataError, InvalidPriceError
from indicators import (
	calculate_atr,
	calculate_indicators,
	calculate_sma,
	classify_trend,
	fibonacci_levels,
	swing_range,
)
from models import CandleSeries, Trend


def make_series(closes, spread=0.01):
	n = len(closes)
	return CandleSeries(
		symbol="TEST",
		open_times=tuple(range(n)),
		highs=tuple(c * (1 + spread) for c in closes),
		lows=tuple(c * (1 - spread) for c in closes),
		closes=tuple(closes),
	)


def test_sma_basic():
	values = [1, 2, 3, 4, 5]
	assert calculate_sma(values, period=5) == 3.0
	assert calculate_sma(values, period=2) == 4.5


def test_sma_insufficient_data_is_undefined():
	assert calculate_sma([1.0, 2.0, 3.0], period=10) is None
	assert calculate_sma([], period=1) is None


def test_sma_rejects_bad_period():
	with pytest.raises(ValueError):
		calculate_sma([1.0], period=0)


def test_atr_matches_manual_true_range():
	highs = [10.0, 12.0, 11.0, 15.0]
	lows = [9.0, 10.0, 8.0, 12.0]
	closes = [9.5, 11.0, 9.0, 14.0]
	# TR1 = max(2, |12-9.5|, |10-9.5|) = 2.5
	# TR2 = max(3, |11-11|, |8-11|) = 3
	# TR3 = max(3, |15-9|, |12-9|) = 6
	assert calculate_atr(highs, lows, closes, period=3) == pytest.approx((2.5 + 3 + 6) / 3)
	assert calculate_atr(highs, lows, closes, period=2) == pytest.approx((3 + 6) / 2)


def test_atr_needs_period_plus_one_rows():
	rows = [1.0] * 14
	assert calculate_atr(rows, rows, rows, period=14) is None
	rows = [1.0] * 15
	assert calculate_atr(rows, rows, rows, period=14) == 0.0


def test_fibonacci_levels_example():
	fib618, fib786 = fibonacci_levels(120.0, 80.0)
	assert math.isclose(fib618, 95.28, rel_tol=1e-9)
	assert math.isclose(fib786, 88.56, rel_tol=1e-9)


def test_fibonacci_levels_sit_inside_swing_range():
	high, low = 3.7, 1.2
	fib618, fib786 = fibonacci_levels(high, low)
	assert low <= fib786 <= fib618 <= high


def test_swing_range_uses_closes():
	assert swing_range([3.0, 1.0, 7.0, 2.0]) == (7.0, 1.0)


def test_trend_strictly_up_only():
	assert classify_trend(1.01, 1.0) is Trend.UP
	assert classify_trend(1.0, 1.01) is Trend.DOWN
	# Ties fall to DOWN
	assert classify_trend(1.0, 1.0) is Trend.DOWN


def test_trend_is_reproducible_for_fixed_closes():
	closes = [100.0 + math.sin(i / 5.0) * 3 + i * 0.05 for i in range(90)]
	series = make_series(closes)
	results = {calculate_indicators(series, 104.0) for _ in range(5)}
	assert len(results) == 1
	ind = results.pop()
	expected = Trend.UP if ind.sma20 > ind.sma50 else Trend.DOWN
	assert classify_trend(ind.sma20, ind.sma50) is expected


def test_calculate_indicators_full_bundle():
	closes = [float(i) for i in range(1, 61)]  # 1..60
	series = make_series(closes, spread=0.0)
	ind = calculate_indicators(series, live_price=60.0)
	assert ind.sma20 == pytest.approx(sum(range(41, 61)) / 20)
	assert ind.sma50 == pytest.approx(sum(range(11, 61)) / 50)
	# zero spread: TR is the one-unit gap from the previous close
	assert ind.atr14 == pytest.approx(1.0)
	assert ind.atr_pct == pytest.approx(1.0 / 60.0)
	assert (ind.swing_high, ind.swing_low) == (60.0, 1.0)
	assert ind.fib618 == pytest.approx(60.0 - 59.0 * 0.618)
	assert ind.fib786 == pytest.approx(60.0 - 59.0 * 0.786)


def test_calculate_indicators_fails_without_sma50_history():
	series = make_series([1.0] * 49)
	with pytest.raises(InsufficientDataError):
		calculate_indicators(series, live_price=1.0)


def test_calculate_indicators_rejects_bad_live_price():
	series = make_series([1.0] * 60)
	with pytest.raises(InvalidPriceError):
		calculate_indicators(series, live_price=0.0)
	with pytest.raises(InvalidPriceError):
		calculate_indicators(series, live_price=float("nan"))


def test_calculate_indicators_rejects_non_finite_result():
	closes = [1.0] * 59 + [1e308]
	series = make_series(closes, spread=0.9)
	# high of the last candle overflows to inf, so ATR is non-finite
	with pytest.raises(IndicatorUnavailableError):
		calculate_indicators(series, live_price=1.0)
