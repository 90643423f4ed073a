"""Endpoint tests for the entry suggestion service.

Covers:
- POST /entry computes, stores and returns EX1/EX2/EX3, then skips within the same week.
- force=true recomputes; the user's discount setting is applied.
- Engine errors map to HTTP status codes.
- GET /entry/{symbol} and /entry/{symbol}/status.

We use httpx.AsyncClient for the async test and FastAPI TestClient for the rest.
The market-data dependency is replaced by the deterministic stub.
"""

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from main import SUGGESTIONS, USER_SETTINGS, app, get_market_data
from market_stub import StubMarketData


@pytest.fixture
def stub():
	md = StubMarketData(seed=42)
	app.dependency_overrides[get_market_data] = lambda: md
	SUGGESTIONS.clear()
	yield md
	app.dependency_overrides.clear()
	SUGGESTIONS.clear()
	USER_SETTINGS.set_discount_pct("alice", None)


@pytest.mark.asyncio
async def test_post_entry_returns_structure(stub):
	# Manually run lifespan so startup wiring is exercised with AsyncClient
	async with app.router.lifespan_context(app):
		transport = ASGITransport(app=app)
		async with AsyncClient(transport=transport, base_url="http://test") as client:
			resp = await client.post("/entry", json={"symbol": " btc ", "lookbackDays": 90})
			assert resp.status_code == 200, resp.text
			data = resp.json()
			assert data["symbol"] == "BTC"
			assert data["trend"] in {"UP", "DOWN"}
			assert {"sma20", "sma50", "atr14", "atrPct", "swingHigh", "swingLow", "fib618", "fib786",
					"livePrice", "computedAtWeekKey"}.issubset(data.keys())
			names = [e["name"] for e in data["entries"]]
			assert names == ["EX1", "EX2", "EX3"]
			for e in data["entries"]:
				assert e["price"] < data["livePrice"] * 0.995


def test_second_call_in_same_week_is_skipped(stub):
	with TestClient(app) as client:
		first = client.post("/entry", json={"symbol": "ETH"})
		assert first.status_code == 200, first.text
		week = first.json()["computedAtWeekKey"]

		second = client.post("/entry", json={"symbol": "eth"})
		assert second.status_code == 200
		assert second.json() == {"ok": True, "skipped": True, "weekKey": week}

		forced = client.post("/entry", json={"symbol": "ETH", "force": True})
		assert forced.status_code == 200
		assert "entries" in forced.json()

		# other users are throttled independently
		other = client.post("/entry", json={"symbol": "ETH", "userId": "bob"})
		assert "entries" in other.json()


def test_user_discount_setting_is_applied(stub):
	with TestClient(app) as client:
		base = client.post("/entry", json={"symbol": "SOL"}).json()

		resp = client.put("/settings/alice", json={"discountPct": 90})
		assert resp.status_code == 200
		assert resp.json() == {"discountPct": 90}

		discounted = client.post("/entry", json={"symbol": "SOL", "userId": "alice"}).json()
		# stored value is clamped by the engine
		assert discounted["userDiscountPct"] == 50.0
		for b, d in zip(base["entries"], discounted["entries"]):
			assert d["price"] == pytest.approx(b["price"] * 0.5)


@pytest.mark.parametrize("body", [{"symbol": "  "}, {"symbol": "BTC", "lookbackDays": 30},
								  {"symbol": "BTC", "lookbackDays": 400}])
def test_bad_requests(stub, body):
	with TestClient(app) as client:
		assert client.post("/entry", json=body).status_code == 400


def test_engine_errors_map_to_status_codes(stub):
	with TestClient(app) as client:
		stub.history_days = 30
		resp = client.post("/entry", json={"symbol": "NEW"})
		assert resp.status_code == 422
		assert "Not enough candles" in resp.json()["detail"]

		stub.history_days = 365
		stub.live_overrides["DEAD"] = 0.0
		assert client.post("/entry", json={"symbol": "DEAD"}).status_code == 502

		# nothing stored for failed calls
		assert client.get("/entry/NEW").status_code == 404


def test_get_entry_and_status(stub):
	with TestClient(app) as client:
		assert client.get("/entry/ADA").status_code == 404

		computed = client.post("/entry", json={"symbol": "ADA"}).json()
		stored = client.get("/entry/ada")
		assert stored.status_code == 200
		assert stored.json() == computed

		status_resp = client.get("/entry/ADA/status").json()
		assert status_resp["reached"] == []

		ex2 = computed["entries"][1]["price"]
		stub.live_overrides["ADA"] = ex2
		status_resp = client.get("/entry/ADA/status").json()
		assert status_resp["livePrice"] == ex2
		assert status_resp["reached"] == ["EX1", "EX2"]
