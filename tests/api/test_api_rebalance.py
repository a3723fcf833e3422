"""
FILE: tests/api/test_api_rebalance.py
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from tests.factories import cash_bucket, portfolio_snapshot, position


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def get_valid_payload(mode: str = "everything") -> dict:
    portfolio = portfolio_snapshot(
        current_cash_usd="1000000",
        positions=[
            position("AAPL US", quantity="100", price="1300", index_weight="60"),
            position("MSFT US", quantity="100", price="9000", index_weight="40"),
        ],
        cash_buckets=[cash_bucket("USD", t="400000", t1="1000000")],
    )
    return {
        "portfolio": portfolio.model_dump(mode="json"),
        "config": {"mode": mode, "settlement_horizon": "T+1", "target_cash_pct": "0.5"},
        "trade_date": "2026-03-02",
    }


def test_calculate_sizes_cash_from_ladder_and_allocates(client):
    response = client.post("/rebalance/calculate", json=get_valid_payload())

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["total_invested"]) == Decimal("950000")
    assert Decimal(body["residual"]) == Decimal("0")
    assert [a["ticker"] for a in body["allocations"]] == ["AAPL US", "MSFT US"]
    assert body["allocations"][0]["settlement_bucket"] == "T+1"
    assert body["summary"]["top_reasons"][0] == "Pro-rata to benchmark weights"


def test_calculate_layers_pending_activity_before_sizing(client):
    payload = get_valid_payload()
    payload["baskets"] = [
        {
            "basket_id": "basket_eq_1",
            "orders": [
                {
                    "order_id": "eq_1",
                    "ticker": "NVDA US",
                    "side": "Buy",
                    "notional_usd": "500000",
                    "settlement_bucket": "T+1",
                }
            ],
        }
    ]

    response = client.post("/rebalance/calculate", json=payload)

    assert response.status_code == 200
    assert Decimal(response.json()["total_invested"]) <= Decimal("450000")


def test_selected_mode_requires_tickers(client):
    response = client.post("/rebalance/calculate", json=get_valid_payload("selected"))

    assert response.status_code == 422
    assert response.json()["detail"] == "REBALANCE_SELECTION_REQUIRED"


def test_selected_mode_with_tickers(client):
    payload = get_valid_payload("selected")
    payload["selected_tickers"] = ["MSFT US"]

    response = client.post("/rebalance/calculate", json=payload)

    assert response.status_code == 200
    assert [a["ticker"] for a in response.json()["allocations"]] == ["MSFT US"]


def test_horizon_beyond_t2_is_rejected(client):
    payload = get_valid_payload()
    payload["config"]["settlement_horizon"] = "T+5"

    response = client.post("/rebalance/calculate", json=payload)

    assert response.status_code == 422


def test_rebalance_feature_flag_disables_endpoint(client, monkeypatch):
    monkeypatch.setenv("COCKPIT_REBALANCE_ENABLED", "false")

    response = client.post("/rebalance/calculate", json=get_valid_payload())

    assert response.status_code == 404
    assert response.json()["detail"] == "COCKPIT_REBALANCE_DISABLED"


def test_data_quality_sizes_config_before_checking(client):
    portfolio = portfolio_snapshot(
        current_cash_usd="1000000",
        current_cash_pct=Decimal("10"),
        positions=[position("AAPL US", quantity="45000", price="200", index_weight="100")],
        cash_buckets=[cash_bucket("USD", t="1000000"), cash_bucket("CHF", t="-2500")],
    )

    response = client.post(
        "/rebalance/data-quality", json={"portfolio": portfolio.model_dump(mode="json")}
    )

    assert response.status_code == 200
    body = response.json()
    statuses = {c["name"]: c["status"] for c in body["checks"]}
    assert statuses == {
        "No NaN values": "passed",
        "Weights sanity": "passed",
        "Cash ladder valid": "failed",
        "Cash cap enforced": "passed",
    }
    assert body["overall_status"] == "failed"
