from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from tests.factories import cash_bucket, custodian_position, portfolio_snapshot, position


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def get_valid_payload() -> dict:
    portfolio = portfolio_snapshot(
        positions=[position("AAPL US", quantity="10000", price="200")],
        cash_buckets=[cash_bucket("USD", t="1000000")],
        admin_nav=Decimal("2990000"),
    )
    return {
        "portfolio": portfolio.model_dump(mode="json"),
        "custodian_positions": [
            custodian_position("AAPL US", "10000", "200.5").model_dump(mode="json")
        ],
        "custodian_cash_usd": "1000000",
    }


def test_shadow_card_bridge_sums_to_delta(client):
    response = client.post("/nav/shadow-card", json=get_valid_payload())

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["shadow_nav"]) == Decimal("3000000")
    assert Decimal(body["delta_usd"]) == Decimal("10000")
    labels = [item["label"] for item in body["bridge"]]
    assert labels == ["Price Effect", "Mgmt Fee Accrual", "Residual"]
    hidden = [item["label"] for item in body["hidden_items"]]
    assert hidden == ["FX Effect", "Cash/Timing"]
    total = sum(Decimal(i["value_usd"]) for i in body["bridge"] + body["hidden_items"])
    assert abs(total - Decimal(body["delta_usd"])) < Decimal("0.000001")


def test_nav_feature_flag(client, monkeypatch):
    monkeypatch.setenv("COCKPIT_NAV_ENABLED", "false")

    assert client.post("/nav/shadow-card", json=get_valid_payload()).status_code == 404
