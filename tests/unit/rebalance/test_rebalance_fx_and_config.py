from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.core.models import RebalanceAllocation, RebalanceConfig, SettlementHorizon
from src.core.rebalance import (
    build_rebalance_config,
    generate_fx_orders,
    is_us_equity,
    settlement_bucket_for,
)
from tests.factories import DEFAULT_FX, cash_bucket, portfolio_snapshot

TRADE_DATE = date(2026, 3, 2)


def _buy(ticker: str, currency: str, notional: str, side: str = "Buy") -> RebalanceAllocation:
    return RebalanceAllocation(
        ticker=ticker,
        currency=currency,
        side=side,
        current_weight=Decimal("1"),
        target_weight=Decimal("2"),
        deficit_bps=Decimal("100"),
        allocation=Decimal(notional),
        quantity=Decimal("1"),
        price=Decimal(notional),
        notional_usd=Decimal(notional),
        reason="test",
        settlement_bucket=settlement_bucket_for(ticker),
    )


def test_fx_orders_aggregate_buy_notional_per_currency():
    allocations = [
        _buy("SAP GY", "EUR", "10850"),
        _buy("ASML NA", "EUR", "21700"),
        _buy("VOD LN", "GBP", "99"),
        _buy("AAPL US", "USD", "50000"),
        _buy("NESN SW", "CHF", "11200", side="Sell"),
    ]

    orders = generate_fx_orders(allocations, DEFAULT_FX, True, "WMR", TRADE_DATE)

    assert len(orders) == 1
    order = orders[0]
    assert (order.sell_ccy, order.buy_ccy) == ("USD", "EUR")
    assert order.sell_amt == Decimal("32550")
    assert order.buy_amt == Decimal("30000")
    assert order.fx_rate == Decimal("1.085")
    assert order.execution_type == "WMR"
    assert order.settlement_bucket == SettlementHorizon.T2
    assert order.settle_date == date(2026, 3, 4)
    assert order.status == "Pending"


def test_fx_orders_disabled():
    allocations = [_buy("SAP GY", "EUR", "10850")]

    assert generate_fx_orders(allocations, DEFAULT_FX, False, "SPOT", TRADE_DATE) == []


@pytest.mark.parametrize(
    "ticker, expected",
    [
        ("AAPL US", SettlementHorizon.T1),
        ("SAP GY", SettlementHorizon.T2),
        ("USO", SettlementHorizon.T2),
    ],
)
def test_settlement_bucket_by_listing(ticker, expected):
    assert settlement_bucket_for(ticker) == expected
    assert is_us_equity(ticker) is (expected == SettlementHorizon.T1)


def test_build_rebalance_config_sizes_investable_cash_at_horizon():
    portfolio = portfolio_snapshot(nav_usd="10000000")
    ladder = [
        cash_bucket("USD", t="200000", t1="600000", t2="900000"),
        cash_bucket("EUR", t="0", t1="100000"),
    ]

    config = build_rebalance_config(
        portfolio,
        RebalanceConfig(settlement_horizon=SettlementHorizon.T1, target_cash_pct=Decimal("1")),
        ladder,
        DEFAULT_FX,
    )

    assert config.available_cash == Decimal("708500")
    assert config.investable_cash == Decimal("608500")


def test_config_rejects_horizon_beyond_t2():
    with pytest.raises(ValidationError):
        RebalanceConfig(settlement_horizon="T+3")


def test_config_defaults():
    config = RebalanceConfig()

    assert config.mode == "everything"
    assert config.settlement_horizon == SettlementHorizon.T2
    assert config.target_cash_pct == Decimal("0.5")
    assert config.auto_fx is True
