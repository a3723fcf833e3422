from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from src.core.models import RebalanceConfig
from src.core.oms import (
    OrderNotFoundError,
    aggregate_basket_status,
    build_baskets_from_rebalance,
    cancel_basket,
    route_basket,
    toggle_do_not_trade,
)
from src.core.rebalance import calculate_rebalance
from tests.assertions import assert_decimal_close
from tests.factories import DEFAULT_FX, basket, order, portfolio_snapshot, position

CONFIRMED_AT = datetime(2026, 3, 2, 14, 30, tzinfo=timezone.utc)


def _active_result():
    portfolio = portfolio_snapshot(
        positions=[
            position("OVER US", quantity="10000", price="100", index_weight="8"),
            position("UNDER US", quantity="1000", price="100", index_weight="5"),
            position("UNDER2 LN", quantity="10000", price="10", currency="GBP", index_weight="2"),
        ]
    )
    return calculate_rebalance(
        portfolio,
        RebalanceConfig(mode="active", investable_cash=Decimal("500000")),
        DEFAULT_FX,
        trade_date=date(2026, 3, 2),
    )


def test_confirmed_rebalance_becomes_equity_and_fx_baskets():
    result = _active_result()

    baskets, fx_trades = build_baskets_from_rebalance(result, CONFIRMED_AT)

    equity, fx = baskets
    assert equity.basket_type == "Equity"
    assert equity.name == "MSCI World Active Rebalance - 2026-03-02"
    assert equity.timestamp == CONFIRMED_AT.isoformat()
    assert equity.total_notional_usd == result.total_invested + result.total_sold
    assert [o.ticker for o in equity.orders] == [a.ticker for a in result.allocations]
    assert_decimal_close(sum(o.pct_of_basket for o in equity.orders), "100")
    assert all(o.status == "Pending" for o in equity.orders)

    assert fx.basket_type == "FX"
    assert [o.ticker for o in fx.orders] == ["USD/GBP"]
    assert len(fx_trades) == 1
    assert fx_trades[0].trade_id == fx.orders[0].order_id
    assert fx_trades[0].status == "Pending"
    assert fx_trades[0].source == "Rebalance"


def test_empty_rebalance_builds_nothing():
    result = _active_result().model_copy(update={"allocations": [], "fx_orders": []})

    assert build_baskets_from_rebalance(result, CONFIRMED_AT) == ([], [])


def test_toggle_do_not_trade_returns_new_basket():
    original = basket([order("AAPL US", "Buy", "1000", order_id="eq_1")])

    toggled = toggle_do_not_trade(original, "eq_1")

    assert toggled.orders[0].do_not_trade is True
    assert original.orders[0].do_not_trade is False
    assert toggle_do_not_trade(toggled, "eq_1").orders[0].do_not_trade is False


def test_toggle_unknown_order_raises():
    with pytest.raises(OrderNotFoundError):
        toggle_do_not_trade(basket([order("AAPL US", "Buy", "1000")]), "eq_missing")


def test_route_cancels_do_not_trade_and_routes_pending():
    pending = basket(
        [
            order("AAPL US", "Buy", "1000", order_id="eq_1"),
            order("MSFT US", "Buy", "1000", order_id="eq_2", do_not_trade=True),
        ]
    )

    routed = route_basket(pending)

    assert [o.status for o in routed.orders] == ["Routed", "Cancelled"]
    assert routed.status == "Routed"
    assert routed.order_state == "routed"
    assert route_basket(routed) == routed


def test_cancel_basket_cancels_every_order():
    cancelled = cancel_basket(basket([order("AAPL US", "Buy", "1000")]))

    assert cancelled.status == "Cancelled"
    assert {o.status for o in cancelled.orders} == {"Cancelled"}


@pytest.mark.parametrize(
    "statuses, expected",
    [
        (["Pending", "Pending"], "Pending"),
        (["Routed", "Pending"], "Routed"),
        (["Filled", "Routed"], "PartialFill"),
        (["Filled", "Cancelled"], "Filled"),
        (["Cancelled", "Cancelled"], "Cancelled"),
    ],
)
def test_aggregate_basket_status(statuses, expected):
    orders = [
        order(f"T{i} US", "Buy", "100", order_id=f"eq_{i}", status=status)
        for i, status in enumerate(statuses)
    ]

    assert aggregate_basket_status(orders) == expected
