from decimal import Decimal

from src.core.cash import calculate_cash_projection
from src.core.models import SettlementHorizon
from tests.factories import DEFAULT_FX, basket, cash_bucket, fx_trade, order, portfolio_snapshot


def _portfolio():
    return portfolio_snapshot(
        nav_usd="10000000",
        cash_buckets=[cash_bucket("USD", t="800000", t1="900000", t2="1000000")],
    )


def test_projection_nets_pending_equity_and_usd_fx_legs():
    baskets = [
        basket([order("AAPL US", "Buy", "200000"), order("MSFT US", "Sell", "50000")]),
    ]
    trades = [
        fx_trade("USD", "EUR", "100000", "92165.9", trade_id="fx_a"),
        fx_trade("EUR", "USD", "100000", "108500", trade_id="fx_b"),
        fx_trade("EUR", "GBP", "100000", "81395", trade_id="fx_c"),
        fx_trade("USD", "JPY", "50000", "7462686", status="Settled", trade_id="fx_d"),
    ]

    projection = calculate_cash_projection(
        _portfolio(), baskets, trades, DEFAULT_FX, SettlementHorizon.T2
    )

    assert projection.available_cash_usd == Decimal("1000000")
    assert projection.available_cash_pct == Decimal("10")
    assert projection.pending_equity_buys_usd == Decimal("200000")
    assert projection.pending_equity_sells_usd == Decimal("50000")
    assert projection.pending_fx_net_usd == Decimal("8500")
    assert projection.projected_cash_usd == Decimal("858500")
    assert projection.projected_cash_pct == Decimal("8.585")
    assert projection.status == "pending"
    assert projection.settlement_horizon == SettlementHorizon.T2


def test_projection_reads_requested_horizon_only():
    projection = calculate_cash_projection(_portfolio(), [], [], DEFAULT_FX, SettlementHorizon.T)

    assert projection.available_cash_usd == Decimal("800000")
    assert projection.projected_cash_usd == Decimal("800000")
    assert projection.status == "current"


def test_projection_status_routed_wins():
    baskets = [
        basket([order("AAPL US", "Buy", "1000")], basket_id="b1"),
        basket([order("MSFT US", "Buy", "1000")], basket_id="b2", status="Routed"),
    ]

    projection = calculate_cash_projection(
        _portfolio(), baskets, [], DEFAULT_FX, SettlementHorizon.T2
    )

    assert projection.status == "routed"


def test_projection_status_routed_from_order_state():
    baskets = [basket([order("AAPL US", "Buy", "1000")], order_state="routed")]

    projection = calculate_cash_projection(
        _portfolio(), baskets, [], DEFAULT_FX, SettlementHorizon.T2
    )

    assert projection.status == "routed"


def test_projection_status_projected_without_live_equity_flow():
    baskets = [basket([order("AAPL US", "Buy", "1000", do_not_trade=True)])]

    projection = calculate_cash_projection(
        _portfolio(), baskets, [], DEFAULT_FX, SettlementHorizon.T2
    )

    assert projection.pending_equity_buys_usd == Decimal("0")
    assert projection.status == "projected"


def test_projection_with_zero_nav_substitutes_one():
    portfolio = _portfolio().model_copy(update={"nav_usd": Decimal("0")})

    projection = calculate_cash_projection(portfolio, [], [], DEFAULT_FX, SettlementHorizon.T2)

    assert projection.available_cash_pct == Decimal("100000000")
