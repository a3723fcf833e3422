from decimal import Decimal

import pytest

from src.core.common.numeric import fx_to_usd, safe_decimal, safe_nav
from src.core.models import Position
from src.core.valuation import active_weight_bps, revalue_portfolio, value_position
from tests.factories import DEFAULT_FX, cash_bucket, portfolio_snapshot


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, Decimal("0")),
        (float("nan"), Decimal("0")),
        (float("inf"), Decimal("0")),
        ("Infinity", Decimal("0")),
        ("abc", Decimal("0")),
        (True, Decimal("0")),
        (" 12.5 ", Decimal("12.5")),
        (3, Decimal("3")),
        (Decimal("-4.25"), Decimal("-4.25")),
    ],
)
def test_safe_decimal_coerces_malformed_values_to_zero(raw, expected):
    assert safe_decimal(raw) == expected


def test_zero_nav_is_replaced_by_one():
    assert safe_nav(Decimal("0")) == Decimal("1")
    assert safe_nav(None) == Decimal("1")
    assert safe_nav(Decimal("250")) == Decimal("250")


def test_unmapped_or_zero_fx_rate_is_one():
    assert fx_to_usd(DEFAULT_FX, "SEK") == Decimal("1.0")
    assert fx_to_usd({"EUR": Decimal("0")}, "EUR") == Decimal("1.0")
    assert fx_to_usd(DEFAULT_FX, "GBP") == Decimal("1.333")


def test_active_weight_rounds_half_up_to_whole_bps():
    assert active_weight_bps(Decimal("1.333"), Decimal("2")) == Decimal("-67")
    assert active_weight_bps(Decimal("2.005"), Decimal("2")) == Decimal("1")
    assert active_weight_bps(Decimal("10"), Decimal("8")) == Decimal("200")


def test_value_position_derives_market_value_weight_and_active_weight():
    raw = Position(
        ticker="SAP GY",
        currency="EUR",
        quantity=Decimal("1000"),
        price=Decimal("100"),
        index_weight=Decimal("1"),
    )

    valued = value_position(raw, DEFAULT_FX, Decimal("10000000"))

    assert valued.ticker == "SAP GY"
    assert valued.market_value == Decimal("108500")
    assert valued.weight == Decimal("1.085")
    assert valued.diff_bps == Decimal("9")


def test_revalue_portfolio_with_zero_nav_stays_finite():
    portfolio = portfolio_snapshot(
        nav_usd="0",
        positions=[Position(ticker="AAPL US", quantity=Decimal("1"), price=Decimal("10"))],
        cash_buckets=[cash_bucket("USD", t="5")],
    )

    revalued = revalue_portfolio(portfolio, DEFAULT_FX)

    assert revalued.positions[0].market_value == Decimal("10")
    assert revalued.positions[0].weight == Decimal("1000")
    assert revalued.current_cash_usd == Decimal("5")
    assert revalued.current_cash_pct == Decimal("500")


def test_position_fields_fail_soft():
    position = Position.model_validate(
        {"ticker": "BAD US", "quantity": "NaN", "price": None, "weight": "n/a"}
    )

    assert position.quantity == position.price == position.weight == Decimal("0")
