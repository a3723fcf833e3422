"""
FILE: src/core/valuation.py
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

from src.core.cash.ladder import total_cash_usd
from src.core.common.numeric import HUNDRED, fx_to_usd, safe_nav
from src.core.models import PortfolioSnapshot, Position


def active_weight_bps(weight: Decimal, index_weight: Decimal) -> Decimal:
    return ((weight - index_weight) * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def reweight_position(position: Position, market_value: Decimal, nav_usd: Decimal) -> Position:
    """
    Returns a copy carrying `market_value` with weight and active weight
    re-derived against `nav_usd`. The ticker is never changed.
    """
    nav = safe_nav(nav_usd)
    weight = market_value / nav * HUNDRED
    return position.model_copy(
        update={
            "market_value": market_value,
            "weight": weight,
            "diff_bps": active_weight_bps(weight, position.index_weight),
        }
    )


def value_position(
    position: Position, fx_rates: Mapping[str, Decimal], nav_usd: Decimal
) -> Position:
    market_value = position.quantity * position.price * fx_to_usd(fx_rates, position.currency)
    return reweight_position(position, market_value, nav_usd)


def revalue_portfolio(
    portfolio: PortfolioSnapshot, fx_rates: Mapping[str, Decimal]
) -> PortfolioSnapshot:
    """
    Re-derives market values, weights and active weights after quantity, price
    or NAV changes, and refreshes the T-column cash figures.
    """
    cash_usd = total_cash_usd(portfolio.cash_buckets, fx_rates)
    positions = [value_position(p, fx_rates, portfolio.nav_usd) for p in portfolio.positions]
    nav = safe_nav(portfolio.nav_usd)
    return portfolio.model_copy(
        update={
            "positions": positions,
            "current_cash_usd": cash_usd,
            "current_cash_pct": cash_usd / nav * HUNDRED,
        }
    )
