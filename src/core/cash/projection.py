from decimal import Decimal
from typing import Iterable, List, Mapping

from src.core.cash.ladder import cumulative_cash_at_horizon, live_equity_orders
from src.core.common.numeric import HUNDRED, ZERO, safe_decimal, safe_nav
from src.core.models import (
    Basket,
    CashProjection,
    FxTrade,
    PortfolioSnapshot,
    SettlementHorizon,
)

_ROUTED_BASKET_STATUSES = {"Routed", "PartialFill"}


def pending_fx_net_usd(fx_trades: Iterable[FxTrade]) -> Decimal:
    """Net USD flow of pending FX; only USD-denominated legs count."""
    net = ZERO
    for trade in fx_trades:
        if trade.status != "Pending":
            continue
        if trade.buy_ccy == "USD":
            net += trade.buy_amt
        elif trade.sell_ccy == "USD":
            net -= trade.sell_amt
    return net


def _projection_status(baskets: List[Basket], has_pending_equity: bool) -> str:
    has_routed = any(
        b.order_state == "routed" or b.status in _ROUTED_BASKET_STATUSES for b in baskets
    )
    if has_routed:
        return "routed"
    has_projected = any(b.order_state == "projected" for b in baskets)
    has_pending = any(b.status == "Pending" for b in baskets)
    if has_projected or has_pending:
        return "pending" if has_pending_equity else "projected"
    return "current"


def calculate_cash_projection(
    portfolio: PortfolioSnapshot,
    baskets: Iterable[Basket],
    fx_trades: Iterable[FxTrade],
    fx_rates: Mapping[str, Decimal],
    settlement_horizon: SettlementHorizon,
) -> CashProjection:
    nav = safe_nav(portfolio.nav_usd)
    baskets = list(baskets)

    available = cumulative_cash_at_horizon(portfolio.cash_buckets, settlement_horizon, fx_rates)

    buys = ZERO
    sells = ZERO
    for order in live_equity_orders(baskets):
        if order.side == "Buy":
            buys += safe_decimal(order.notional_usd)
        else:
            sells += safe_decimal(order.notional_usd)

    fx_net = pending_fx_net_usd(fx_trades)
    projected = available - buys + sells + fx_net

    return CashProjection(
        available_cash_usd=available,
        available_cash_pct=available / nav * HUNDRED,
        projected_cash_usd=projected,
        projected_cash_pct=projected / nav * HUNDRED,
        pending_equity_buys_usd=buys,
        pending_equity_sells_usd=sells,
        pending_fx_net_usd=fx_net,
        status=_projection_status(baskets, buys > ZERO or sells > ZERO),
        settlement_horizon=settlement_horizon,
    )
