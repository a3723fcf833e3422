"""
Order baskets built from a confirmed rebalance, and the basket-level actions the
order blotter exposes. Every action returns a new basket.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Tuple

from src.core.common.numeric import HUNDRED, ZERO
from src.core.models import Basket, FxTrade, Order, OrderStatus, RebalanceResult

logger = logging.getLogger(__name__)


class OrderNotFoundError(Exception):
    pass


def _uid(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def aggregate_basket_status(orders: Iterable[Order]) -> OrderStatus:
    """Coarsened basket status; do-not-trade orders are ignored."""
    live = [o for o in orders if not o.do_not_trade]
    if not live or all(o.status == "Cancelled" for o in live):
        return "Cancelled"
    active = [o for o in live if o.status != "Cancelled"]
    if all(o.status == "Filled" for o in active):
        return "Filled"
    if any(o.status in ("PartialFill", "Filled") or o.fill_pct > ZERO for o in active):
        return "PartialFill"
    if any(o.status == "Routed" for o in active):
        return "Routed"
    return "Pending"


def _basket_fill_pct(orders: Iterable[Order]) -> Decimal:
    live = [o for o in orders if not o.do_not_trade and o.status != "Cancelled"]
    total = sum((o.notional_usd for o in live), ZERO)
    if total == ZERO:
        return ZERO
    return sum((o.notional_usd * o.fill_pct for o in live), ZERO) / total


def build_baskets_from_rebalance(
    result: RebalanceResult,
    timestamp: datetime,
    benchmark: str = "MSCI World",
) -> Tuple[List[Basket], List[FxTrade]]:
    if not result.allocations:
        return [], []

    stamp = timestamp.isoformat()
    day = timestamp.date().isoformat()
    baskets: List[Basket] = []

    total_notional = result.total_invested + result.total_sold
    orders = [
        Order(
            order_id=_uid("eq"),
            ticker=a.ticker,
            side=a.side,
            order_type="Equity",
            currency=a.currency,
            quantity=a.quantity,
            notional_usd=a.notional_usd,
            pct_of_basket=(
                a.notional_usd / total_notional * HUNDRED if total_notional > ZERO else ZERO
            ),
            settlement_bucket=a.settlement_bucket,
        )
        for a in result.allocations
    ]
    has_sells = any(a.side == "Sell" for a in result.allocations)
    label = "Active Rebalance" if has_sells else "Rebalance"
    baskets.append(
        Basket(
            basket_id=_uid("basket_eq"),
            name=f"{benchmark} {label} - {day}",
            timestamp=stamp,
            basket_type="Equity",
            orders=orders,
            total_notional_usd=total_notional,
        )
    )

    fx_trades = [
        FxTrade(trade_id=_uid("fx"), **fx.model_dump()) for fx in result.fx_orders
    ]
    if fx_trades:
        baskets.append(
            Basket(
                basket_id=_uid("basket_fx"),
                name=f"FX Rebalance - {day}",
                timestamp=stamp,
                basket_type="FX",
                orders=[
                    Order(
                        order_id=t.trade_id,
                        ticker=f"{t.sell_ccy}/{t.buy_ccy}",
                        side="Buy",
                        order_type="FX",
                        currency=t.buy_ccy,
                        notional_usd=t.sell_amt,
                        settlement_bucket=t.settlement_bucket,
                    )
                    for t in fx_trades
                ],
                total_notional_usd=sum((t.sell_amt for t in fx_trades), ZERO),
            )
        )

    logger.info(
        "Baskets built from rebalance. baskets=%d equity_orders=%d fx_trades=%d",
        len(baskets),
        len(orders),
        len(fx_trades),
    )
    return baskets, fx_trades


def toggle_do_not_trade(basket: Basket, order_id: str) -> Basket:
    if not any(o.order_id == order_id for o in basket.orders):
        raise OrderNotFoundError(f"Order not found: {order_id}")
    orders = [
        o.model_copy(update={"do_not_trade": not o.do_not_trade}) if o.order_id == order_id else o
        for o in basket.orders
    ]
    return basket.model_copy(update={"orders": orders})


def route_basket(basket: Basket) -> Basket:
    """Routes pending orders; do-not-trade orders are cancelled at routing."""
    if basket.status != "Pending":
        return basket
    orders: List[Order] = []
    for order in basket.orders:
        if order.do_not_trade:
            orders.append(order.model_copy(update={"status": "Cancelled", "fill_pct": ZERO}))
        elif order.status == "Pending":
            orders.append(order.model_copy(update={"status": "Routed"}))
        else:
            orders.append(order)
    logger.info("Basket routed. basket_id=%s orders=%d", basket.basket_id, len(orders))
    return basket.model_copy(
        update={
            "orders": orders,
            "status": aggregate_basket_status(orders),
            "fill_pct": _basket_fill_pct(orders),
            "order_state": "routed",
        }
    )


def cancel_basket(basket: Basket) -> Basket:
    orders = [o.model_copy(update={"status": "Cancelled"}) for o in basket.orders]
    logger.info("Basket cancelled. basket_id=%s", basket.basket_id)
    return basket.model_copy(update={"orders": orders, "status": "Cancelled"})
