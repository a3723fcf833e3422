"""
Horizon-cumulative cash ladder.

Each bucket column already includes everything settled by that horizon, so a
flow settling at horizon H is added to H and every later column, never earlier.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Mapping

from src.core.common.numeric import ZERO, fx_to_usd, safe_decimal
from src.core.models import (
    HORIZONS,
    Basket,
    CashBucket,
    FxTrade,
    SettlementHorizon,
    horizon_field,
)

logger = logging.getLogger(__name__)

_CLOSED_BASKET_STATUSES = {"Cancelled", "Filled"}
_CLOSED_ORDER_STATES = {"filled", "settled"}


def horizons_from(start: SettlementHorizon) -> List[SettlementHorizon]:
    return HORIZONS[HORIZONS.index(SettlementHorizon(start)) :]


def sync_terminal_totals(bucket: CashBucket, rate: Decimal) -> None:
    bucket.total = bucket.t5
    bucket.equiv_usd = bucket.t5 * rate


def apply_flow(
    bucket: CashBucket, horizon: SettlementHorizon, amount: Decimal, rate: Decimal
) -> None:
    """Adds a signed local-currency flow at `horizon` and all later columns, in place."""
    for h in horizons_from(horizon):
        field = horizon_field(h)
        setattr(bucket, field, getattr(bucket, field) + amount)
    sync_terminal_totals(bucket, rate)


def clone_ladder(buckets: Iterable[CashBucket]) -> List[CashBucket]:
    return [bucket.model_copy(deep=True) for bucket in buckets]


def sync_ladder_totals(
    buckets: List[CashBucket], fx_rates: Mapping[str, Decimal]
) -> List[CashBucket]:
    """Re-derives `total` and `equiv_usd` from the T+5 column on every bucket, in place."""
    for bucket in buckets:
        sync_terminal_totals(bucket, fx_to_usd(fx_rates, bucket.currency))
    return buckets


def _find_bucket(buckets: List[CashBucket], currency: str) -> CashBucket | None:
    return next((b for b in buckets if b.currency == currency), None)


def cumulative_cash_at_horizon(
    buckets: Iterable[CashBucket],
    horizon: SettlementHorizon,
    fx_rates: Mapping[str, Decimal],
) -> Decimal:
    total = ZERO
    for bucket in buckets:
        total += safe_decimal(bucket.amount_at(horizon)) * fx_to_usd(fx_rates, bucket.currency)
    return total


def cash_at_bucket(
    buckets: Iterable[CashBucket], currency: str, horizon: SettlementHorizon
) -> Decimal:
    found = next((b for b in buckets if b.currency == currency), None)
    if found is None:
        return ZERO
    return safe_decimal(found.amount_at(horizon))


def total_cash_usd(buckets: Iterable[CashBucket], fx_rates: Mapping[str, Decimal]) -> Decimal:
    return cumulative_cash_at_horizon(buckets, SettlementHorizon.T, fx_rates)


def investable_cash(
    available_cash: Decimal, target_cash_pct: Decimal, nav_usd: Decimal
) -> Decimal:
    target_cash_amount = safe_decimal(target_cash_pct) / Decimal("100") * safe_decimal(nav_usd)
    return max(ZERO, safe_decimal(available_cash) - target_cash_amount)


def apply_pending_fx_to_ladder(
    base_buckets: Iterable[CashBucket],
    pending_fx_trades: Iterable[FxTrade],
    fx_rates: Mapping[str, Decimal],
) -> List[CashBucket]:
    buckets = clone_ladder(base_buckets)
    applied = 0

    for trade in pending_fx_trades:
        if trade.status != "Pending":
            continue
        horizon = trade.settlement_bucket or SettlementHorizon.T2

        sell_bucket = _find_bucket(buckets, trade.sell_ccy)
        if sell_bucket is not None:
            apply_flow(sell_bucket, horizon, -trade.sell_amt, fx_to_usd(fx_rates, trade.sell_ccy))
        buy_bucket = _find_bucket(buckets, trade.buy_ccy)
        if buy_bucket is not None:
            apply_flow(buy_bucket, horizon, trade.buy_amt, fx_to_usd(fx_rates, trade.buy_ccy))
        applied += 1

    logger.debug("Applied %d pending FX trades to cash ladder", applied)
    return sync_ladder_totals(buckets, fx_rates)


def is_live_basket(basket: Basket) -> bool:
    if basket.order_state in _CLOSED_ORDER_STATES:
        return False
    return basket.status not in _CLOSED_BASKET_STATUSES


def live_equity_orders(baskets: Iterable[Basket]):
    for basket in baskets:
        if not is_live_basket(basket):
            continue
        for order in basket.orders:
            if order.do_not_trade or order.status == "Cancelled" or order.order_type == "FX":
                continue
            yield order


def apply_pending_equity_to_ladder(
    base_buckets: Iterable[CashBucket],
    baskets: Iterable[Basket],
    fx_rates: Mapping[str, Decimal],
) -> List[CashBucket]:
    buckets = clone_ladder(base_buckets)

    for order in live_equity_orders(baskets):
        currency = order.currency or "USD"
        bucket = _find_bucket(buckets, currency)
        if bucket is None:
            logger.debug("No cash bucket for %s; order %s not laddered", currency, order.order_id)
            continue
        rate = fx_to_usd(fx_rates, currency)
        local_amount = order.notional_usd / rate
        signed = -local_amount if order.side == "Buy" else local_amount
        apply_flow(bucket, order.settlement_bucket or SettlementHorizon.T2, signed, rate)

    return sync_ladder_totals(buckets, fx_rates)


def build_effective_ladder(
    base_buckets: Iterable[CashBucket],
    fx_trades: Iterable[FxTrade],
    baskets: Iterable[Basket],
    fx_rates: Mapping[str, Decimal],
    *,
    include_pending_fx: bool = True,
    include_pending_equity: bool = True,
) -> List[CashBucket]:
    buckets = clone_ladder(base_buckets)
    if include_pending_fx:
        buckets = apply_pending_fx_to_ladder(buckets, fx_trades, fx_rates)
    if include_pending_equity:
        buckets = apply_pending_equity_to_ladder(buckets, baskets, fx_rates)
    return sync_ladder_totals(buckets, fx_rates)
