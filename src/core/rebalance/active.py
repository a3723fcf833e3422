"""
Active mode: sell overweights back to benchmark, recycle the proceeds into
underweights. Minimizes active weight rather than deploying idle cash.
"""

from decimal import Decimal
from typing import List, Mapping, Tuple

from src.core.common.numeric import HUNDRED, ZERO, fx_to_usd
from src.core.models import Position, RebalanceAllocation
from src.core.rebalance.deployment import whole_shares
from src.core.rebalance.universe import ACTIVE_THRESHOLD_BPS, settlement_bucket_for

MIN_ACTIVE_TRADE_USD = Decimal("1000")


def _target_value(position: Position, nav: Decimal) -> Decimal:
    return position.index_weight / HUNDRED * nav


def build_sell_orders(
    overweights: List[Position], nav: Decimal, fx_rates: Mapping[str, Decimal]
) -> Tuple[List[RebalanceAllocation], Decimal]:
    allocations: List[RebalanceAllocation] = []
    total_sold = ZERO

    for position in overweights:
        sell_usd = position.market_value - _target_value(position, nav)
        if sell_usd < MIN_ACTIVE_TRADE_USD:
            continue
        rate = fx_to_usd(fx_rates, position.currency)
        quantity = whole_shares(sell_usd, position.price, rate)
        if quantity <= ZERO:
            continue

        notional = quantity * position.price * rate
        total_sold += notional
        allocations.append(
            RebalanceAllocation(
                ticker=position.ticker,
                name=position.name,
                currency=position.currency,
                side="Sell",
                current_weight=position.weight,
                target_weight=position.index_weight,
                deficit_bps=position.diff_bps,
                allocation=-notional,
                quantity=quantity,
                price=position.price,
                notional_usd=notional,
                reason=f"Overweight by {position.diff_bps} bps → sell to index",
                settlement_bucket=settlement_bucket_for(position.ticker),
            )
        )
    return allocations, total_sold


def build_buy_orders(
    underweights: List[Position],
    nav: Decimal,
    available_for_buys: Decimal,
    fx_rates: Mapping[str, Decimal],
) -> Tuple[List[RebalanceAllocation], Decimal, Decimal]:
    allocations: List[RebalanceAllocation] = []
    total_bought = ZERO
    remaining = available_for_buys

    for position in underweights:
        if remaining < MIN_ACTIVE_TRADE_USD:
            break
        buy_usd = min(_target_value(position, nav) - position.market_value, remaining)
        if buy_usd < MIN_ACTIVE_TRADE_USD:
            continue
        rate = fx_to_usd(fx_rates, position.currency)
        quantity = whole_shares(buy_usd, position.price, rate)
        if quantity <= ZERO:
            continue

        notional = quantity * position.price * rate
        total_bought += notional
        remaining -= notional
        deficit = abs(position.diff_bps)
        allocations.append(
            RebalanceAllocation(
                ticker=position.ticker,
                name=position.name,
                currency=position.currency,
                side="Buy",
                current_weight=position.weight,
                target_weight=position.index_weight,
                deficit_bps=deficit,
                allocation=notional,
                quantity=quantity,
                price=position.price,
                notional_usd=notional,
                reason=f"Underweight by {deficit} bps → buy to index",
                settlement_bucket=settlement_bucket_for(position.ticker),
            )
        )
    return allocations, total_bought, remaining


def allocate_active(
    candidates: List[Position],
    investable_cash: Decimal,
    nav: Decimal,
    fx_rates: Mapping[str, Decimal],
) -> Tuple[List[RebalanceAllocation], Decimal, Decimal, Decimal]:
    overweights = sorted(
        (p for p in candidates if p.diff_bps >= ACTIVE_THRESHOLD_BPS),
        key=lambda p: p.diff_bps,
        reverse=True,
    )
    underweights = sorted(
        (p for p in candidates if p.diff_bps <= -ACTIVE_THRESHOLD_BPS),
        key=lambda p: p.diff_bps,
    )

    sells, total_sold = build_sell_orders(overweights, nav, fx_rates)
    buys, total_bought, remaining = build_buy_orders(
        underweights, nav, investable_cash + total_sold, fx_rates
    )
    return [*sells, *buys], total_sold, total_bought, remaining
