"""
Cash deployment for the `everything` and `selected` modes: buys only, pro-rata
to benchmark weight, rounded down to whole shares.
"""

from decimal import Decimal
from typing import Dict, List, Mapping, Tuple

from src.core.common.numeric import ONE, ZERO, fx_to_usd, safe_decimal
from src.core.models import Position, RebalanceAllocation, RebalanceMode
from src.core.rebalance.universe import settlement_bucket_for

RESIDUAL_SWEEP_THRESHOLD_USD = Decimal("1000")


def whole_shares(usd_amount: Decimal, price: Decimal, rate: Decimal) -> Decimal:
    return Decimal(int((usd_amount / rate) // price))


def allocate_pro_rata(
    candidates: List[Position],
    investable_cash: Decimal,
    fx_rates: Mapping[str, Decimal],
    mode: RebalanceMode,
) -> Tuple[List[RebalanceAllocation], Decimal]:
    total_weight = sum((safe_decimal(p.index_weight) for p in candidates), ZERO)
    if total_weight == ZERO:
        total_weight = ONE

    allocations: List[RebalanceAllocation] = []
    by_ticker: Dict[str, Position] = {}
    total_allocated = ZERO

    for position in candidates:
        rate = fx_to_usd(fx_rates, position.currency)
        target_usd = investable_cash * (safe_decimal(position.index_weight) / total_weight)
        quantity = whole_shares(target_usd, position.price, rate)
        if quantity <= ZERO:
            continue

        notional = quantity * position.price * rate
        total_allocated += notional
        by_ticker[position.ticker] = position
        allocations.append(
            RebalanceAllocation(
                ticker=position.ticker,
                name=position.name,
                currency=position.currency,
                side="Buy",
                current_weight=position.weight,
                target_weight=position.index_weight,
                deficit_bps=max(ZERO, -position.diff_bps),
                allocation=target_usd,
                quantity=quantity,
                price=position.price,
                notional_usd=notional,
                reason=(
                    "User selected"
                    if mode == "selected"
                    else f"Target weight {position.index_weight:.2f}%"
                ),
                settlement_bucket=settlement_bucket_for(position.ticker),
            )
        )

    residual = investable_cash - total_allocated
    residual = sweep_residual(allocations, by_ticker, residual, fx_rates)
    return allocations, residual


def sweep_residual(
    allocations: List[RebalanceAllocation],
    by_ticker: Dict[str, Position],
    residual: Decimal,
    fx_rates: Mapping[str, Decimal],
) -> Decimal:
    """
    Grows existing allocations, largest notional first, while the rounding
    residual exceeds the threshold. Never creates new allocations.
    """
    if residual <= RESIDUAL_SWEEP_THRESHOLD_USD or not allocations:
        return residual

    for allocation in sorted(allocations, key=lambda a: a.notional_usd, reverse=True):
        if residual <= RESIDUAL_SWEEP_THRESHOLD_USD:
            break
        position = by_ticker[allocation.ticker]
        rate = fx_to_usd(fx_rates, position.currency)
        extra_qty = whole_shares(residual, position.price, rate)
        if extra_qty <= ZERO:
            continue
        extra_notional = extra_qty * position.price * rate
        allocation.quantity += extra_qty
        allocation.notional_usd += extra_notional
        residual -= extra_notional

    return residual
