"""Rebalance allocator orchestration."""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional

from src.core.cash.ladder import cumulative_cash_at_horizon, investable_cash
from src.core.common.numeric import HUNDRED, ZERO, safe_nav
from src.core.models import (
    CashBucket,
    PortfolioSnapshot,
    RebalanceAllocation,
    RebalanceConfig,
    RebalanceResult,
    RebalanceSummary,
    SkippedPosition,
)
from src.core.rebalance.active import allocate_active
from src.core.rebalance.deployment import allocate_pro_rata
from src.core.rebalance.fx_orders import generate_fx_orders
from src.core.rebalance.universe import build_candidates

logger = logging.getLogger(__name__)

NO_CANDIDATES_REASON = "No eligible securities for this mode"
MILLION = Decimal("1e6")


def build_rebalance_config(
    portfolio: PortfolioSnapshot,
    config: RebalanceConfig,
    cash_buckets: Iterable[CashBucket],
    fx_rates: Mapping[str, Decimal],
) -> RebalanceConfig:
    """Fills available and investable cash for the configured horizon."""
    available = cumulative_cash_at_horizon(cash_buckets, config.settlement_horizon, fx_rates)
    return config.model_copy(
        update={
            "available_cash": available,
            "investable_cash": investable_cash(
                available, config.target_cash_pct, portfolio.nav_usd
            ),
        }
    )


def _largest(allocations: List[RebalanceAllocation], limit: int) -> List[RebalanceAllocation]:
    return sorted(allocations, key=lambda a: a.notional_usd, reverse=True)[:limit]


def _no_candidates_result(
    portfolio: PortfolioSnapshot, config: RebalanceConfig, skipped: List[SkippedPosition]
) -> RebalanceResult:
    return RebalanceResult(
        allocations=[],
        fx_orders=[],
        total_invested=ZERO,
        total_sold=ZERO,
        residual=config.investable_cash,
        skipped=skipped,
        summary=RebalanceSummary(
            mode=config.mode,
            orders_count=0,
            fx_orders_count=0,
            cash_before=portfolio.current_cash_usd,
            cash_after=portfolio.current_cash_usd,
            top_reasons=[NO_CANDIDATES_REASON],
            largest_allocations=[],
        ),
    )


def calculate_rebalance(
    portfolio: PortfolioSnapshot,
    config: RebalanceConfig,
    fx_rates: Mapping[str, Decimal],
    selected_tickers: Optional[Iterable[str]] = None,
    trade_date: Optional[date] = None,
) -> RebalanceResult:
    selected = set(selected_tickers or [])
    trade_date = trade_date or date.today()
    candidates, skipped = build_candidates(portfolio.positions, config.mode, selected)

    if not candidates:
        logger.info("No rebalance candidates. mode=%s skipped=%d", config.mode, len(skipped))
        return _no_candidates_result(portfolio, config, skipped)

    cash_before = portfolio.current_cash_usd

    if config.mode == "active":
        allocations, total_sold, total_bought, residual = allocate_active(
            candidates, config.investable_cash, safe_nav(portfolio.nav_usd), fx_rates
        )
        buys = [a for a in allocations if a.side == "Buy"]
        sells = [a for a in allocations if a.side == "Sell"]
        top_reasons = [
            f"Active rebalance: {len(sells)} sells, {len(buys)} buys",
            f"Selling {total_sold / MILLION:.2f}M overweights",
            f"Buying {total_bought / MILLION:.2f}M underweights",
        ]
        largest = [
            f"{'↓' if a.side == 'Sell' else '↑'} {a.ticker}: {a.notional_usd / MILLION:.2f}M"
            for a in _largest(allocations, 4)
        ]
        cash_after = cash_before + total_sold - total_bought
    else:
        allocations, residual = allocate_pro_rata(
            candidates, config.investable_cash, fx_rates, config.mode
        )
        total_sold = ZERO
        total_bought = sum((a.notional_usd for a in allocations), ZERO)
        top_reasons = (
            ["Pro-rata to benchmark weights"]
            if config.mode == "everything"
            else [f"{len(selected)} securities selected"]
        )
        invested_pct = (
            total_bought / config.investable_cash * HUNDRED
            if config.investable_cash > ZERO
            else ZERO
        )
        top_reasons.append(f"Investing {invested_pct:.1f}% of investable cash")
        largest = [
            f"{a.ticker}: {a.notional_usd / MILLION:.2f}M" for a in _largest(allocations, 3)
        ]
        cash_after = cash_before - total_bought

    fx_orders = generate_fx_orders(
        allocations, fx_rates, config.auto_fx, config.fx_execution_type, trade_date
    )

    logger.info(
        "Rebalance calculated. mode=%s orders=%d fx_orders=%d invested=%s sold=%s residual=%s",
        config.mode,
        len(allocations),
        len(fx_orders),
        total_bought,
        total_sold,
        residual,
    )

    return RebalanceResult(
        allocations=allocations,
        fx_orders=fx_orders,
        total_invested=total_bought,
        total_sold=total_sold,
        residual=residual,
        skipped=skipped,
        summary=RebalanceSummary(
            mode=config.mode,
            orders_count=len(allocations),
            fx_orders_count=len(fx_orders),
            cash_before=cash_before,
            cash_after=cash_after,
            top_reasons=top_reasons,
            largest_allocations=largest,
        ),
    )
