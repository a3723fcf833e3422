"""Cash ladder engine package."""

from src.core.cash.fx import (
    FxTradeTransitionError,
    book_fx_trade,
    build_spot_to_base_trades,
    settle_date_from_type,
    transition_fx_trade,
)
from src.core.cash.ladder import (
    apply_flow,
    apply_pending_equity_to_ladder,
    apply_pending_fx_to_ladder,
    build_effective_ladder,
    cash_at_bucket,
    cumulative_cash_at_horizon,
    horizons_from,
    investable_cash,
    total_cash_usd,
)
from src.core.cash.projection import calculate_cash_projection

__all__ = [
    "FxTradeTransitionError",
    "apply_flow",
    "apply_pending_equity_to_ladder",
    "apply_pending_fx_to_ladder",
    "book_fx_trade",
    "build_effective_ladder",
    "build_spot_to_base_trades",
    "calculate_cash_projection",
    "cash_at_bucket",
    "cumulative_cash_at_horizon",
    "horizons_from",
    "investable_cash",
    "settle_date_from_type",
    "total_cash_usd",
    "transition_fx_trade",
]
