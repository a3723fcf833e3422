"""Rebalance allocator package."""

from src.core.rebalance.engine import build_rebalance_config, calculate_rebalance
from src.core.rebalance.fx_orders import generate_fx_orders
from src.core.rebalance.universe import build_candidates, is_us_equity, settlement_bucket_for

__all__ = [
    "build_candidates",
    "build_rebalance_config",
    "calculate_rebalance",
    "generate_fx_orders",
    "is_us_equity",
    "settlement_bucket_for",
]
