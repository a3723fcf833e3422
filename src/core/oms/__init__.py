from src.core.oms.baskets import (
    OrderNotFoundError,
    aggregate_basket_status,
    build_baskets_from_rebalance,
    cancel_basket,
    route_basket,
    toggle_do_not_trade,
)

__all__ = [
    "OrderNotFoundError",
    "aggregate_basket_status",
    "build_baskets_from_rebalance",
    "cancel_basket",
    "route_basket",
    "toggle_do_not_trade",
]
