from datetime import datetime, timezone

from fastapi import APIRouter, status

from src.api.http_errors import raise_domain_http_exception
from src.api.request_models import (
    BasketActionRequest,
    BasketsFromRebalanceRequest,
    BasketsResponse,
    ToggleDoNotTradeRequest,
)
from src.core.models import Basket
from src.core.oms import (
    OrderNotFoundError,
    build_baskets_from_rebalance,
    cancel_basket,
    route_basket,
    toggle_do_not_trade,
)

router = APIRouter(prefix="/oms", tags=["Order Management"])


@router.post(
    "/baskets",
    response_model=BasketsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Confirm a Rebalance into Order Baskets",
)
def create_baskets(request: BasketsFromRebalanceRequest) -> BasketsResponse:
    baskets, fx_trades = build_baskets_from_rebalance(
        request.result, datetime.now(timezone.utc), benchmark=request.benchmark
    )
    return BasketsResponse(baskets=baskets, fx_trades=fx_trades)


@router.post("/baskets/route", response_model=Basket, summary="Route a Pending Basket")
def route(request: BasketActionRequest) -> Basket:
    return route_basket(request.basket)


@router.post("/baskets/cancel", response_model=Basket, summary="Cancel a Basket")
def cancel(request: BasketActionRequest) -> Basket:
    return cancel_basket(request.basket)


@router.post(
    "/baskets/do-not-trade",
    response_model=Basket,
    summary="Toggle an Order's Do-Not-Trade Flag",
    responses={404: {"description": "Order not found in basket."}},
)
def do_not_trade(request: ToggleDoNotTradeRequest) -> Basket:
    try:
        return toggle_do_not_trade(request.basket, request.order_id)
    except OrderNotFoundError as exc:
        raise_domain_http_exception(exc)
