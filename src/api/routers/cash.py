from datetime import date
from typing import List

from fastapi import APIRouter, status

from src.api.config import assert_feature_enabled, resolve_fx_rates
from src.api.http_errors import raise_domain_http_exception
from src.api.request_models import (
    CashLadderRequest,
    CashProjectionRequest,
    FxTradeTransitionRequest,
    SpotToBaseRequest,
)
from src.core.cash import (
    FxTradeTransitionError,
    build_effective_ladder,
    build_spot_to_base_trades,
    calculate_cash_projection,
    transition_fx_trade,
)
from src.core.models import CashBucket, CashProjection, FxTrade

router = APIRouter(prefix="/cash", tags=["Cash Ladder"])

CASH_DISABLED = "COCKPIT_CASH_DISABLED"


def _assert_cash_enabled() -> None:
    assert_feature_enabled(name="COCKPIT_CASH_ENABLED", detail=CASH_DISABLED)


@router.post(
    "/ladder",
    response_model=List[CashBucket],
    status_code=status.HTTP_200_OK,
    summary="Build the Effective Cash Ladder",
    description="Layers pending FX trades and live equity orders onto the base ladder.",
)
def effective_ladder(request: CashLadderRequest) -> List[CashBucket]:
    _assert_cash_enabled()
    return build_effective_ladder(
        request.cash_buckets,
        request.fx_trades,
        request.baskets,
        resolve_fx_rates(request.fx_rates),
        include_pending_fx=request.include_pending_fx,
        include_pending_equity=request.include_pending_equity,
    )


@router.post(
    "/projection",
    response_model=CashProjection,
    status_code=status.HTTP_200_OK,
    summary="Project Cash at a Settlement Horizon",
)
def cash_projection(request: CashProjectionRequest) -> CashProjection:
    _assert_cash_enabled()
    return calculate_cash_projection(
        request.portfolio,
        request.baskets,
        request.fx_trades,
        resolve_fx_rates(request.fx_rates),
        request.settlement_horizon,
    )


@router.post(
    "/spot-to-base",
    response_model=List[FxTrade],
    status_code=status.HTTP_200_OK,
    summary="Convert All Non-USD Cash to USD at Spot",
)
def spot_to_base(request: SpotToBaseRequest) -> List[FxTrade]:
    _assert_cash_enabled()
    return build_spot_to_base_trades(
        request.cash_buckets,
        resolve_fx_rates(request.fx_rates),
        request.trade_date or date.today(),
    )


@router.post(
    "/fx-trades/transition",
    response_model=FxTrade,
    status_code=status.HTTP_200_OK,
    summary="Settle or Cancel a Pending FX Trade",
    responses={409: {"description": "Transition not allowed from the trade's current status."}},
)
def fx_trade_transition(request: FxTradeTransitionRequest) -> FxTrade:
    _assert_cash_enabled()
    try:
        return transition_fx_trade(request.trade, request.status)
    except FxTradeTransitionError as exc:
        raise_domain_http_exception(exc)
