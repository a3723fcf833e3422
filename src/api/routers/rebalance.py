import logging

from fastapi import APIRouter, HTTPException, status

from src.api.config import assert_feature_enabled, resolve_fx_rates
from src.api.http_errors import HTTP_422_UNPROCESSABLE
from src.api.request_models import DataQualityRequest, RebalanceCalculateRequest
from src.core.cash import build_effective_ladder
from src.core.common.data_quality import run_data_quality_checks
from src.core.models import DataQualityReport, RebalanceResult
from src.core.rebalance import build_rebalance_config, calculate_rebalance

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rebalance", tags=["Rebalance"])


@router.post(
    "/calculate",
    response_model=RebalanceResult,
    status_code=status.HTTP_200_OK,
    summary="Calculate Rebalance Orders",
    description=(
        "Sizes investable cash at the configured settlement horizon from the effective "
        "ladder, then allocates it under the selected mode (`everything`, `selected`, "
        "`active`). Pending FX and live baskets are layered onto the ladder first."
    ),
    responses={422: {"description": "Invalid payload or empty selection in `selected` mode."}},
)
def calculate(request: RebalanceCalculateRequest) -> RebalanceResult:
    assert_feature_enabled(
        name="COCKPIT_REBALANCE_ENABLED", detail="COCKPIT_REBALANCE_DISABLED"
    )
    if request.config.mode == "selected" and not request.selected_tickers:
        raise HTTPException(
            status_code=HTTP_422_UNPROCESSABLE,
            detail="REBALANCE_SELECTION_REQUIRED",
        )

    fx_rates = resolve_fx_rates(request.fx_rates)
    ladder = build_effective_ladder(
        request.portfolio.cash_buckets, request.fx_trades, request.baskets, fx_rates
    )
    config = build_rebalance_config(request.portfolio, request.config, ladder, fx_rates)
    logger.debug(
        "Rebalance sizing. horizon=%s available=%s investable=%s",
        config.settlement_horizon.value,
        config.available_cash,
        config.investable_cash,
    )
    return calculate_rebalance(
        request.portfolio,
        config,
        fx_rates,
        selected_tickers=request.selected_tickers,
        trade_date=request.trade_date,
    )


@router.post(
    "/data-quality",
    response_model=DataQualityReport,
    status_code=status.HTTP_200_OK,
    summary="Run Pre-Trade Data Quality Checks",
    description=(
        "Checks position values, weight totals, cash ladder signs and the investable "
        "cash cap against a config sized the same way as `/rebalance/calculate`."
    ),
)
def data_quality(request: DataQualityRequest) -> DataQualityReport:
    assert_feature_enabled(
        name="COCKPIT_REBALANCE_ENABLED", detail="COCKPIT_REBALANCE_DISABLED"
    )
    fx_rates = resolve_fx_rates(request.fx_rates)
    ladder = build_effective_ladder(
        request.portfolio.cash_buckets, request.fx_trades, request.baskets, fx_rates
    )
    config = build_rebalance_config(request.portfolio, request.config, ladder, fx_rates)
    return run_data_quality_checks(request.portfolio, config)
