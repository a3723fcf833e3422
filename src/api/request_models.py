from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.core.models import (
    Basket,
    BreakCause,
    BreakResolution,
    BreakStatus,
    BreakTolerance,
    CashBucket,
    CustodianPosition,
    FxTrade,
    FxTradeStatus,
    NavReconciliation,
    PortfolioSnapshot,
    RebalanceConfig,
    RebalanceResult,
    SafeDecimal,
    SettlementHorizon,
)

FxRateTable = Optional[Dict[str, SafeDecimal]]
FX_RATES_DESCRIPTION = (
    "USD value of one unit of each currency. Omit to use the service default table."
)


class CashLadderRequest(BaseModel):
    cash_buckets: List[CashBucket] = Field(description="Base cash ladder, one bucket per currency.")
    fx_trades: List[FxTrade] = Field(default_factory=list)
    baskets: List[Basket] = Field(default_factory=list)
    fx_rates: FxRateTable = Field(default=None, description=FX_RATES_DESCRIPTION)
    include_pending_fx: bool = True
    include_pending_equity: bool = True


class CashProjectionRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "portfolio": {
                    "nav_usd": "100000000",
                    "cash_buckets": [
                        {"currency": "USD", "t": "1000000", "t1": "1200000", "t2": "1500000"}
                    ],
                },
                "baskets": [],
                "fx_trades": [],
                "settlement_horizon": "T+2",
            }
        }
    }

    portfolio: PortfolioSnapshot
    baskets: List[Basket] = Field(default_factory=list)
    fx_trades: List[FxTrade] = Field(default_factory=list)
    fx_rates: FxRateTable = Field(default=None, description=FX_RATES_DESCRIPTION)
    settlement_horizon: SettlementHorizon = SettlementHorizon.T2


class SpotToBaseRequest(BaseModel):
    cash_buckets: List[CashBucket]
    fx_rates: FxRateTable = Field(default=None, description=FX_RATES_DESCRIPTION)
    trade_date: Optional[date] = Field(default=None, description="Defaults to today.")


class FxTradeTransitionRequest(BaseModel):
    trade: FxTrade
    status: FxTradeStatus


class ReconciliationRequest(BaseModel):
    portfolio: PortfolioSnapshot = Field(description="Internal book of record.")
    custodian_positions: List[CustodianPosition] = Field(default_factory=list)
    custodian_cash_usd: SafeDecimal = Field(default=Decimal("0"))
    internal_cash_usd: Optional[SafeDecimal] = Field(
        default=None, description="Defaults to portfolio.current_cash_usd."
    )
    official_nav: Optional[SafeDecimal] = Field(
        default=None, description="Defaults to portfolio.admin_nav, then portfolio.nav_usd."
    )
    fx_rates: FxRateTable = Field(default=None, description=FX_RATES_DESCRIPTION)
    tolerance: Optional[BreakTolerance] = Field(
        default=None, description="Defaults to the service-configured tolerance."
    )


class BreakAssignRequest(BaseModel):
    reconciliation: NavReconciliation
    owner: str


class BreakStatusRequest(BaseModel):
    reconciliation: NavReconciliation
    status: BreakStatus


class BreakResolveRequest(BaseModel):
    reconciliation: NavReconciliation
    resolution: BreakResolution
    notes: Optional[str] = None
    ticket_id: Optional[str] = None


class BreakNotesRequest(BaseModel):
    reconciliation: NavReconciliation
    notes: str


class BreakCauseOverrideRequest(BaseModel):
    reconciliation: NavReconciliation
    cause: BreakCause
    note: str


class RebalanceCalculateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "portfolio": {
                    "nav_usd": "100000000",
                    "current_cash_usd": "5000000",
                    "positions": [
                        {
                            "ticker": "AAPL US",
                            "currency": "USD",
                            "quantity": "10000",
                            "price": "190",
                            "market_value": "1900000",
                            "weight": "1.9",
                            "index_weight": "4.5",
                            "diff_bps": "-260",
                        }
                    ],
                    "cash_buckets": [{"currency": "USD", "t": "5000000", "t1": "5000000"}],
                },
                "config": {"mode": "everything", "settlement_horizon": "T+1"},
            }
        }
    }

    portfolio: PortfolioSnapshot
    config: RebalanceConfig = Field(default_factory=RebalanceConfig)
    fx_rates: FxRateTable = Field(default=None, description=FX_RATES_DESCRIPTION)
    selected_tickers: Optional[List[str]] = Field(
        default=None, description="Required and non-empty when mode is `selected`."
    )
    fx_trades: List[FxTrade] = Field(
        default_factory=list, description="Pending FX layered onto the ladder before sizing."
    )
    baskets: List[Basket] = Field(
        default_factory=list, description="Live baskets layered onto the ladder before sizing."
    )
    trade_date: Optional[date] = None


class DataQualityRequest(BaseModel):
    portfolio: PortfolioSnapshot
    config: RebalanceConfig = Field(
        default_factory=RebalanceConfig,
        description="Available and investable cash are sized from the effective ladder.",
    )
    fx_rates: FxRateTable = Field(default=None, description=FX_RATES_DESCRIPTION)
    fx_trades: List[FxTrade] = Field(default_factory=list)
    baskets: List[Basket] = Field(default_factory=list)


class ShadowNavRequest(BaseModel):
    portfolio: PortfolioSnapshot
    custodian_positions: List[CustodianPosition] = Field(default_factory=list)
    custodian_cash_usd: SafeDecimal = Field(default=Decimal("0"))
    fx_rates: FxRateTable = Field(default=None, description=FX_RATES_DESCRIPTION)


class BasketsFromRebalanceRequest(BaseModel):
    result: RebalanceResult
    benchmark: str = "MSCI World"


class BasketActionRequest(BaseModel):
    basket: Basket


class ToggleDoNotTradeRequest(BaseModel):
    basket: Basket
    order_id: str


class BasketsResponse(BaseModel):
    baskets: List[Basket]
    fx_trades: List[FxTrade]
