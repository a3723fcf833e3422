"""
FILE: src/core/models.py
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from src.core.common.numeric import safe_decimal

SafeDecimal = Annotated[Decimal, BeforeValidator(safe_decimal)]


class SettlementHorizon(str, Enum):
    T = "T"
    T1 = "T+1"
    T2 = "T+2"
    T3 = "T+3"
    T5 = "T+5"


HORIZONS: List[SettlementHorizon] = list(SettlementHorizon)
CASH_HORIZONS = (SettlementHorizon.T, SettlementHorizon.T1, SettlementHorizon.T2)

_HORIZON_FIELDS = {
    SettlementHorizon.T: "t",
    SettlementHorizon.T1: "t1",
    SettlementHorizon.T2: "t2",
    SettlementHorizon.T3: "t3",
    SettlementHorizon.T5: "t5",
}


def horizon_field(horizon: SettlementHorizon) -> str:
    return _HORIZON_FIELDS[SettlementHorizon(horizon)]


class BreakCause(str, Enum):
    SETTLEMENT_TIMING = "Settlement timing"
    MISSING_TRADE = "Missing trade"
    PRICE_DISCREPANCY = "Price discrepancy"
    FX_MISSING_OR_INCORRECT = "FX missing/incorrect"
    CORPORATE_ACTION = "Corporate action"
    FEES_AND_TAXES = "Fees & taxes"
    MISSING_POSITION = "Missing position"
    DATA_MAPPING_ISSUE = "Data mapping issue"
    UNKNOWN = "Unknown"


BreakStatus = Literal["New", "Assigned", "In Progress", "Resolved", "Waived"]
BreakResolution = Literal[
    "unresolved",
    "accept_custodian",
    "keep_internal",
    "adjustment_created",
    "ticket_opened",
]
FxExecutionType = Literal["WMR", "SPOT"]
FxTradeStatus = Literal["Pending", "Settled", "Cancelled"]
FxTradeSource = Literal["Manual", "Rebalance", "SpotToBase"]
OrderSide = Literal["Buy", "Sell"]
OrderType = Literal["Equity", "FX"]
OrderStatus = Literal["Pending", "Routed", "PartialFill", "Filled", "Cancelled"]
OrderState = Literal["projected", "routed", "filled", "settled"]
RebalanceMode = Literal["everything", "selected", "active"]


class Position(BaseModel):
    ticker: str = Field(description="Book-of-record ticker including listing suffix.")
    name: str = Field(default="", description="Security name.")
    currency: str = Field(default="USD", description="Local trading currency.")
    sector: Optional[str] = Field(default=None, description="GICS sector label.")
    exchange: Optional[str] = Field(default=None, description="Listing exchange.")
    quantity: SafeDecimal = Field(default=Decimal("0"), description="Held quantity.")
    price: SafeDecimal = Field(default=Decimal("0"), description="Local-currency price.")
    market_value: SafeDecimal = Field(
        default=Decimal("0"), description="Market value in USD (quantity x price x FX)."
    )
    weight: SafeDecimal = Field(default=Decimal("0"), description="Portfolio weight in percent.")
    index_weight: SafeDecimal = Field(
        default=Decimal("0"), description="Benchmark weight in percent."
    )
    diff_bps: SafeDecimal = Field(
        default=Decimal("0"), description="Active weight (weight - index) in basis points."
    )
    tradable: bool = Field(default=True, description="False when the line cannot be traded.")
    restricted: bool = Field(default=False, description="True when on a restricted list.")
    trade_qty: Optional[SafeDecimal] = Field(
        default=None, description="Optional user-entered trade quantity."
    )


class CustodianPosition(BaseModel):
    ticker: str = Field(description="Custodian ticker, joined to Position.ticker.")
    currency: str = Field(default="USD", description="Local currency reported by custodian.")
    quantity: SafeDecimal = Field(default=Decimal("0"), description="Custodian quantity.")
    price: SafeDecimal = Field(default=Decimal("0"), description="Custodian local price.")
    fx_rate: SafeDecimal = Field(default=Decimal("0"), description="FX rate used by custodian.")
    market_value_local: SafeDecimal = Field(
        default=Decimal("0"), description="Custodian market value in local currency."
    )
    market_value_usd: SafeDecimal = Field(
        default=Decimal("0"), description="Custodian market value in USD."
    )


class CashBucket(BaseModel):
    currency: str = Field(description="Bucket currency.")
    t: SafeDecimal = Field(default=Decimal("0"), description="Cash available at T.")
    t1: SafeDecimal = Field(default=Decimal("0"), description="Cumulative cash by T+1.")
    t2: SafeDecimal = Field(default=Decimal("0"), description="Cumulative cash by T+2.")
    t3: SafeDecimal = Field(default=Decimal("0"), description="Cumulative cash by T+3.")
    t5: SafeDecimal = Field(default=Decimal("0"), description="Cumulative cash by T+5.")
    total: SafeDecimal = Field(default=Decimal("0"), description="Terminal (T+5) local amount.")
    equiv_usd: SafeDecimal = Field(default=Decimal("0"), description="Terminal USD equivalent.")

    def amount_at(self, horizon: SettlementHorizon) -> Decimal:
        return getattr(self, horizon_field(horizon))


class PortfolioSnapshot(BaseModel):
    name: str = Field(default="", description="Fund name.")
    benchmark: str = Field(default="", description="Benchmark index name.")
    base_currency: str = Field(default="USD", description="Reporting currency.")
    nav_usd: SafeDecimal = Field(default=Decimal("0"), description="Internal NAV in USD.")
    current_cash_usd: SafeDecimal = Field(
        default=Decimal("0"), description="Internal cash in USD (T column)."
    )
    current_cash_pct: SafeDecimal = Field(default=Decimal("0"), description="Cash as % of NAV.")
    positions: List[Position] = Field(default_factory=list)
    cash_buckets: List[CashBucket] = Field(default_factory=list)
    admin_nav: Optional[SafeDecimal] = Field(
        default=None, description="Administrator official NAV; falls back to nav_usd."
    )
    admin_nav_as_of: Optional[str] = Field(default=None, description="Admin NAV timestamp.")
    shares_outstanding: Optional[SafeDecimal] = Field(default=None)
    management_fee_bps: Optional[SafeDecimal] = Field(
        default=None, description="Annual management fee in bps (default 25)."
    )
    data_as_of: Optional[str] = Field(default=None)


class FxTrade(BaseModel):
    model_config = {"frozen": True}

    trade_id: str = Field(description="FX trade identifier.")
    sell_ccy: str
    buy_ccy: str
    sell_amt: SafeDecimal = Field(default=Decimal("0"))
    buy_amt: SafeDecimal = Field(default=Decimal("0"))
    fx_rate: SafeDecimal = Field(default=Decimal("0"))
    trade_date: Optional[date] = None
    settle_date: Optional[date] = None
    execution_type: FxExecutionType = "SPOT"
    settlement_bucket: SettlementHorizon = SettlementHorizon.T2
    status: FxTradeStatus = "Pending"
    source: FxTradeSource = "Manual"


class Order(BaseModel):
    order_id: str
    ticker: str
    side: OrderSide
    order_type: OrderType = "Equity"
    currency: str = "USD"
    quantity: SafeDecimal = Field(default=Decimal("0"))
    notional_usd: SafeDecimal = Field(default=Decimal("0"))
    pct_of_basket: SafeDecimal = Field(default=Decimal("0"))
    settlement_bucket: SettlementHorizon = SettlementHorizon.T2
    status: OrderStatus = "Pending"
    fill_pct: SafeDecimal = Field(default=Decimal("0"))
    do_not_trade: bool = Field(
        default=False, description="Removes the order from execution without deleting it."
    )


class Basket(BaseModel):
    basket_id: str
    name: str = ""
    timestamp: Optional[str] = None
    basket_type: OrderType = "Equity"
    orders: List[Order] = Field(default_factory=list)
    total_notional_usd: SafeDecimal = Field(default=Decimal("0"))
    status: OrderStatus = "Pending"
    fill_pct: SafeDecimal = Field(default=Decimal("0"))
    order_state: Optional[OrderState] = None


class BreakTolerance(BaseModel):
    absolute_usd: SafeDecimal = Field(
        default=Decimal("1000"), description="Absolute USD floor for surfacing a break."
    )
    relative_bps: SafeDecimal = Field(
        default=Decimal("1"), description="Relative floor in bps of official NAV."
    )


class CauseAnalysis(BaseModel):
    cause: BreakCause
    confidence: int = Field(ge=0, le=100)
    evidence: List[str] = Field(default_factory=list)
    suggested_fix: str = ""


class CauseOverride(BaseModel):
    cause: BreakCause
    note: str = Field(description="Justification recorded with the manual override.")


class _BreakBase(BaseModel):
    break_id: str
    delta: SafeDecimal = Field(default=Decimal("0"))
    delta_usd: SafeDecimal = Field(default=Decimal("0"))
    cause_analysis: Optional[CauseAnalysis] = None
    resolution: BreakResolution = "unresolved"
    status: BreakStatus = "New"
    owner: Optional[str] = None
    notes: Optional[str] = None
    ticket_id: Optional[str] = None
    cause_override: Optional[CauseOverride] = None

    @property
    def effective_cause(self) -> BreakCause:
        if self.cause_override is not None:
            return self.cause_override.cause
        if self.cause_analysis is not None:
            return self.cause_analysis.cause
        return BreakCause.UNKNOWN


class _PositionBreakBase(_BreakBase):
    ticker: str
    name: Optional[str] = None
    custodian_value: Optional[SafeDecimal] = None
    internal_value: Optional[SafeDecimal] = None


class MissingPositionBreak(_PositionBreakBase):
    break_type: Literal["Missing"] = "Missing"
    internal_qty: SafeDecimal = Field(default=Decimal("0"))


class QuantityBreak(_PositionBreakBase):
    break_type: Literal["Quantity"] = "Quantity"
    custodian_qty: SafeDecimal = Field(default=Decimal("0"))
    internal_qty: SafeDecimal = Field(default=Decimal("0"))


class PriceBreak(_PositionBreakBase):
    break_type: Literal["Price"] = "Price"
    custodian_price: SafeDecimal = Field(default=Decimal("0"))
    internal_price: SafeDecimal = Field(default=Decimal("0"))


class FxBreak(_PositionBreakBase):
    break_type: Literal["FX"] = "FX"
    custodian_fx: SafeDecimal = Field(default=Decimal("0"))
    internal_fx: SafeDecimal = Field(default=Decimal("0"))


class CashBreak(_BreakBase):
    break_type: Literal["Cash"] = "Cash"
    currency: str = "USD"
    custodian_amount: SafeDecimal = Field(default=Decimal("0"))
    internal_amount: SafeDecimal = Field(default=Decimal("0"))


PositionBreak = Annotated[
    Union[MissingPositionBreak, QuantityBreak, PriceBreak, FxBreak],
    Field(discriminator="break_type"),
]
AnyBreak = Union[MissingPositionBreak, QuantityBreak, PriceBreak, FxBreak, CashBreak]


class CauseBucket(BaseModel):
    count: int = 0
    total_usd: SafeDecimal = Field(default=Decimal("0"))


class NavReconciliation(BaseModel):
    shadow_nav: SafeDecimal
    official_nav: SafeDecimal
    delta: SafeDecimal
    delta_bps: SafeDecimal
    position_breaks: List[PositionBreak] = Field(default_factory=list)
    cash_breaks: List[CashBreak] = Field(default_factory=list)
    unresolved_count: int = 0
    status: Literal["aligned", "investigate", "critical"]
    breaks_by_cause: Dict[BreakCause, CauseBucket] = Field(default_factory=dict)


class CashProjection(BaseModel):
    available_cash_usd: SafeDecimal
    available_cash_pct: SafeDecimal
    projected_cash_usd: SafeDecimal
    projected_cash_pct: SafeDecimal
    pending_equity_buys_usd: SafeDecimal
    pending_equity_sells_usd: SafeDecimal
    pending_fx_net_usd: SafeDecimal
    status: Literal["current", "projected", "pending", "routed"]
    settlement_horizon: SettlementHorizon


class RebalanceConfig(BaseModel):
    mode: RebalanceMode = "everything"
    settlement_horizon: SettlementHorizon = Field(
        default=SettlementHorizon.T2, description="Horizon used for available cash (T..T+2)."
    )
    target_cash_pct: SafeDecimal = Field(
        default=Decimal("0.5"), description="Cash to keep back, percent of NAV."
    )
    auto_fx: bool = True
    fx_execution_type: FxExecutionType = "SPOT"
    available_cash: SafeDecimal = Field(default=Decimal("0"))
    investable_cash: SafeDecimal = Field(default=Decimal("0"))

    @field_validator("settlement_horizon")
    @classmethod
    def validate_cash_horizon(cls, value: SettlementHorizon) -> SettlementHorizon:
        if value not in CASH_HORIZONS:
            raise ValueError("settlement_horizon must be one of T, T+1, T+2")
        return value


class RebalanceAllocation(BaseModel):
    ticker: str
    name: str = ""
    currency: str = "USD"
    side: OrderSide
    current_weight: SafeDecimal
    target_weight: SafeDecimal
    deficit_bps: SafeDecimal
    allocation: SafeDecimal = Field(description="Signed USD amount targeted for the line.")
    quantity: SafeDecimal
    price: SafeDecimal
    notional_usd: SafeDecimal
    reason: str
    settlement_bucket: SettlementHorizon


class FxOrder(BaseModel):
    sell_ccy: str
    buy_ccy: str
    sell_amt: SafeDecimal
    buy_amt: SafeDecimal
    fx_rate: SafeDecimal
    trade_date: date
    settle_date: date
    execution_type: FxExecutionType
    settlement_bucket: SettlementHorizon = SettlementHorizon.T2
    status: FxTradeStatus = "Pending"
    source: FxTradeSource = "Rebalance"


class SkippedPosition(BaseModel):
    ticker: str
    reason: str


class RebalanceSummary(BaseModel):
    mode: RebalanceMode
    orders_count: int
    fx_orders_count: int
    cash_before: SafeDecimal
    cash_after: SafeDecimal
    top_reasons: List[str] = Field(default_factory=list)
    largest_allocations: List[str] = Field(default_factory=list)


class RebalanceResult(BaseModel):
    allocations: List[RebalanceAllocation] = Field(default_factory=list)
    fx_orders: List[FxOrder] = Field(default_factory=list)
    total_invested: SafeDecimal = Field(default=Decimal("0"))
    total_sold: SafeDecimal = Field(default=Decimal("0"))
    residual: SafeDecimal = Field(default=Decimal("0"))
    skipped: List[SkippedPosition] = Field(default_factory=list)
    summary: RebalanceSummary


class NavBridgeItem(BaseModel):
    label: str
    value_usd: SafeDecimal
    value_bps: SafeDecimal
    description: Optional[str] = None


class ShadowNavCard(BaseModel):
    shadow_nav: SafeDecimal
    nav_per_share: SafeDecimal
    admin_nav: SafeDecimal
    admin_nav_as_of: str
    delta_usd: SafeDecimal
    delta_bps: SafeDecimal
    fx_mode: str = "WMR 4pm London"
    as_of_timestamp: str
    daily_accrual: SafeDecimal
    management_fee_bps: SafeDecimal
    bridge: List[NavBridgeItem] = Field(
        default_factory=list, description="Displayed attribution components."
    )
    hidden_items: List[NavBridgeItem] = Field(
        default_factory=list,
        description="Components at or below the display threshold, kept for audit.",
    )


DataQualityStatus = Literal["passed", "failed"]


class DataQualityCheck(BaseModel):
    name: str = Field(description="Stable check name.", examples=["Cash ladder valid"])
    description: str
    status: DataQualityStatus
    details: Dict[str, str] = Field(
        default_factory=dict, description="Offending tickers, currencies or amounts."
    )


class DataQualityReport(BaseModel):
    checks: List[DataQualityCheck] = Field(default_factory=list)
    overall_status: DataQualityStatus
