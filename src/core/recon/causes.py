"""
Deterministic root-cause heuristics for reconciliation breaks.
"""

from decimal import Decimal

from src.core.common.numeric import ZERO
from src.core.models import (
    AnyBreak,
    BreakCause,
    CashBreak,
    CauseAnalysis,
    FxBreak,
    MissingPositionBreak,
    PriceBreak,
    QuantityBreak,
)

FEES_AND_TAXES_CEILING_USD = Decimal("10000")
ROUND_LOT_SIZES = (Decimal("100"), Decimal("1000"))
ODD_LOT_CEILING = Decimal("100")
PRICE_DISCREPANCY_PCT = Decimal("0.5")


def _analyze_cash(brk: CashBreak) -> CauseAnalysis:
    delta = abs(brk.delta)
    if delta < FEES_AND_TAXES_CEILING_USD:
        return CauseAnalysis(
            cause=BreakCause.FEES_AND_TAXES,
            confidence=75,
            evidence=[
                f"Delta amount ({delta:,.2f}) is consistent with fee/tax range",
                "Cash breaks under $10K often represent custodian fees or tax withholdings",
            ],
            suggested_fix="Review fee schedule and tax documentation",
        )
    return CauseAnalysis(
        cause=BreakCause.SETTLEMENT_TIMING,
        confidence=65,
        evidence=[
            f"Cash delta of {delta:,.2f} {brk.currency}",
            "May reflect trades settling at different times between systems",
            "Check T+1/T+2 trade queue",
        ],
        suggested_fix="Verify pending settlements in both systems",
    )


def _analyze_quantity(brk: QuantityBreak) -> CauseAnalysis:
    qty_delta = abs(brk.custodian_qty - brk.internal_qty)

    if any(qty_delta % lot == ZERO for lot in ROUND_LOT_SIZES):
        return CauseAnalysis(
            cause=BreakCause.MISSING_TRADE,
            confidence=85,
            evidence=[
                f"Quantity difference of {qty_delta:,} shares",
                "Delta is a round lot, suggesting a missed trade entry",
                f"USD impact: {abs(brk.delta_usd):,.2f}",
            ],
            suggested_fix="Search trade blotter for matching quantity",
        )

    if qty_delta < ODD_LOT_CEILING:
        return CauseAnalysis(
            cause=BreakCause.CORPORATE_ACTION,
            confidence=70,
            evidence=[
                f"Small quantity difference of {qty_delta} shares",
                "Fractional shares often result from stock splits or spin-offs",
                "Check recent corporate action calendar",
            ],
            suggested_fix="Verify corporate action processing",
        )

    return CauseAnalysis(
        cause=BreakCause.MISSING_TRADE,
        confidence=75,
        evidence=[
            f"Quantity mismatch: Custodian {brk.custodian_qty}, Internal {brk.internal_qty}",
            f"Delta: {qty_delta:,} shares",
        ],
        suggested_fix="Reconcile trade records",
    )


def _analyze_price(brk: PriceBreak) -> CauseAnalysis:
    price_delta = abs(brk.custodian_price - brk.internal_price)
    # A zero internal price has no relative base and is treated as a mapping problem.
    price_pct = None
    if brk.internal_price != ZERO:
        price_pct = price_delta / abs(brk.internal_price) * Decimal("100")

    if price_pct is not None and price_pct < PRICE_DISCREPANCY_PCT:
        return CauseAnalysis(
            cause=BreakCause.PRICE_DISCREPANCY,
            confidence=90,
            evidence=[
                f"Price difference of {price_delta:.2f} ({price_pct:.2f}%)",
                f"Custodian: {brk.custodian_price}, Internal: {brk.internal_price}",
                "Small variance likely due to different pricing sources or timing",
            ],
            suggested_fix="Verify pricing source and timestamp",
        )

    variance = f"{price_pct:.1f}%" if price_pct is not None else "n/a (zero internal price)"
    return CauseAnalysis(
        cause=BreakCause.DATA_MAPPING_ISSUE,
        confidence=70,
        evidence=[
            f"Large price variance of {variance}",
            "May indicate wrong security mapped or stale price",
        ],
        suggested_fix="Verify security identifier mapping",
    )


def _analyze_fx(brk: FxBreak) -> CauseAnalysis:
    fx_delta = abs(brk.custodian_fx - brk.internal_fx)
    return CauseAnalysis(
        cause=BreakCause.FX_MISSING_OR_INCORRECT,
        confidence=85,
        evidence=[
            f"FX rate difference of {fx_delta:.4f}",
            f"Custodian rate: {brk.custodian_fx}, Internal rate: {brk.internal_fx}",
            "FX rates may be from different cut-off times",
        ],
        suggested_fix="Align FX rate sources and timestamps",
    )


def _analyze_missing(brk: MissingPositionBreak) -> CauseAnalysis:
    return CauseAnalysis(
        cause=BreakCause.MISSING_POSITION,
        confidence=95,
        evidence=[
            f"Position {brk.ticker} exists in one system but not the other",
            "May indicate failed trade settlement or data feed issue",
        ],
        suggested_fix="Check trade status and data feed connectivity",
    )


def analyze_break_cause(brk: AnyBreak) -> CauseAnalysis:
    match brk:
        case CashBreak():
            return _analyze_cash(brk)
        case QuantityBreak():
            return _analyze_quantity(brk)
        case PriceBreak():
            return _analyze_price(brk)
        case FxBreak():
            return _analyze_fx(brk)
        case MissingPositionBreak():
            return _analyze_missing(brk)
        case _:
            return CauseAnalysis(
                cause=BreakCause.UNKNOWN,
                confidence=50,
                evidence=["Unable to determine root cause automatically"],
                suggested_fix="Manual investigation required",
            )
