"""
NAV reconciliation between custodian and book-of-record positions.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from src.core.common.numeric import BPS, ZERO, fx_to_usd, safe_decimal, safe_nav
from src.core.models import (
    AnyBreak,
    BreakCause,
    BreakTolerance,
    CashBreak,
    CauseBucket,
    CustodianPosition,
    FxBreak,
    MissingPositionBreak,
    NavReconciliation,
    Position,
    PriceBreak,
    QuantityBreak,
)
from src.core.recon.causes import analyze_break_cause

logger = logging.getLogger(__name__)

QUANTITY_THRESHOLD = Decimal("0.5")
PRICE_THRESHOLD = Decimal("0.01")
FX_THRESHOLD = Decimal("0.0001")
CRITICAL_BPS = Decimal("50")
INVESTIGATE_BPS = Decimal("10")


def calculate_shadow_nav(
    custodian_positions: Iterable[CustodianPosition], custodian_cash_usd: Decimal
) -> Decimal:
    positions_value = sum(
        (safe_decimal(p.market_value_usd) for p in custodian_positions), ZERO
    )
    return positions_value + safe_decimal(custodian_cash_usd)


def _classify_matched(
    break_id: str,
    internal: Position,
    custodian: CustodianPosition,
    fx_rates: Mapping[str, Decimal],
    delta_usd: Decimal,
) -> Optional[AnyBreak]:
    """First match wins: quantity, then price, then FX (non-USD only)."""
    common = {
        "break_id": break_id,
        "ticker": internal.ticker,
        "name": internal.name or None,
        "custodian_value": custodian.market_value_usd,
        "internal_value": internal.market_value,
        "delta_usd": delta_usd,
    }
    internal_fx = fx_to_usd(fx_rates, custodian.currency)

    if abs(custodian.quantity - internal.quantity) > QUANTITY_THRESHOLD:
        return QuantityBreak(
            custodian_qty=custodian.quantity,
            internal_qty=internal.quantity,
            delta=custodian.quantity - internal.quantity,
            **common,
        )
    if abs(custodian.price - internal.price) > PRICE_THRESHOLD:
        return PriceBreak(
            custodian_price=custodian.price,
            internal_price=internal.price,
            delta=custodian.price - internal.price,
            **common,
        )
    if abs(custodian.fx_rate - internal_fx) > FX_THRESHOLD and custodian.currency != "USD":
        return FxBreak(
            custodian_fx=custodian.fx_rate,
            internal_fx=internal_fx,
            delta=custodian.fx_rate - internal_fx,
            **common,
        )
    return None


def group_breaks_by_cause(breaks: Iterable[AnyBreak]) -> Dict[BreakCause, CauseBucket]:
    grouped = {cause: CauseBucket() for cause in BreakCause}
    for brk in breaks:
        cause = brk.cause_analysis.cause if brk.cause_analysis else BreakCause.UNKNOWN
        grouped[cause].count += 1
        grouped[cause].total_usd += abs(brk.delta_usd)
    return grouped


def count_unresolved(breaks: Iterable[AnyBreak]) -> int:
    return sum(1 for brk in breaks if brk.resolution == "unresolved")


def derive_recon_status(delta_bps: Decimal, unresolved_count: int) -> str:
    if abs(delta_bps) > CRITICAL_BPS:
        return "critical"
    if abs(delta_bps) > INVESTIGATE_BPS or unresolved_count > 0:
        return "investigate"
    return "aligned"


def reconcile_nav(
    custodian_positions: Iterable[CustodianPosition],
    internal_positions: Iterable[Position],
    custodian_cash_usd: Decimal,
    internal_cash_usd: Decimal,
    official_nav: Decimal,
    fx_rates: Mapping[str, Decimal],
    tolerance: Optional[BreakTolerance] = None,
) -> NavReconciliation:
    if tolerance is None:
        tolerance = BreakTolerance()
    custodian_positions = list(custodian_positions or [])
    internal_positions = list(internal_positions or [])
    custodian_cash = safe_decimal(custodian_cash_usd)
    internal_cash = safe_decimal(internal_cash_usd)
    official = safe_nav(official_nav)

    shadow_nav = calculate_shadow_nav(custodian_positions, custodian_cash)
    delta = shadow_nav - official
    delta_bps = delta / official * BPS

    custodian_by_ticker = {p.ticker: p for p in custodian_positions}
    position_breaks: List[AnyBreak] = []

    for internal in internal_positions:
        custodian = custodian_by_ticker.get(internal.ticker)
        if custodian is None:
            missing = MissingPositionBreak(
                break_id=f"brk_{len(position_breaks)}",
                ticker=internal.ticker,
                name=internal.name or None,
                internal_qty=internal.quantity,
                internal_value=internal.market_value,
                delta=-internal.quantity,
                delta_usd=-internal.market_value,
            )
            # No comparison base exists, so only the absolute floor applies.
            if abs(missing.delta_usd) >= tolerance.absolute_usd:
                missing.cause_analysis = analyze_break_cause(missing)
                position_breaks.append(missing)
            continue

        delta_usd = custodian.market_value_usd - internal.market_value
        position_delta_bps = abs(delta_usd / official * BPS)
        if (
            abs(delta_usd) < tolerance.absolute_usd
            and position_delta_bps < tolerance.relative_bps
        ):
            continue

        brk = _classify_matched(
            f"brk_{len(position_breaks)}", internal, custodian, fx_rates, delta_usd
        )
        if brk is not None:
            brk.cause_analysis = analyze_break_cause(brk)
            position_breaks.append(brk)

    cash_breaks: List[CashBreak] = []
    cash_delta = custodian_cash - internal_cash
    if abs(cash_delta) >= tolerance.absolute_usd:
        cash_break = CashBreak(
            break_id="cash_brk_0",
            currency="USD",
            custodian_amount=custodian_cash,
            internal_amount=internal_cash,
            delta=cash_delta,
            delta_usd=cash_delta,
        )
        cash_break.cause_analysis = analyze_break_cause(cash_break)
        cash_breaks.append(cash_break)

    all_breaks = [*position_breaks, *cash_breaks]
    unresolved = count_unresolved(all_breaks)
    status = derive_recon_status(delta_bps, unresolved)

    logger.debug(
        "Reconciled NAV. shadow=%s official=%s delta_bps=%s position_breaks=%d cash_breaks=%d",
        shadow_nav,
        official,
        delta_bps,
        len(position_breaks),
        len(cash_breaks),
    )

    return NavReconciliation(
        shadow_nav=shadow_nav,
        official_nav=official,
        delta=delta,
        delta_bps=delta_bps,
        position_breaks=position_breaks,
        cash_breaks=cash_breaks,
        unresolved_count=unresolved,
        status=status,
        breaks_by_cause=group_breaks_by_cause(all_breaks),
    )
