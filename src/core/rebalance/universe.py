from decimal import Decimal
from typing import AbstractSet, List, Tuple

from src.core.common.numeric import ZERO
from src.core.models import Position, RebalanceMode, SettlementHorizon, SkippedPosition

ACTIVE_THRESHOLD_BPS = Decimal("10")
US_LISTING_SUFFIX = " US"


def is_us_equity(ticker: str) -> bool:
    return ticker.endswith(US_LISTING_SUFFIX)


def settlement_bucket_for(ticker: str) -> SettlementHorizon:
    return SettlementHorizon.T1 if is_us_equity(ticker) else SettlementHorizon.T2


def eligibility_skip_reason(position: Position) -> str | None:
    if not position.tradable:
        return "Not tradable"
    if position.restricted:
        return "Restricted"
    if position.price <= ZERO:
        return "Missing price"
    return None


def build_candidates(
    positions: List[Position],
    mode: RebalanceMode,
    selected_tickers: AbstractSet[str],
) -> Tuple[List[Position], List[SkippedPosition]]:
    """Applies the eligibility filter, then the mode's candidate rule."""
    candidates: List[Position] = []
    skipped: List[SkippedPosition] = []

    for position in positions:
        reason = eligibility_skip_reason(position)
        if reason is not None:
            skipped.append(SkippedPosition(ticker=position.ticker, reason=reason))
            continue

        if mode == "everything":
            candidates.append(position)
        elif mode == "selected":
            if position.ticker in selected_tickers:
                candidates.append(position)
        elif abs(position.diff_bps) >= ACTIVE_THRESHOLD_BPS:
            candidates.append(position)

    return candidates, skipped
