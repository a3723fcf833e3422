import logging
from typing import Iterable

from src.core.common.numeric import HUNDRED, safe_nav
from src.core.models import (
    CustodianPosition,
    MissingPositionBreak,
    NavReconciliation,
    PortfolioSnapshot,
)
from src.core.valuation import reweight_position

logger = logging.getLogger(__name__)


def apply_custodian_resolutions(
    portfolio: PortfolioSnapshot,
    recon: NavReconciliation,
    custodian_positions: Iterable[CustodianPosition],
) -> PortfolioSnapshot:
    """
    Pushes `accept_custodian` decisions into a new book-of-record snapshot.
    Missing-position breaks have no custodian row to accept and are left alone.
    """
    custodian_by_ticker = {p.ticker: p for p in custodian_positions}
    accepted = {
        brk.ticker
        for brk in recon.position_breaks
        if brk.resolution == "accept_custodian" and not isinstance(brk, MissingPositionBreak)
    }

    positions = []
    for position in portfolio.positions:
        custodian = custodian_by_ticker.get(position.ticker)
        if position.ticker in accepted and custodian is not None:
            position = position.model_copy(
                update={"quantity": custodian.quantity, "price": custodian.price}
            )
            position = reweight_position(position, custodian.market_value_usd, portfolio.nav_usd)
        positions.append(position)

    cash_usd = portfolio.current_cash_usd
    for cash_break in recon.cash_breaks:
        if cash_break.resolution == "accept_custodian":
            cash_usd = cash_break.custodian_amount

    logger.info("Applied %d accepted custodian position resolutions", len(accepted))
    return portfolio.model_copy(
        update={
            "positions": positions,
            "current_cash_usd": cash_usd,
            "current_cash_pct": cash_usd / safe_nav(portfolio.nav_usd) * HUNDRED,
        }
    )
