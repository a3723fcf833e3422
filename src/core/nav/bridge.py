"""
Shadow NAV card: recomputes NAV from the internal book and attributes the gap to
the administrator NAV across price, FX, cash/timing, fee accrual and a residual.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from src.core.cash.ladder import total_cash_usd
from src.core.common.numeric import ZERO, fx_to_usd, safe_decimal, safe_nav, to_bps
from src.core.models import CustodianPosition, NavBridgeItem, PortfolioSnapshot, ShadowNavCard

logger = logging.getLogger(__name__)

DEFAULT_SHARES_OUTSTANDING = Decimal("10000000")
DEFAULT_MANAGEMENT_FEE_BPS = Decimal("25")
DISPLAY_THRESHOLD_USD = Decimal("100")
DAYS_PER_YEAR = Decimal("365")
FX_MODE = "WMR 4pm London"


def _or_default(value: Optional[Decimal], default: Decimal) -> Decimal:
    value = safe_decimal(value)
    return value if value != ZERO else default


def price_effect(
    portfolio: PortfolioSnapshot,
    custodian_by_ticker: Dict[str, CustodianPosition],
    fx_rates: Mapping[str, Decimal],
) -> Decimal:
    effect = ZERO
    for position in portfolio.positions:
        custodian = custodian_by_ticker.get(position.ticker)
        if custodian is None:
            continue
        rate = fx_to_usd(fx_rates, position.currency)
        effect += (custodian.price - position.price) * position.quantity * rate
    return effect


def fx_effect(
    portfolio: PortfolioSnapshot,
    custodian_by_ticker: Dict[str, CustodianPosition],
    fx_rates: Mapping[str, Decimal],
) -> Decimal:
    effect = ZERO
    for position in portfolio.positions:
        custodian = custodian_by_ticker.get(position.ticker)
        if custodian is None or position.currency == "USD":
            continue
        internal_fx = fx_to_usd(fx_rates, position.currency)
        custodian_fx = custodian.fx_rate if custodian.fx_rate != ZERO else internal_fx
        effect += position.price * position.quantity * (custodian_fx - internal_fx)
    return effect


def _split_by_threshold(
    items: Sequence[Tuple[NavBridgeItem, bool]],
) -> Tuple[List[NavBridgeItem], List[NavBridgeItem]]:
    shown: List[NavBridgeItem] = []
    hidden: List[NavBridgeItem] = []
    for item, always_shown in items:
        if always_shown or abs(item.value_usd) > DISPLAY_THRESHOLD_USD:
            shown.append(item)
        else:
            hidden.append(item)
    return shown, hidden


def calculate_shadow_nav_card(
    portfolio: PortfolioSnapshot,
    custodian_positions: Sequence[CustodianPosition],
    custodian_cash_usd: Decimal,
    fx_rates: Mapping[str, Decimal],
    as_of: Optional[datetime] = None,
) -> ShadowNavCard:
    nav = safe_nav(portfolio.nav_usd)
    shares_outstanding = _or_default(portfolio.shares_outstanding, DEFAULT_SHARES_OUTSTANDING)
    fee_bps = _or_default(portfolio.management_fee_bps, DEFAULT_MANAGEMENT_FEE_BPS)
    admin_nav = _or_default(portfolio.admin_nav, nav)
    as_of = as_of or datetime.now(timezone.utc)
    admin_nav_as_of = portfolio.admin_nav_as_of or portfolio.data_as_of or as_of.isoformat()

    positions_usd = sum((p.market_value for p in portfolio.positions), ZERO)
    cash_usd = total_cash_usd(portfolio.cash_buckets, fx_rates)
    shadow_nav = positions_usd + cash_usd

    delta_usd = shadow_nav - admin_nav
    daily_accrual = shadow_nav * (fee_bps / Decimal("10000")) / DAYS_PER_YEAR

    custodian_by_ticker = {c.ticker: c for c in custodian_positions}
    price = price_effect(portfolio, custodian_by_ticker, fx_rates)
    fx = fx_effect(portfolio, custodian_by_ticker, fx_rates)
    cash = cash_usd - safe_decimal(custodian_cash_usd)
    residual = delta_usd - (price + fx + cash - daily_accrual)

    def item(label: str, value: Decimal, description: str) -> NavBridgeItem:
        return NavBridgeItem(
            label=label,
            value_usd=value,
            value_bps=to_bps(value, nav),
            description=description,
        )

    price_item = item("Price Effect", price, "Difference between internal and custodian prices")
    accrual_item = item(
        "Mgmt Fee Accrual", -daily_accrual, f"Daily accrual at {fee_bps}bps annual"
    )
    bridge, hidden = _split_by_threshold(
        [
            (price_item, False),
            (item("FX Effect", fx, "FX rate variance between systems"), False),
            (item("Cash/Timing", cash, "Cash position and settlement timing differences"), False),
            (accrual_item, True),
            (item("Residual", residual, "Unexplained variance"), False),
        ]
    )

    logger.info(
        "Shadow NAV card computed. shadow_nav=%s admin_nav=%s delta_usd=%s hidden_items=%d",
        shadow_nav,
        admin_nav,
        delta_usd,
        len(hidden),
    )

    return ShadowNavCard(
        shadow_nav=shadow_nav,
        nav_per_share=shadow_nav / shares_outstanding,
        admin_nav=admin_nav,
        admin_nav_as_of=admin_nav_as_of,
        delta_usd=delta_usd,
        delta_bps=to_bps(delta_usd, admin_nav),
        fx_mode=FX_MODE,
        as_of_timestamp=as_of.isoformat(),
        daily_accrual=daily_accrual,
        management_fee_bps=fee_bps,
        bridge=bridge,
        hidden_items=hidden,
    )


def bridge_total(card: ShadowNavCard) -> Decimal:
    """Sum of displayed and hidden items; equals `card.delta_usd`."""
    return sum((i.value_usd for i in [*card.bridge, *card.hidden_items]), ZERO)
