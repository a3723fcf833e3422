"""
Safe-numeric normalization shared by every entry point of the core.

Inputs arrive from a live dashboard and custodian feeds, so malformed values are
coerced to zero instead of raising. A zero NAV is replaced by one to keep ratios
defined; callers must treat such results as degenerate.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")
BPS = Decimal("10000")
HUNDRED = Decimal("100")


def safe_decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, (int, float, str)):
        try:
            parsed = Decimal(str(value).strip())
        except InvalidOperation:
            return ZERO
        return parsed if parsed.is_finite() else ZERO
    return ZERO


def safe_nav(value: Any) -> Decimal:
    nav = safe_decimal(value)
    if nav == ZERO:
        logger.warning("NAV is zero or missing; substituting 1 for ratio calculations")
        return ONE
    return nav


def fx_to_usd(fx_rates: Mapping[str, Any], currency: str) -> Decimal:
    """USD value of one unit of `currency`; unmapped or zero rates fall back to 1.0."""
    rate = safe_decimal(fx_rates.get(currency))
    if rate == ZERO:
        if currency != "USD":
            logger.debug("No FX rate for %s; defaulting to 1.0", currency)
        return Decimal("1.0")
    return rate


def to_bps(value: Decimal, base: Decimal) -> Decimal:
    return value / base * BPS
