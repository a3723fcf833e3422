"""Environment-driven defaults for the cockpit API."""

import json
import logging
import os
from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping, Optional

from fastapi import HTTPException, status

from src.core.models import BreakTolerance

logger = logging.getLogger(__name__)

DEFAULT_FX_RATES: Dict[str, Decimal] = {
    "USD": Decimal("1.0"),
    "EUR": Decimal("1.085"),
    "GBP": Decimal("1.333"),
    "CHF": Decimal("1.12"),
    "JPY": Decimal("0.0067"),
}


def env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def env_decimal(name: str, default: Decimal) -> Decimal:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = Decimal(value.strip())
    except InvalidOperation:
        return default
    return parsed if parsed.is_finite() and parsed >= 0 else default


def default_tolerance() -> BreakTolerance:
    return BreakTolerance(
        absolute_usd=env_decimal("RECON_TOLERANCE_ABSOLUTE_USD", Decimal("1000")),
        relative_bps=env_decimal("RECON_TOLERANCE_RELATIVE_BPS", Decimal("1")),
    )


def default_fx_rates() -> Dict[str, Decimal]:
    raw = os.getenv("COCKPIT_DEFAULT_FX_RATES_JSON")
    if not raw:
        return dict(DEFAULT_FX_RATES)
    try:
        parsed = json.loads(raw)
        rates = {str(ccy).upper(): Decimal(str(rate)) for ccy, rate in parsed.items()}
    except (ValueError, AttributeError, InvalidOperation):
        logger.warning("Ignoring malformed COCKPIT_DEFAULT_FX_RATES_JSON")
        return dict(DEFAULT_FX_RATES)
    rates.setdefault("USD", Decimal("1.0"))
    return rates


def assert_feature_enabled(*, name: str, default: bool = True, detail: str) -> None:
    if not env_flag(name, default):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def resolve_fx_rates(fx_rates: Optional[Mapping[str, Decimal]]) -> Dict[str, Decimal]:
    if not fx_rates:
        return default_fx_rates()
    return dict(fx_rates)
