"""
Deterministic data-quality checks over a portfolio snapshot and a sized
rebalance config, run before trading off the book.
"""

import logging
from decimal import Decimal
from typing import Any, List

from src.core.common.numeric import HUNDRED, ONE, ZERO, safe_decimal
from src.core.models import (
    DataQualityCheck,
    DataQualityReport,
    PortfolioSnapshot,
    RebalanceConfig,
)

logger = logging.getLogger(__name__)

WEIGHT_SUM_TOLERANCE_PCT = Decimal("5")
CASH_CAP_SLACK_USD = ONE


def _is_finite(value: Any) -> bool:
    return isinstance(value, Decimal) and value.is_finite()


def _check(name: str, description: str, failed: bool, **details: str) -> DataQualityCheck:
    return DataQualityCheck(
        name=name,
        description=description,
        status="failed" if failed else "passed",
        details={k: v for k, v in details.items() if v},
    )


def check_finite_values(portfolio: PortfolioSnapshot) -> DataQualityCheck:
    bad = [
        p.ticker
        for p in portfolio.positions
        if not (_is_finite(p.price) and _is_finite(p.weight))
    ]
    return _check("No NaN values", "All position values valid", bool(bad), tickers=",".join(bad))


def check_weights_sum(portfolio: PortfolioSnapshot) -> DataQualityCheck:
    total = sum((safe_decimal(p.weight) for p in portfolio.positions), ZERO)
    total += safe_decimal(portfolio.current_cash_pct)
    off = abs(total - HUNDRED) >= WEIGHT_SUM_TOLERANCE_PCT
    return _check("Weights sanity", "Weights + cash ≈ 100%", off, total_pct=str(total))


def check_cash_ladder(portfolio: PortfolioSnapshot) -> DataQualityCheck:
    negative = [b.currency for b in portfolio.cash_buckets if safe_decimal(b.total) < ZERO]
    return _check(
        "Cash ladder valid", "No negative buckets", bool(negative), currencies=",".join(negative)
    )


def check_cash_cap(config: RebalanceConfig) -> DataQualityCheck:
    available = safe_decimal(config.available_cash)
    investable = safe_decimal(config.investable_cash)
    return _check(
        "Cash cap enforced",
        "Investable ≤ Available",
        investable > available + CASH_CAP_SLACK_USD,
        investable=str(investable),
        available=str(available),
    )


def run_data_quality_checks(
    portfolio: PortfolioSnapshot, config: RebalanceConfig
) -> DataQualityReport:
    checks: List[DataQualityCheck] = [
        check_finite_values(portfolio),
        check_weights_sum(portfolio),
        check_cash_ladder(portfolio),
        check_cash_cap(config),
    ]
    failed = [c.name for c in checks if c.status == "failed"]
    if failed:
        logger.warning("Data quality checks failed: %s", ", ".join(failed))
    return DataQualityReport(checks=checks, overall_status="failed" if failed else "passed")
