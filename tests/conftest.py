"""
FILE: tests/conftest.py
Shared fixtures for cockpit tests.
"""

from pathlib import Path

import pytest

from tests.factories import DEFAULT_FX, cash_bucket, portfolio_snapshot, position


def _has_marker(item: pytest.Item, name: str) -> bool:
    return item.get_closest_marker(name) is not None


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if _has_marker(item, "unit") or _has_marker(item, "integration"):
            continue

        path = Path(str(item.fspath)).as_posix().lower()
        if "/tests/api/" in path or "_integration.py" in path:
            item.add_marker(pytest.mark.integration)
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture
def fx_rates():
    return dict(DEFAULT_FX)


@pytest.fixture
def usd_portfolio():
    """$10M fund, two US lines and $1M of USD cash settling through T+2."""
    return portfolio_snapshot(
        nav_usd="10000000",
        current_cash_usd="1000000",
        positions=[
            position("AAPL US", quantity="10000", price="200", index_weight="60"),
            position("MSFT US", quantity="4000", price="400", index_weight="40"),
        ],
        cash_buckets=[cash_bucket("USD", t="1000000", t1="1000000", t2="1000000")],
    )


@pytest.fixture(autouse=True)
def cockpit_env_defaults(monkeypatch: pytest.MonkeyPatch):
    """Keep feature flags and tolerances at their defaults regardless of the host env."""
    for name in (
        "COCKPIT_RECONCILIATION_ENABLED",
        "COCKPIT_REBALANCE_ENABLED",
        "COCKPIT_CASH_ENABLED",
        "COCKPIT_NAV_ENABLED",
        "COCKPIT_DEFAULT_FX_RATES_JSON",
        "RECON_TOLERANCE_ABSOLUTE_USD",
        "RECON_TOLERANCE_RELATIVE_BPS",
    ):
        monkeypatch.delenv(name, raising=False)
