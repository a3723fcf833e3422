from decimal import Decimal

from src.core.common.data_quality import run_data_quality_checks
from src.core.models import Position, RebalanceConfig
from tests.factories import cash_bucket, portfolio_snapshot, position


def _balanced_portfolio():
    return portfolio_snapshot(
        current_cash_usd="1000000",
        current_cash_pct=Decimal("10"),
        positions=[
            position("AAPL US", quantity="25000", price="200"),
            position("SAP GY", quantity="36866", price="100", currency="EUR"),
        ],
        cash_buckets=[cash_bucket("USD", t="1000000")],
    )


def _sized(available: str = "1000000", investable: str = "950000") -> RebalanceConfig:
    return RebalanceConfig(available_cash=Decimal(available), investable_cash=Decimal(investable))


def _by_name(report):
    return {c.name: c for c in report.checks}


def test_clean_book_passes_every_check():
    report = run_data_quality_checks(_balanced_portfolio(), _sized())

    assert [c.name for c in report.checks] == [
        "No NaN values",
        "Weights sanity",
        "Cash ladder valid",
        "Cash cap enforced",
    ]
    assert all(c.status == "passed" for c in report.checks)
    assert report.overall_status == "passed"


def test_non_finite_position_values_fail_and_are_named():
    corrupt = Position.model_construct(
        ticker="BAD US", currency="USD", price=Decimal("NaN"), weight=Decimal("0")
    )
    portfolio = _balanced_portfolio()
    portfolio = portfolio.model_copy(update={"positions": [*portfolio.positions, corrupt]})

    report = run_data_quality_checks(portfolio, _sized())

    check = _by_name(report)["No NaN values"]
    assert check.status == "failed"
    assert check.details == {"tickers": "BAD US"}
    assert _by_name(report)["Weights sanity"].status == "passed"
    assert report.overall_status == "failed"


def test_weights_plus_cash_must_be_within_five_of_hundred():
    portfolio = _balanced_portfolio().model_copy(update={"current_cash_pct": Decimal("16")})

    check = _by_name(run_data_quality_checks(portfolio, _sized()))["Weights sanity"]

    assert check.status == "failed"
    assert Decimal(check.details["total_pct"]) > Decimal("105")


def test_negative_bucket_total_fails_ladder_check():
    ladder = [cash_bucket("USD", t="1000000"), cash_bucket("CHF", t="-2500")]
    portfolio = _balanced_portfolio().model_copy(update={"cash_buckets": ladder})

    check = _by_name(run_data_quality_checks(portfolio, _sized()))["Cash ladder valid"]

    assert check.status == "failed"
    assert check.details == {"currencies": "CHF"}


def test_cash_cap_allows_one_dollar_of_slack():
    within = run_data_quality_checks(_balanced_portfolio(), _sized("1000", "1001"))
    over = run_data_quality_checks(_balanced_portfolio(), _sized("1000", "1001.01"))

    assert _by_name(within)["Cash cap enforced"].status == "passed"
    assert _by_name(over)["Cash cap enforced"].status == "failed"
