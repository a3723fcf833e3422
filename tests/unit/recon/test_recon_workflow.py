from decimal import Decimal

import pytest

from src.core.models import BreakCause
from src.core.recon import (
    BreakNotFoundError,
    BreakTransitionError,
    apply_custodian_resolutions,
    assign_break_owner,
    find_break,
    override_break_cause,
    reconcile_nav,
    resolve_break,
    update_break_notes,
    update_break_status,
    waive_break,
)
from tests.factories import (
    DEFAULT_FX,
    custodian_position,
    portfolio_snapshot,
    position,
)


def _portfolio():
    return portfolio_snapshot(
        current_cash_usd="1000000",
        positions=[
            position("MSFT US", quantity="4000", price="400", index_weight="20"),
            position("NVDA US", quantity="1000", price="500", index_weight="5"),
        ],
    )


def _custodian():
    return [custodian_position("MSFT US", quantity="4100", price="400")]


def _recon():
    portfolio = _portfolio()
    return reconcile_nav(
        _custodian(),
        portfolio.positions,
        Decimal("1020000"),
        portfolio.current_cash_usd,
        portfolio.nav_usd,
        DEFAULT_FX,
    )


def test_assign_moves_new_break_to_assigned():
    recon = _recon()

    updated = assign_break_owner(recon, "brk_0", "ops.analyst")

    brk = find_break(updated, "brk_0")
    assert brk.owner == "ops.analyst"
    assert brk.status == "Assigned"
    assert find_break(recon, "brk_0").status == "New"


def test_resolution_drives_status_and_unresolved_count():
    recon = _recon()
    assert recon.unresolved_count == 3

    resolved = resolve_break(recon, "brk_0", "accept_custodian", notes="Late booking")
    assert find_break(resolved, "brk_0").status == "Resolved"
    assert find_break(resolved, "brk_0").notes == "Late booking"
    assert resolved.unresolved_count == 2

    reopened = resolve_break(resolved, "brk_0", "unresolved")
    assert find_break(reopened, "brk_0").status == "New"
    assert reopened.unresolved_count == 3


def test_ticket_opened_generates_ticket_id_when_missing():
    recon = resolve_break(_recon(), "cash_brk_0", "ticket_opened")

    assert find_break(recon, "cash_brk_0").ticket_id.startswith("TKT-")

    explicit = resolve_break(_recon(), "cash_brk_0", "ticket_opened", ticket_id="TKT-OPS-42")
    assert find_break(explicit, "cash_brk_0").ticket_id == "TKT-OPS-42"


def test_status_workflow_enforces_transitions():
    recon = update_break_status(_recon(), "brk_0", "Assigned")
    recon = update_break_status(recon, "brk_0", "In Progress")
    recon = update_break_status(recon, "brk_0", "Resolved")

    with pytest.raises(BreakTransitionError, match="BREAK_INVALID_TRANSITION"):
        update_break_status(recon, "brk_0", "Assigned")

    reopened = update_break_status(recon, "brk_0", "In Progress")
    assert find_break(reopened, "brk_0").status == "In Progress"


def test_waive_keeps_resolution_and_records_notes():
    recon = waive_break(_recon(), "brk_1", "Position closed on T")

    brk = find_break(recon, "brk_1")
    assert brk.status == "Waived"
    assert brk.resolution == "unresolved"
    assert brk.notes == "Position closed on T"


def test_notes_update_leaves_status():
    recon = update_break_notes(_recon(), "brk_0", "Chasing custodian")

    assert find_break(recon, "brk_0").notes == "Chasing custodian"
    assert find_break(recon, "brk_0").status == "New"


def test_cause_override_keeps_automated_analysis():
    recon = override_break_cause(
        _recon(), "brk_0", BreakCause.CORPORATE_ACTION, "Scrip dividend"
    )

    brk = find_break(recon, "brk_0")
    assert brk.cause_analysis.cause == BreakCause.MISSING_TRADE
    assert brk.cause_override.cause == BreakCause.CORPORATE_ACTION
    assert brk.cause_override.note == "Scrip dividend"
    assert brk.effective_cause == BreakCause.CORPORATE_ACTION


def test_unknown_break_id_raises():
    with pytest.raises(BreakNotFoundError, match="BREAK_NOT_FOUND"):
        assign_break_owner(_recon(), "brk_99", "ops.analyst")


def test_accepted_custodian_values_flow_into_new_portfolio():
    portfolio = _portfolio()
    recon = resolve_break(_recon(), "brk_0", "accept_custodian")
    recon = resolve_break(recon, "cash_brk_0", "accept_custodian")
    recon = resolve_break(recon, "brk_1", "accept_custodian")

    updated = apply_custodian_resolutions(portfolio, recon, _custodian())

    msft, nvda = updated.positions
    assert msft.ticker == "MSFT US"
    assert msft.quantity == Decimal("4100")
    assert msft.market_value == Decimal("1640000")
    assert msft.weight == Decimal("16.4")
    assert msft.diff_bps == Decimal("-360")
    assert nvda == portfolio.positions[1]
    assert updated.current_cash_usd == Decimal("1020000")
    assert updated.current_cash_pct == Decimal("10.2")
    assert portfolio.positions[0].quantity == Decimal("4000")
