"""
Break workflow actions. Resolution (decision taken) and status (workflow stage)
are independent axes; every action returns a new NavReconciliation.
"""

import uuid
from typing import Callable, Optional

from src.core.models import (
    AnyBreak,
    BreakCause,
    BreakResolution,
    BreakStatus,
    CauseOverride,
    NavReconciliation,
)
from src.core.recon.engine import count_unresolved

VALID_STATUS_TRANSITIONS: dict[BreakStatus, set[BreakStatus]] = {
    "New": {"Assigned", "In Progress", "Resolved", "Waived"},
    "Assigned": {"In Progress", "Resolved", "Waived"},
    "In Progress": {"Resolved", "Waived"},
    "Resolved": {"In Progress"},
    "Waived": {"In Progress"},
}


class BreakNotFoundError(Exception):
    pass


class BreakTransitionError(Exception):
    pass


def find_break(recon: NavReconciliation, break_id: str) -> AnyBreak:
    for brk in [*recon.position_breaks, *recon.cash_breaks]:
        if brk.break_id == break_id:
            return brk
    raise BreakNotFoundError(f"BREAK_NOT_FOUND: {break_id}")


def _update_break(
    recon: NavReconciliation, break_id: str, update: Callable[[AnyBreak], dict]
) -> NavReconciliation:
    current = find_break(recon, break_id)
    changes = update(current)

    def _apply(brk):
        return brk.model_copy(update=changes, deep=True) if brk.break_id == break_id else brk

    position_breaks = [_apply(b) for b in recon.position_breaks]
    cash_breaks = [_apply(b) for b in recon.cash_breaks]
    return recon.model_copy(
        update={
            "position_breaks": position_breaks,
            "cash_breaks": cash_breaks,
            "unresolved_count": count_unresolved([*position_breaks, *cash_breaks]),
        }
    )


def resolve_workflow_transition(current: BreakStatus, target: BreakStatus) -> bool:
    return current == target or target in VALID_STATUS_TRANSITIONS.get(current, set())


def update_break_status(
    recon: NavReconciliation, break_id: str, status: BreakStatus
) -> NavReconciliation:
    def _changes(brk: AnyBreak) -> dict:
        if not resolve_workflow_transition(brk.status, status):
            raise BreakTransitionError(
                f"BREAK_INVALID_TRANSITION: {brk.status} -> {status} ({break_id})"
            )
        return {"status": status}

    return _update_break(recon, break_id, _changes)


def assign_break_owner(recon: NavReconciliation, break_id: str, owner: str) -> NavReconciliation:
    def _changes(brk: AnyBreak) -> dict:
        return {"owner": owner, "status": "Assigned" if brk.status == "New" else brk.status}

    return _update_break(recon, break_id, _changes)


def resolve_break(
    recon: NavReconciliation,
    break_id: str,
    resolution: BreakResolution,
    notes: Optional[str] = None,
    ticket_id: Optional[str] = None,
) -> NavReconciliation:
    def _changes(brk: AnyBreak) -> dict:
        if resolution == "ticket_opened":
            resolved_ticket = ticket_id or f"TKT-{uuid.uuid4().hex[:8].upper()}"
        else:
            resolved_ticket = None
        return {
            "resolution": resolution,
            "status": "New" if resolution == "unresolved" else "Resolved",
            "ticket_id": resolved_ticket,
            "notes": notes or brk.notes,
        }

    return _update_break(recon, break_id, _changes)


def waive_break(recon: NavReconciliation, break_id: str, notes: str) -> NavReconciliation:
    def _changes(brk: AnyBreak) -> dict:
        if not resolve_workflow_transition(brk.status, "Waived"):
            raise BreakTransitionError(
                f"BREAK_INVALID_TRANSITION: {brk.status} -> Waived ({break_id})"
            )
        return {"status": "Waived", "notes": notes}

    return _update_break(recon, break_id, _changes)


def update_break_notes(recon: NavReconciliation, break_id: str, notes: str) -> NavReconciliation:
    return _update_break(recon, break_id, lambda _brk: {"notes": notes})


def override_break_cause(
    recon: NavReconciliation, break_id: str, cause: BreakCause, note: str
) -> NavReconciliation:
    """Records a manual cause; the automated analysis stays on the break."""
    override = CauseOverride(cause=cause, note=note)
    return _update_break(recon, break_id, lambda _brk: {"cause_override": override})
