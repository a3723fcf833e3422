"""Break classifier package."""

from src.core.recon.causes import analyze_break_cause
from src.core.recon.engine import calculate_shadow_nav, group_breaks_by_cause, reconcile_nav
from src.core.recon.resolutions import apply_custodian_resolutions
from src.core.recon.workflow import (
    BreakNotFoundError,
    BreakTransitionError,
    assign_break_owner,
    find_break,
    override_break_cause,
    resolve_break,
    update_break_notes,
    update_break_status,
    waive_break,
)

__all__ = [
    "BreakNotFoundError",
    "BreakTransitionError",
    "analyze_break_cause",
    "apply_custodian_resolutions",
    "assign_break_owner",
    "calculate_shadow_nav",
    "find_break",
    "group_breaks_by_cause",
    "override_break_cause",
    "reconcile_nav",
    "resolve_break",
    "update_break_notes",
    "update_break_status",
    "waive_break",
]
