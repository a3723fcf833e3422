from typing import Annotated, Callable

from fastapi import APIRouter, Path, status

from src.api.config import assert_feature_enabled, default_tolerance, resolve_fx_rates
from src.api.http_errors import raise_domain_http_exception
from src.api.request_models import (
    BreakAssignRequest,
    BreakCauseOverrideRequest,
    BreakNotesRequest,
    BreakResolveRequest,
    BreakStatusRequest,
    ReconciliationRequest,
)
from src.core.models import NavReconciliation
from src.core.recon import (
    BreakNotFoundError,
    BreakTransitionError,
    assign_break_owner,
    override_break_cause,
    reconcile_nav,
    resolve_break,
    update_break_notes,
    update_break_status,
    waive_break,
)

router = APIRouter(prefix="/reconciliation", tags=["NAV Reconciliation"])

RECONCILIATION_DISABLED = "COCKPIT_RECONCILIATION_DISABLED"

BreakId = Annotated[
    str, Path(description="Break identifier from the reconciliation payload.", examples=["brk_0"])
]


def _assert_reconciliation_enabled() -> None:
    assert_feature_enabled(name="COCKPIT_RECONCILIATION_ENABLED", detail=RECONCILIATION_DISABLED)


def _apply(action: Callable[[], NavReconciliation]) -> NavReconciliation:
    _assert_reconciliation_enabled()
    try:
        return action()
    except (BreakNotFoundError, BreakTransitionError) as exc:
        raise_domain_http_exception(exc)


@router.post(
    "/nav",
    response_model=NavReconciliation,
    status_code=status.HTTP_200_OK,
    summary="Reconcile Custodian against Internal Book",
    description=(
        "Recomputes shadow NAV from the custodian record, detects position and cash "
        "breaks under tolerance, and classifies each break's likely cause."
    ),
)
def reconcile(request: ReconciliationRequest) -> NavReconciliation:
    _assert_reconciliation_enabled()
    portfolio = request.portfolio
    official_nav = request.official_nav
    if official_nav is None:
        official_nav = portfolio.admin_nav or portfolio.nav_usd
    internal_cash = request.internal_cash_usd
    if internal_cash is None:
        internal_cash = portfolio.current_cash_usd
    return reconcile_nav(
        request.custodian_positions,
        portfolio.positions,
        request.custodian_cash_usd,
        internal_cash,
        official_nav,
        resolve_fx_rates(request.fx_rates),
        tolerance=request.tolerance or default_tolerance(),
    )


@router.post(
    "/breaks/{break_id}/assign",
    response_model=NavReconciliation,
    summary="Assign a Break Owner",
    responses={404: {"description": "Break not found."}},
)
def assign(request: BreakAssignRequest, break_id: BreakId) -> NavReconciliation:
    return _apply(lambda: assign_break_owner(request.reconciliation, break_id, request.owner))


@router.post(
    "/breaks/{break_id}/status",
    response_model=NavReconciliation,
    summary="Advance a Break's Workflow Status",
    responses={
        404: {"description": "Break not found."},
        409: {"description": "Status transition not allowed."},
    },
)
def change_status(request: BreakStatusRequest, break_id: BreakId) -> NavReconciliation:
    return _apply(lambda: update_break_status(request.reconciliation, break_id, request.status))


@router.post(
    "/breaks/{break_id}/resolve",
    response_model=NavReconciliation,
    summary="Record a Break Resolution",
    responses={404: {"description": "Break not found."}},
)
def resolve(request: BreakResolveRequest, break_id: BreakId) -> NavReconciliation:
    return _apply(
        lambda: resolve_break(
            request.reconciliation,
            break_id,
            request.resolution,
            notes=request.notes,
            ticket_id=request.ticket_id,
        )
    )


@router.post(
    "/breaks/{break_id}/cause-override",
    response_model=NavReconciliation,
    summary="Override a Break's Automated Cause",
    responses={404: {"description": "Break not found."}},
)
def cause_override(
    request: BreakCauseOverrideRequest, break_id: BreakId
) -> NavReconciliation:
    return _apply(
        lambda: override_break_cause(request.reconciliation, break_id, request.cause, request.note)
    )


@router.post(
    "/breaks/{break_id}/waive",
    response_model=NavReconciliation,
    summary="Waive a Break",
    responses={
        404: {"description": "Break not found."},
        409: {"description": "Break cannot be waived from its current status."},
    },
)
def waive(request: BreakNotesRequest, break_id: BreakId) -> NavReconciliation:
    return _apply(lambda: waive_break(request.reconciliation, break_id, request.notes))


@router.post(
    "/breaks/{break_id}/notes",
    response_model=NavReconciliation,
    summary="Replace a Break's Notes",
    responses={404: {"description": "Break not found."}},
)
def notes(request: BreakNotesRequest, break_id: BreakId) -> NavReconciliation:
    return _apply(lambda: update_break_notes(request.reconciliation, break_id, request.notes))
