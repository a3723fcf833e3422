from fastapi import APIRouter, status

from src.api.config import assert_feature_enabled, resolve_fx_rates
from src.api.request_models import ShadowNavRequest
from src.core.models import ShadowNavCard
from src.core.nav import calculate_shadow_nav_card

router = APIRouter(prefix="/nav", tags=["Shadow NAV"])


@router.post(
    "/shadow-card",
    response_model=ShadowNavCard,
    status_code=status.HTTP_200_OK,
    summary="Compose the Shadow NAV Card",
    description=(
        "Shadow NAV from internal positions and T cash, with a bridge attributing the "
        "gap to the administrator NAV. Items at or below $100 are listed in `hidden_items`."
    ),
)
def shadow_card(request: ShadowNavRequest) -> ShadowNavCard:
    assert_feature_enabled(name="COCKPIT_NAV_ENABLED", detail="COCKPIT_NAV_DISABLED")
    return calculate_shadow_nav_card(
        request.portfolio,
        request.custodian_positions,
        request.custodian_cash_usd,
        resolve_fx_rates(request.fx_rates),
    )
