"""API routes for the platform margin / carrier payout split."""
from fastapi import APIRouter, Depends

from freightdesk.core.auth import ActorContext, require_roles
from freightdesk.models.pricing import (
    MarginFromPayoutRequest,
    MarginFromPercentRequest,
    MarginSplit,
    MarginValidationRequest,
    PricingValidation,
)
from freightdesk.services.margin_split import (
    calculate_from_margin,
    calculate_from_payout,
    validate_pricing,
)

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/from-margin", response_model=MarginSplit)
async def split_from_margin(
    request: MarginFromPercentRequest,
    context: ActorContext = Depends(require_roles("admin", "finance")),
) -> MarginSplit:
    """Carrier payout for a gross price at a given platform margin %."""
    return calculate_from_margin(request.gross_price, request.platform_margin_percent)


@router.post("/from-payout", response_model=MarginSplit)
async def split_from_payout(
    request: MarginFromPayoutRequest,
    context: ActorContext = Depends(require_roles("admin", "finance")),
) -> MarginSplit:
    """Platform margin % implied by a gross price and an agreed carrier payout."""
    return calculate_from_payout(request.gross_price, request.carrier_payout)


@router.post("/validate", response_model=PricingValidation)
async def validate_split(
    request: MarginValidationRequest,
    context: ActorContext = Depends(require_roles("admin", "finance")),
) -> PricingValidation:
    return validate_pricing(
        request.gross_price,
        request.platform_margin_percent,
        request.carrier_payout,
    )
