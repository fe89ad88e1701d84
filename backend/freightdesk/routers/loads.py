"""API routes for the admin load queue: status badges, next actions, price hints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from freightdesk.core.auth import ActorContext, get_actor_context, require_roles
from freightdesk.core.logging import logger
from freightdesk.models.loads import (
    Load,
    LoadStatusView,
    LoadSummary,
    TRUCK_TYPES,
    TruckTypeRate,
)
from freightdesk.models.pricing import EstimateRequest, PriceEstimate
from freightdesk.services.bids import BidConflictError, accepted_bid, effective_amount
from freightdesk.services.marketplace_client import (
    LoadFetchError,
    MarketplaceClient,
    get_marketplace_client,
)
from freightdesk.services.pricing_estimator import RATE_PER_KM, pricing_estimator
from freightdesk.services.state_display import resolve_admin_action, resolve_state_display

router = APIRouter(prefix="/loads", tags=["loads"])


@router.get("/status/{status}", response_model=LoadStatusView)
async def get_status_view(
    status: str,
    context: ActorContext = Depends(get_actor_context),
) -> LoadStatusView:
    """Badge and next admin action for a status string. Unknown statuses fall back."""
    return LoadStatusView(
        status=status,
        display=resolve_state_display(status),
        admin_action=resolve_admin_action(status),
    )


@router.get("/truck-types", response_model=List[TruckTypeRate])
async def list_truck_types(
    context: ActorContext = Depends(get_actor_context),
) -> List[TruckTypeRate]:
    return [TruckTypeRate(truck_type=name, rate_per_km=RATE_PER_KM[name]) for name in TRUCK_TYPES]


@router.post("/estimate", response_model=PriceEstimate)
async def estimate_load_price(
    load: Load,
    context: ActorContext = Depends(require_roles("admin", "finance")),
) -> PriceEstimate:
    """Suggested price for a load record (camelCase or snake_case keys)."""
    return pricing_estimator.estimate_price(load)


@router.post("/estimate/route", response_model=PriceEstimate)
async def estimate_route_price(
    request: EstimateRequest,
    context: ActorContext = Depends(require_roles("admin", "finance")),
) -> PriceEstimate:
    """Suggested price for an ad-hoc route before a load exists."""
    return pricing_estimator.estimate(
        request.pickup,
        request.dropoff,
        request.truck_type,
        request.weight_tons,
    )


@router.get("/{load_id}/summary", response_model=LoadSummary)
async def get_load_summary(
    load_id: str,
    context: ActorContext = Depends(require_roles("admin", "finance")),
    client: MarketplaceClient = Depends(get_marketplace_client),
) -> LoadSummary:
    """Fetch a load and its bids from the marketplace and resolve what the queue shows."""
    try:
        load = await client.get_load(load_id)
        bids = await client.list_bids(load_id)
    except LoadFetchError as exc:
        logger.error("Load summary fetch failed", load_id=load_id, error=str(exc))
        if exc.status_code == 404:
            raise HTTPException(status_code=404, detail=f"Load {load_id} not found")
        raise HTTPException(status_code=502, detail=exc.detail or str(exc))

    try:
        winner = accepted_bid(bids)
    except BidConflictError as exc:
        logger.error("Load has conflicting accepted bids", load_id=load_id, bid_ids=exc.bid_ids)
        raise HTTPException(status_code=409, detail=str(exc))

    return LoadSummary(
        load=load,
        display=resolve_state_display(load.status),
        admin_action=resolve_admin_action(load.status),
        estimate=pricing_estimator.estimate_price(load),
        bids=bids,
        accepted_bid=winner,
        accepted_amount=effective_amount(winner) if winner else None,
    )
