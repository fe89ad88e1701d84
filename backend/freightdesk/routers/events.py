"""Relay endpoint for marketplace channel messages."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from freightdesk.core.auth import ActorContext, require_roles
from freightdesk.core.logging import logger
from freightdesk.models.events import DispatchResult, MarketplaceEvent
from freightdesk.services.marketplace_events import MarketplaceEventRouter

router = APIRouter(prefix="/events", tags=["events"])

marketplace_events = MarketplaceEventRouter()


def _log_event(event: MarketplaceEvent) -> None:
    logger.info("Marketplace event received", event_type=event.type, load_id=event.load_id)


for _event_type in ("load_submitted", "bid_received", "counter_offer"):
    marketplace_events.on(_event_type, _log_event)


@router.post("/marketplace", response_model=DispatchResult)
async def relay_marketplace_event(
    message: Dict[str, Any],
    context: ActorContext = Depends(require_roles("admin")),
) -> DispatchResult:
    """Route one channel message and return the resources the console must re-fetch."""
    return marketplace_events.dispatch(message)
