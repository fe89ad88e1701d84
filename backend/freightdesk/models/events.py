"""Marketplace push-channel event models."""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class MarketplaceEventType(str, Enum):
    LOAD_POSTED = "load_posted"
    LOAD_UPDATED = "load_updated"
    LOAD_SUBMITTED = "load_submitted"
    BID_RECEIVED = "bid_received"
    COUNTER_OFFER = "counter_offer"
    BID_ACCEPTED = "bid_accepted"
    INVOICE_UPDATED = "invoice_updated"


class MarketplaceEvent(BaseModel):
    """A message received on the marketplace channel.

    `type` stays a free string so new server-side event kinds do not break
    parsing; unknown kinds simply trigger no refetch.
    """
    type: str
    load_id: Optional[str] = None
    bid_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


class DispatchResult(BaseModel):
    event: Optional[MarketplaceEvent] = None
    refetch: List[str] = Field(default_factory=list)
    handlers_called: int = 0
