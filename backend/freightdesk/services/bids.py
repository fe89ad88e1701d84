"""Bid lifecycle helpers used when rendering a load's negotiation state."""
from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, FrozenSet

from freightdesk.models.loads import Bid, BidStatus


class BidConflictError(Exception):
    """Raised when a load has more than one accepted bid."""

    def __init__(self, load_id: Optional[str], bid_ids: list[str]) -> None:
        self.load_id = load_id
        self.bid_ids = bid_ids
        super().__init__(f"Load {load_id or '?'} has {len(bid_ids)} accepted bids: {', '.join(bid_ids)}")


BID_TRANSITIONS: Mapping[BidStatus, FrozenSet[BidStatus]] = MappingProxyType({
    BidStatus.ACTIVE: frozenset({BidStatus.ACCEPTED, BidStatus.REJECTED}),
    BidStatus.ACCEPTED: frozenset(),
    BidStatus.REJECTED: frozenset(),
})


def can_transition_bid(current: BidStatus, new: BidStatus) -> bool:
    return new in BID_TRANSITIONS.get(current, frozenset())


def accepted_bid(bids: Iterable[Bid]) -> Optional[Bid]:
    """Return the single accepted bid for a load, if any."""
    accepted = [bid for bid in bids if bid.status == BidStatus.ACCEPTED]
    if not accepted:
        return None
    if len(accepted) > 1:
        raise BidConflictError(accepted[0].load_id, [bid.id for bid in accepted])
    return accepted[0]


def effective_amount(bid: Bid) -> Optional[Decimal]:
    """Counter amount when one was proposed, otherwise the original offer."""
    if bid.counter_amount is not None:
        return bid.counter_amount
    return bid.amount
