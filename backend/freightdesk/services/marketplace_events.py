"""
Marketplace event routing.

Events pushed by the marketplace channel are not applied to local state; each
one names the REST resources that must be re-fetched, and registered handlers
are notified so they can do so.
"""
from __future__ import annotations

import json
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from freightdesk.core.logging import logger
from freightdesk.models.events import DispatchResult, MarketplaceEvent, MarketplaceEventType

EventHandler = Callable[[MarketplaceEvent], Any]

REFETCH_TARGETS: Dict[str, Tuple[str, ...]] = {
    MarketplaceEventType.LOAD_POSTED.value: ("/api/carrier/loads", "/api/loads"),
    MarketplaceEventType.LOAD_UPDATED.value: ("/api/carrier/loads", "/api/loads", "/api/loads/{load_id}"),
    MarketplaceEventType.LOAD_SUBMITTED.value: ("/api/admin/queue", "/api/loads"),
    MarketplaceEventType.BID_RECEIVED.value: ("/api/admin/negotiations", "/api/bids", "/api/loads/{load_id}/bids"),
    MarketplaceEventType.COUNTER_OFFER.value: ("/api/admin/negotiations", "/api/bids", "/api/loads/{load_id}/bids"),
    MarketplaceEventType.BID_ACCEPTED.value: ("/api/bids", "/api/admin/queue", "/api/loads/{load_id}"),
    MarketplaceEventType.INVOICE_UPDATED.value: ("/api/admin/invoices", "/api/loads/{load_id}"),
}


def _first_present(*values: Any) -> Any:
    return next((value for value in values if value is not None), None)


def parse_event(raw: Union[str, bytes, Dict[str, Any]]) -> Optional[MarketplaceEvent]:
    """Parse a channel message; returns None for anything malformed."""
    data: Any = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(data, dict) or not data.get("type"):
        return None

    fields = dict(data)
    event_type = str(fields.pop("type")).strip().lower()
    load_id = _first_present(fields.pop("loadId", None), fields.pop("load_id", None))
    bid_id = _first_present(fields.pop("bidId", None), fields.pop("bid_id", None))
    if load_id is None and isinstance(fields.get("load"), dict):
        load_id = fields["load"].get("id")
    try:
        return MarketplaceEvent(
            type=event_type,
            load_id=str(load_id) if load_id is not None else None,
            bid_id=str(bid_id) if bid_id is not None else None,
            payload=fields,
        )
    except ValidationError:
        return None


def refetch_targets(event: MarketplaceEvent) -> List[str]:
    targets: List[str] = []
    for template in REFETCH_TARGETS.get(event.type, ()):
        if "{load_id}" in template:
            if not event.load_id:
                continue
            template = template.format(load_id=event.load_id)
        targets.append(template)
    return targets


class MarketplaceEventRouter:
    """Fan channel messages out to subscribers by event type."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def on(self, event_type: str, handler: EventHandler) -> Callable[[], None]:
        key = event_type.strip().lower()
        self._handlers[key].append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers.get(key, []):
                self._handlers[key].remove(handler)

        return _unsubscribe

    def dispatch(self, raw: Union[str, bytes, Dict[str, Any]]) -> DispatchResult:
        event = parse_event(raw)
        if event is None:
            logger.warning("Ignoring malformed marketplace message")
            return DispatchResult()

        called = 0
        for handler in list(self._handlers.get(event.type, [])):
            try:
                handler(event)
                called += 1
            except Exception as exc:
                logger.error(
                    "Marketplace event handler failed",
                    event_type=event.type,
                    load_id=event.load_id,
                    error=str(exc),
                )

        return DispatchResult(event=event, refetch=refetch_targets(event), handlers_called=called)
