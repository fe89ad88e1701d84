"""Tests for marketplace channel event parsing and refetch routing."""
from __future__ import annotations

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from freightdesk.services.marketplace_events import (  # noqa: E402
    MarketplaceEventRouter,
    parse_event,
    refetch_targets,
)


def test_parse_event_reads_camel_and_snake_ids():
    event = parse_event(json.dumps({"type": "BID_RECEIVED", "loadId": 12, "bidId": "B-1", "amount": 5000}))
    assert event.type == "bid_received"
    assert event.load_id == "12"
    assert event.bid_id == "B-1"
    assert event.payload == {"amount": 5000}

    nested = parse_event({"type": "load_updated", "load": {"id": "L-5"}})
    assert nested.load_id == "L-5"


def test_parse_event_strips_both_id_spellings_from_payload():
    event = parse_event(
        {"type": "bid_received", "loadId": "L-1", "load_id": "L-1", "bidId": "B-1", "bid_id": "B-1", "note": "x"}
    )
    assert event.load_id == "L-1"
    assert event.bid_id == "B-1"
    assert event.payload == {"note": "x"}

    snake_only = parse_event({"type": "bid_received", "loadId": None, "load_id": "L-2"})
    assert snake_only.load_id == "L-2"
    assert snake_only.payload == {}


def test_malformed_messages_are_ignored():
    assert parse_event("not json") is None
    assert parse_event(b"[1, 2]") is None
    assert parse_event({"loadId": "L-1"}) is None

    result = MarketplaceEventRouter().dispatch("{broken")
    assert result.event is None
    assert result.refetch == []
    assert result.handlers_called == 0


def test_refetch_targets_fill_in_load_id():
    event = parse_event({"type": "bid_received", "loadId": "L-1"})
    assert refetch_targets(event) == ["/api/admin/negotiations", "/api/bids", "/api/loads/L-1/bids"]

    without_load = parse_event({"type": "bid_received"})
    assert refetch_targets(without_load) == ["/api/admin/negotiations", "/api/bids"]

    assert refetch_targets(parse_event({"type": "driver_pinged"})) == []


def test_dispatch_notifies_subscribers_and_isolates_failures():
    router = MarketplaceEventRouter()
    seen = []

    def broken(event):
        raise ValueError("handler bug")

    router.on("counter_offer", broken)
    unsubscribe = router.on("Counter_Offer", lambda event: seen.append(event.load_id))
    router.on("bid_accepted", lambda event: seen.append("wrong"))

    result = router.dispatch({"type": "counter_offer", "loadId": "L-2"})
    assert seen == ["L-2"]
    assert result.handlers_called == 1
    assert "/api/loads/L-2/bids" in result.refetch

    unsubscribe()
    router.dispatch({"type": "counter_offer", "loadId": "L-3"})
    assert seen == ["L-2"]
