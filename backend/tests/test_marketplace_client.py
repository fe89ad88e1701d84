"""Tests for the marketplace REST client against a mocked transport."""
from __future__ import annotations

import asyncio
import json
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from freightdesk.core.config import Settings  # noqa: E402
from freightdesk.services.invoice_composer import new_draft, to_submission  # noqa: E402
from freightdesk.services.marketplace_client import (  # noqa: E402
    InvoiceSaveError,
    InvoiceSendError,
    LoadFetchError,
    MarketplaceClient,
)


def _settings() -> Settings:
    return Settings(
        marketplace_api_url="http://marketplace.test/",
        marketplace_api_token="svc-token",
        marketplace_timeout_seconds=2.0,
    )


def _client(handler) -> MarketplaceClient:
    return MarketplaceClient(settings=_settings(), transport=httpx.MockTransport(handler))


def _submission():
    draft = new_draft(
        load_id="L-1",
        shipper_id="S-1",
        pickup_city="Pune",
        dropoff_city="Mumbai",
        pricing_amount=Decimal("12000"),
    )
    return to_submission(draft, date(2026, 5, 4))


def test_get_load_parses_camel_case_record():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={"id": "L-1", "pickupCity": "Pune", "dropoffCity": "Mumbai", "weight": "4", "status": "priced"},
        )

    load = asyncio.run(_client(handler).get_load("L-1"))

    assert seen["url"] == "http://marketplace.test/api/loads/L-1"
    assert seen["auth"] == "Bearer svc-token"
    assert load.pickup_city == "Pune"
    assert load.weight == Decimal("4")


def test_get_load_wraps_http_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="Load not found")

    with pytest.raises(LoadFetchError) as excinfo:
        asyncio.run(_client(handler).get_load("missing"))
    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == "Load not found"


def test_transport_failures_keep_the_cause():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LoadFetchError) as excinfo:
        asyncio.run(_client(handler).list_bids("L-1"))
    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__.__cause__, httpx.ConnectError)


def test_list_bids_rejects_non_list_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"bids": []})

    with pytest.raises(LoadFetchError):
        asyncio.run(_client(handler).list_bids("L-1"))


def test_save_invoice_posts_decimal_strings_with_idempotency_key():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["key"] = request.headers.get("Idempotency-Key")
        captured["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": "INV-9", "status": "draft"})

    created = asyncio.run(_client(handler).save_invoice(_submission(), idempotency_key="abc-save-0"))

    assert created["id"] == "INV-9"
    assert captured["method"] == "POST"
    assert captured["path"] == "/api/admin/invoices"
    assert captured["key"] == "abc-save-0"
    assert captured["body"]["loadId"] == "L-1"
    assert captured["body"]["totalAmount"] == "14160.00"
    assert captured["body"]["dueDate"] == "2026-06-03"


def test_save_invoice_failure_raises_save_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="database unavailable")

    with pytest.raises(InvoiceSaveError) as excinfo:
        asyncio.run(_client(handler).save_invoice(_submission(), idempotency_key="k"))
    assert excinfo.value.status_code == 500
    assert "database unavailable" in excinfo.value.detail


def test_send_invoice_creates_then_delivers():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path, request.headers.get("Idempotency-Key")))
        if request.url.path.endswith("/send"):
            return httpx.Response(200, json={"status": "sent"})
        return httpx.Response(201, json={"id": "INV-3", "status": "draft"})

    result = asyncio.run(_client(handler).send_invoice(_submission(), idempotency_key="abc-send-2"))

    assert calls == [
        ("POST", "/api/admin/invoices", "abc-send-2"),
        ("POST", "/api/admin/invoices/INV-3/send", "abc-send-2-deliver"),
    ]
    assert result["id"] == "INV-3"
    assert result["status"] == "sent"


def test_send_invoice_without_created_id_fails():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"status": "draft"})

    with pytest.raises(InvoiceSendError):
        asyncio.run(_client(handler).send_invoice(_submission(), idempotency_key="k"))


def test_base_url_strips_trailing_slash():
    settings = _settings()
    assert settings.marketplace_base_url() == "http://marketplace.test"
