"""Tests for the platform margin / carrier payout split."""
from __future__ import annotations

import os
import sys
from decimal import Decimal
from pathlib import Path

from fastapi.testclient import TestClient


os.environ["AUTH_ENABLED"] = "false"
os.environ["API_TOKENS"] = ""

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from freightdesk.main import app  # noqa: E402
from freightdesk.services.margin_split import (  # noqa: E402
    calculate_from_margin,
    calculate_from_payout,
    validate_pricing,
)


client = TestClient(app)


def test_split_keeps_gross_equal_to_payout_plus_margin():
    split = calculate_from_margin(Decimal("77612"), Decimal("10.5"))
    assert split.is_valid
    assert split.platform_margin == 8149
    assert split.carrier_payout == 69463
    assert split.platform_margin + split.carrier_payout == 77612


def test_split_clamps_margin_and_rejects_negative_gross():
    clamped = calculate_from_margin(Decimal("1000"), Decimal("80"))
    assert clamped.platform_margin_percent == Decimal("50")
    assert clamped.platform_margin == 500
    assert clamped.carrier_payout == 500

    negative = calculate_from_margin(Decimal("-1"), Decimal("10"))
    assert not negative.is_valid
    assert negative.error == "Gross price cannot be negative"


def test_margin_from_payout():
    split = calculate_from_payout(Decimal("100000"), Decimal("92500"))
    assert split.is_valid
    assert split.platform_margin_percent == Decimal("7.5")
    assert split.platform_margin == 7500

    too_greedy = calculate_from_payout(Decimal("100000"), Decimal("40000"))
    assert not too_greedy.is_valid
    assert too_greedy.platform_margin == 50000
    assert too_greedy.carrier_payout == 50000

    overpaid = calculate_from_payout(Decimal("100000"), Decimal("100001"))
    assert not overpaid.is_valid
    assert "exceed" in overpaid.error


def test_validate_pricing_flags_inconsistent_triples():
    assert validate_pricing(Decimal("100000"), Decimal("10"), Decimal("90000")).is_valid
    assert validate_pricing(Decimal("100000"), Decimal("10"), Decimal("90001")).is_valid

    result = validate_pricing(Decimal("100000"), Decimal("10"), Decimal("85000"))
    assert not result.is_valid
    assert result.error == "Pricing values are inconsistent"
    assert result.recalculated.carrier_payout == 90000

    assert not validate_pricing(Decimal("0"), Decimal("10"), Decimal("0")).is_valid
    assert not validate_pricing(Decimal("100"), Decimal("51"), Decimal("49")).is_valid


def test_out_of_range_amounts_are_invalid_not_errors():
    huge = Decimal("1e100")
    assert not calculate_from_margin(huge, Decimal("10")).is_valid
    assert not calculate_from_payout(huge, Decimal("10")).is_valid
    assert not calculate_from_payout(Decimal("100"), huge).is_valid
    assert not validate_pricing(huge, Decimal("10"), Decimal("10")).is_valid

    largest = calculate_from_margin(Decimal("999999999999999"), Decimal("10"))
    assert largest.is_valid
    assert largest.platform_margin + largest.carrier_payout == 999999999999999


def test_split_endpoints():
    split = client.post("/pricing/from-margin", json={"gross_price": "100000", "platform_margin_percent": "10"})
    assert split.status_code == 200
    data = split.json()
    assert data["platform_margin"] == 10000
    assert data["carrier_payout"] == 90000
    assert data["is_valid"] is True

    derived = client.post("/pricing/from-payout", json={"gross_price": 100000, "carrier_payout": 92500}).json()
    assert Decimal(derived["platform_margin_percent"]) == Decimal("7.5")

    check = client.post(
        "/pricing/validate",
        json={"gross_price": 100000, "platform_margin_percent": 10, "carrier_payout": 85000},
    ).json()
    assert check["is_valid"] is False
    assert check["recalculated"]["carrier_payout"] == 90000

    oversized = client.post("/pricing/from-margin", json={"gross_price": "1e100", "platform_margin_percent": "10"})
    assert oversized.status_code == 200
    assert oversized.json()["is_valid"] is False


def test_split_endpoints_are_billing_only():
    denied = client.post(
        "/pricing/from-margin",
        json={"gross_price": "100", "platform_margin_percent": "10"},
        headers={"X-Actor-Role": "shipper"},
    )
    assert denied.status_code == 403
