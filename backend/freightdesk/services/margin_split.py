"""
Margin split calculator.

Splits a shipper's gross price into the platform margin and the carrier
payout. Arithmetic runs on paise and basis points so the admin console and
the marketplace agree to the rupee; amounts are rounded to whole rupees only
for display.
"""
from __future__ import annotations

from decimal import Decimal

from freightdesk.models.loads import to_decimal
from freightdesk.models.pricing import MarginSplit, PricingValidation
from freightdesk.services.pricing_estimator import round_half_up

MIN_MARGIN_PERCENT = Decimal("0")
MAX_MARGIN_PERCENT = Decimal("50")
PAYOUT_TOLERANCE = 1
NOT_A_NUMBER = "Amounts must be numbers up to 10^15"


def _invalid(gross: Decimal, percent: Decimal, margin: int, payout: int, error: str) -> MarginSplit:
    return MarginSplit(
        gross_price=gross,
        platform_margin_percent=percent,
        platform_margin=margin,
        carrier_payout=payout,
        is_valid=False,
        error=error,
    )


def calculate_from_margin(gross_price: Decimal, platform_margin_percent: Decimal) -> MarginSplit:
    """Split a gross price given the platform margin percentage."""
    gross_price = to_decimal(gross_price)
    platform_margin_percent = to_decimal(platform_margin_percent)
    if gross_price is None or platform_margin_percent is None:
        return _invalid(Decimal("0"), Decimal("0"), 0, 0, NOT_A_NUMBER)
    if gross_price < 0:
        return _invalid(Decimal("0"), Decimal("0"), 0, 0, "Gross price cannot be negative")

    percent = min(MAX_MARGIN_PERCENT, max(MIN_MARGIN_PERCENT, platform_margin_percent))

    gross_paise = round_half_up(gross_price * 100)
    margin_bps = round_half_up(percent * 100)
    margin_paise = round_half_up(Decimal(gross_paise * margin_bps) / Decimal("10000"))
    payout_paise = gross_paise - margin_paise

    return MarginSplit(
        gross_price=gross_price,
        platform_margin_percent=percent,
        platform_margin=round_half_up(Decimal(margin_paise) / 100),
        carrier_payout=round_half_up(Decimal(payout_paise) / 100),
        is_valid=True,
    )


def calculate_from_payout(gross_price: Decimal, carrier_payout: Decimal) -> MarginSplit:
    """Derive the margin percentage from a gross price and the agreed carrier payout."""
    gross_price = to_decimal(gross_price)
    carrier_payout = to_decimal(carrier_payout)
    if gross_price is None or carrier_payout is None:
        return _invalid(Decimal("0"), Decimal("0"), 0, 0, NOT_A_NUMBER)

    if gross_price <= 0:
        return _invalid(Decimal("0"), Decimal("0"), 0, 0, "Gross price must be greater than 0")
    if carrier_payout < 0:
        return _invalid(
            gross_price, MAX_MARGIN_PERCENT, round_half_up(gross_price), 0,
            "Carrier payout cannot be negative",
        )
    if carrier_payout > gross_price:
        return _invalid(
            gross_price, Decimal("0"), 0, round_half_up(gross_price),
            "Carrier payout cannot exceed gross price",
        )

    margin = gross_price - carrier_payout
    percent = Decimal(round_half_up(margin / gross_price * 1000)) / 10

    if percent > MAX_MARGIN_PERCENT:
        return _invalid(
            gross_price,
            MAX_MARGIN_PERCENT,
            round_half_up(gross_price * MAX_MARGIN_PERCENT / 100),
            round_half_up(gross_price * (1 - MAX_MARGIN_PERCENT / 100)),
            f"Margin cannot exceed {MAX_MARGIN_PERCENT}%",
        )

    return MarginSplit(
        gross_price=gross_price,
        platform_margin_percent=percent,
        platform_margin=round_half_up(margin),
        carrier_payout=round_half_up(carrier_payout),
        is_valid=True,
    )


def validate_pricing(
    gross_price: Decimal,
    platform_margin_percent: Decimal,
    carrier_payout: Decimal,
) -> PricingValidation:
    """Check that a stored (gross, margin %, payout) triple is self-consistent."""
    gross_price = to_decimal(gross_price)
    platform_margin_percent = to_decimal(platform_margin_percent)
    carrier_payout = to_decimal(carrier_payout)
    if gross_price is None or platform_margin_percent is None or carrier_payout is None:
        return PricingValidation(is_valid=False, error=NOT_A_NUMBER)

    if gross_price <= 0:
        return PricingValidation(is_valid=False, error="Gross price must be greater than 0")
    if not MIN_MARGIN_PERCENT <= platform_margin_percent <= MAX_MARGIN_PERCENT:
        return PricingValidation(
            is_valid=False,
            error=f"Margin must be between {MIN_MARGIN_PERCENT}% and {MAX_MARGIN_PERCENT}%",
        )
    if carrier_payout < 0 or carrier_payout > gross_price:
        return PricingValidation(is_valid=False, error="Carrier payout must be between 0 and gross price")

    recalculated = calculate_from_margin(gross_price, platform_margin_percent)
    if abs(recalculated.carrier_payout - carrier_payout) > PAYOUT_TOLERANCE:
        return PricingValidation(
            is_valid=False,
            error="Pricing values are inconsistent",
            recalculated=recalculated,
        )
    return PricingValidation(is_valid=True)
