"""Pricing estimator and margin split models."""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class PriceBreakdown(BaseModel):
    """Components that add up to the suggested price (whole rupees)."""
    base_amount: int
    fuel_surcharge: int
    admin_margin: int
    handling_fee: int


class PriceParams(BaseModel):
    """Inputs used for the estimate, exposed for display and audit."""
    distance_km: int
    distance_source: str  # "table" or "estimated"
    weight_tons: Decimal
    base_rate_per_km: int


class PriceEstimate(BaseModel):
    """Suggested sale price for a load."""
    suggested_price: int
    breakdown: PriceBreakdown
    params: PriceParams


class EstimateRequest(BaseModel):
    """Ad-hoc estimate input when no stored load exists yet."""
    pickup: str
    dropoff: str
    truck_type: Optional[str] = None
    weight_tons: Decimal = Field(default=Decimal("0"), ge=0)


class MarginFromPercentRequest(BaseModel):
    gross_price: Decimal
    platform_margin_percent: Decimal


class MarginFromPayoutRequest(BaseModel):
    gross_price: Decimal
    carrier_payout: Decimal


class MarginValidationRequest(BaseModel):
    gross_price: Decimal
    platform_margin_percent: Decimal
    carrier_payout: Decimal


class MarginSplit(BaseModel):
    """Split of a gross price between the platform and the carrier.

    Invariant (before whole-rupee display rounding):
    gross_price = carrier_payout + platform_margin.
    """
    gross_price: Decimal
    platform_margin_percent: Decimal
    platform_margin: int
    carrier_payout: int
    is_valid: bool
    error: Optional[str] = None


class PricingValidation(BaseModel):
    is_valid: bool
    error: Optional[str] = None
    recalculated: Optional[MarginSplit] = None
