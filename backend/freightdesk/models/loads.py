"""Load and bid records as received from the marketplace API."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from freightdesk.models.pricing import PriceEstimate


class LoadStatus(str, Enum):
    """Admin-managed load lifecycle status."""

    DRAFT = "draft"
    PENDING = "pending"
    PRICED = "priced"
    POSTED_TO_CARRIERS = "posted_to_carriers"
    OPEN_FOR_BID = "open_for_bid"
    COUNTER_RECEIVED = "counter_received"
    AWARDED = "awarded"
    INVOICE_SENT = "invoice_sent"
    INVOICE_APPROVED = "invoice_approved"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class RateType(str, Enum):
    PER_TON = "per_ton"
    FIXED = "fixed"


class BidStatus(str, Enum):
    ACTIVE = "active"
    REJECTED = "rejected"
    ACCEPTED = "accepted"


TRUCK_TYPES = (
    "17 ft", "19 ft", "20 ft", "22 ft", "24 ft",
    "28 ft SXL", "28 ft MXL",
    "32 ft SXL", "32 ft MXL",
    "Open Truck",
    "Trailer 20ft", "Trailer 40ft",
    "Container 20ft", "Container 40ft",
    "Taurus 14T", "Taurus 16T", "Taurus 21T",
    "TATA Ace", "Bolero Pickup",
)


MAX_MAGNITUDE_DIGITS = 15
ARITHMETIC_PRECISION = 60


def to_decimal(value: Any) -> Optional[Decimal]:
    """Normalize a `str | int | float | None` API value to Decimal, or None.

    Magnitudes past 10**15 either way count as invalid, like non-numbers.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    else:
        if isinstance(value, float):
            value = repr(value)
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    if not parsed.is_finite():
        return None
    if parsed and abs(parsed.adjusted()) > MAX_MAGNITUDE_DIGITS:
        return None
    return parsed


def quantize_half_up(value: Decimal, exponent: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = ARITHMETIC_PRECISION
        return value.quantize(exponent, rounding=ROUND_HALF_UP)


class MarketplaceRecord(BaseModel):
    """Base for records that arrive with camelCase keys from the marketplace."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Load(MarketplaceRecord):
    """A shipment request, normalized at ingestion."""

    id: str
    shipper_id: Optional[str] = None
    pickup_city: str = ""
    pickup_state: Optional[str] = None
    pickup_address: Optional[str] = None
    dropoff_city: str = ""
    dropoff_state: Optional[str] = None
    dropoff_address: Optional[str] = None
    weight: Optional[Decimal] = None
    required_truck_type: Optional[str] = None
    rate_type: Optional[RateType] = None
    shipper_price: Optional[Decimal] = None
    admin_price: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("adminFinalPrice", "adminPrice", "admin_price"),
    )
    accepted_bid_amount: Optional[Decimal] = None
    status: str = LoadStatus.DRAFT.value

    @field_validator(
        "weight", "shipper_price", "admin_price", "accepted_bid_amount",
        mode="before",
    )
    @classmethod
    def _normalize_money(cls, value: Any) -> Optional[Decimal]:
        return to_decimal(value)

    @field_validator("rate_type", mode="before")
    @classmethod
    def _normalize_rate_type(cls, value: Any) -> Optional[str]:
        text = str(value or "").strip().lower().replace("-", "_")
        return text if text in {item.value for item in RateType} else None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> str:
        text = str(value or "").strip()
        return text or LoadStatus.DRAFT.value

    def known_status(self) -> Optional[LoadStatus]:
        try:
            return LoadStatus(self.status.lower())
        except ValueError:
            return None

    def pickup_label(self) -> str:
        return ", ".join(part for part in (self.pickup_city, self.pickup_state) if part)

    def dropoff_label(self) -> str:
        return ", ".join(part for part in (self.dropoff_city, self.dropoff_state) if part)


class Bid(MarketplaceRecord):
    """A carrier's offer against a load."""

    id: str
    load_id: Optional[str] = None
    carrier_id: Optional[str] = None
    amount: Optional[Decimal] = None
    counter_amount: Optional[Decimal] = None
    status: BidStatus = BidStatus.ACTIVE

    @field_validator("amount", "counter_amount", mode="before")
    @classmethod
    def _normalize_money(cls, value: Any) -> Optional[Decimal]:
        return to_decimal(value)

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        # Older marketplace records still carry pending/countered for open bids.
        if text in {"", "pending", "countered"}:
            return BidStatus.ACTIVE.value
        if text == "expired":
            return BidStatus.REJECTED.value
        return text


class StateDisplay(BaseModel):
    """Badge rendering hints for a load status."""

    label: str
    variant: str
    style_hint: Optional[str] = None


class AdminAction(BaseModel):
    """The next recommended admin operation for a load status."""

    action_id: str
    button_label: str
    icon: Optional[str] = None


class LoadStatusView(BaseModel):
    status: str
    display: StateDisplay
    admin_action: Optional[AdminAction] = None


class TruckTypeRate(BaseModel):
    truck_type: str
    rate_per_km: int


class LoadSummary(BaseModel):
    """Load as shown in the admin queue: record, badge, next action and price hint."""

    load: Load
    display: StateDisplay
    admin_action: Optional[AdminAction] = None
    estimate: PriceEstimate
    bids: List[Bid] = Field(default_factory=list)
    accepted_bid: Optional[Bid] = None
    accepted_amount: Optional[Decimal] = None

