"""Invoice draft models for the admin invoice composer."""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from freightdesk.models.loads import quantize_half_up

ZERO = Decimal("0")
CENT = Decimal("0.01")


class PaymentTerms(str, Enum):
    DUE_ON_RECEIPT = "Due on Receipt"
    NET_7 = "Net 7"
    NET_15 = "Net 15"
    NET_30 = "Net 30"
    NET_45 = "Net 45"


PAYMENT_TERM_DAYS = {
    PaymentTerms.DUE_ON_RECEIPT: 0,
    PaymentTerms.NET_7: 7,
    PaymentTerms.NET_15: 15,
    PaymentTerms.NET_30: 30,
    PaymentTerms.NET_45: 45,
}


class TaxMode(str, Enum):
    """Whether GST is applied on top of the discounted subtotal."""

    APPLIED = "applied"
    EXEMPT = "exempt"


class LineItem(BaseModel):
    """One billable row. `amount` always equals quantity x rate."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str = ""
    code: Optional[str] = None
    quantity: Decimal = Decimal("1")
    rate: Decimal = ZERO
    amount: Decimal = ZERO


class InvoiceDraft(BaseModel):
    """Unsaved invoice for one load. Replaced, never mutated, on every edit."""

    model_config = ConfigDict(frozen=True)

    draft_id: str
    load_id: str
    shipper_id: Optional[str] = None
    line_items: Tuple[LineItem, ...] = ()
    fuel_surcharge: Decimal = ZERO
    toll_charges: Decimal = ZERO
    handling_fee: Decimal = ZERO
    insurance_fee: Decimal = ZERO
    discount_amount: Decimal = ZERO
    discount_reason: str = ""
    tax_percent: Decimal = Decimal("18")
    tax_mode: TaxMode = TaxMode.APPLIED
    payment_terms: str = PaymentTerms.NET_30.value
    notes: str = ""

    @computed_field  # type: ignore[misc]
    @property
    def subtotal(self) -> Decimal:
        items_total = sum((item.amount for item in self.line_items), ZERO)
        return (
            items_total
            + self.fuel_surcharge
            + self.toll_charges
            + self.handling_fee
            + self.insurance_fee
        )

    @computed_field  # type: ignore[misc]
    @property
    def discounted_subtotal(self) -> Decimal:
        return max(ZERO, self.subtotal - self.discount_amount)

    @computed_field  # type: ignore[misc]
    @property
    def tax_amount(self) -> Decimal:
        if self.tax_mode == TaxMode.EXEMPT:
            return ZERO
        raw = self.discounted_subtotal * self.tax_percent / Decimal("100")
        return quantize_half_up(raw, CENT)

    @computed_field  # type: ignore[misc]
    @property
    def total_amount(self) -> Decimal:
        return self.discounted_subtotal + self.tax_amount


class InvoiceSubmission(BaseModel):
    """JSON body for the marketplace invoice endpoint. Money travels as decimal strings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    load_id: str
    shipper_id: Optional[str] = None
    line_items: List[dict[str, Any]] = Field(default_factory=list)
    subtotal: str
    fuel_surcharge: str
    toll_charges: str
    handling_fee: str
    insurance_fee: str
    discount_amount: str
    discount_reason: str = ""
    tax_percent: str
    tax_amount: str
    total_amount: str
    payment_terms: str
    due_date: str
    notes: str = ""


# ==================== API PAYLOADS ====================

class DraftCreateRequest(BaseModel):
    load_id: str
    shipper_id: Optional[str] = None
    pickup_city: Optional[str] = None
    dropoff_city: Optional[str] = None
    pricing_amount: Optional[Decimal] = Field(default=None, ge=0)
    tax_mode: Optional[TaxMode] = None


class LineItemUpdateRequest(BaseModel):
    field: str
    value: Any = None


class DraftChargesUpdate(BaseModel):
    """Patch fields for the non-line-item parts of a draft."""
    fuel_surcharge: Optional[Decimal] = Field(default=None, ge=0)
    toll_charges: Optional[Decimal] = Field(default=None, ge=0)
    handling_fee: Optional[Decimal] = Field(default=None, ge=0)
    insurance_fee: Optional[Decimal] = Field(default=None, ge=0)
    discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    discount_reason: Optional[str] = None
    tax_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    tax_mode: Optional[TaxMode] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None


class DraftView(BaseModel):
    """Draft plus the derived figures the console shows next to it."""
    draft: InvoiceDraft
    due_date: str
    can_undo: bool = False
    submitting: bool = False


class SubmissionResult(BaseModel):
    draft_id: str
    invoice_id: Optional[str] = None
    status: str
    idempotency_key: str
    response: dict[str, Any] = Field(default_factory=dict)
