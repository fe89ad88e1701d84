"""
Invoice composer for the admin invoice drawer.

Drafts are immutable: every edit returns a new `InvoiceDraft`, so the
line-item invariants can be checked on any snapshot and an editing session
can undo by popping its history. Persistence is not handled here; saved and
sent drafts go through `MarketplaceClient`.
"""
from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import date, timedelta
from decimal import Decimal
from threading import Lock
from typing import Any, Callable, Dict, Iterator, List, Optional

from freightdesk.core.config import get_settings
from freightdesk.core.logging import logger
from freightdesk.models.invoices import (
    InvoiceDraft,
    InvoiceSubmission,
    LineItem,
    PAYMENT_TERM_DAYS,
    PaymentTerms,
    TaxMode,
    ZERO,
)
from freightdesk.models.loads import to_decimal

DEFAULT_TERM_DAYS = 30
AMOUNT_FIELDS = {"quantity", "rate"}
TEXT_FIELDS = {"description", "code"}
CHARGE_FIELDS = {
    "fuel_surcharge",
    "toll_charges",
    "handling_fee",
    "insurance_fee",
    "discount_amount",
    "discount_reason",
    "tax_percent",
    "tax_mode",
    "payment_terms",
    "notes",
}


class DraftNotFoundError(KeyError):
    """Raised when an editing session does not exist (or was discarded)."""


class SubmissionInProgressError(RuntimeError):
    """Raised when a save or send is already running for the same draft."""


def _new_id() -> str:
    return str(uuid.uuid4())


# ==================== PURE DRAFT OPERATIONS ====================

def new_draft(
    load_id: str,
    shipper_id: Optional[str] = None,
    pickup_city: Optional[str] = None,
    dropoff_city: Optional[str] = None,
    pricing_amount: Optional[Decimal] = None,
    tax_mode: Optional[TaxMode] = None,
) -> InvoiceDraft:
    """Fresh draft for a load, seeded with the freight line when a price is known."""
    settings = get_settings()
    items: tuple[LineItem, ...] = ()
    amount = to_decimal(pricing_amount)
    if amount is not None and amount > 0:
        items = (
            LineItem(
                id=_new_id(),
                description=f"Freight Transportation: {pickup_city or ''} to {dropoff_city or ''}".strip(),
                quantity=Decimal("1"),
                rate=amount,
                amount=amount,
            ),
        )
    return InvoiceDraft(
        draft_id=_new_id(),
        load_id=load_id,
        shipper_id=shipper_id,
        line_items=items,
        tax_percent=Decimal(settings.default_tax_percent),
        tax_mode=tax_mode or TaxMode.APPLIED,
        payment_terms=settings.default_payment_terms,
    )


def add_line_item(draft: InvoiceDraft) -> InvoiceDraft:
    item = LineItem(id=_new_id(), quantity=Decimal("1"), rate=ZERO, amount=ZERO)
    return draft.model_copy(update={"line_items": draft.line_items + (item,)})


def update_line_item(draft: InvoiceDraft, item_id: str, field: str, value: Any) -> InvoiceDraft:
    """Set one field on one item; quantity and rate edits recompute its amount.

    Unknown item ids and non-editable fields leave the draft unchanged.
    """
    if field not in AMOUNT_FIELDS and field not in TEXT_FIELDS:
        return draft
    if not any(item.id == item_id for item in draft.line_items):
        return draft

    updated: List[LineItem] = []
    for item in draft.line_items:
        if item.id != item_id:
            updated.append(item)
            continue
        if field in AMOUNT_FIELDS:
            number = to_decimal(value)
            changes: Dict[str, Any] = {field: number if number is not None else ZERO}
            quantity = changes.get("quantity", item.quantity)
            rate = changes.get("rate", item.rate)
            changes["amount"] = quantity * rate
        else:
            changes = {field: "" if value is None else str(value)}
        updated.append(item.model_copy(update=changes))
    return draft.model_copy(update={"line_items": tuple(updated)})


def remove_line_item(draft: InvoiceDraft, item_id: str) -> InvoiceDraft:
    """Drop an item unless it is the last one left."""
    if len(draft.line_items) <= 1:
        return draft
    remaining = tuple(item for item in draft.line_items if item.id != item_id)
    if len(remaining) == len(draft.line_items):
        return draft
    return draft.model_copy(update={"line_items": remaining})


def update_charges(draft: InvoiceDraft, **changes: Any) -> InvoiceDraft:
    """Replace surcharges, discount, tax settings, terms or notes."""
    update: Dict[str, Any] = {}
    for key, value in changes.items():
        if key not in CHARGE_FIELDS or value is None:
            continue
        if key in {"discount_reason", "payment_terms", "notes"}:
            update[key] = str(value)
        elif key == "tax_mode":
            update[key] = TaxMode(value)
        else:
            update[key] = to_decimal(value) or ZERO
    if not update:
        return draft
    return draft.model_copy(update=update)


def payment_term_days(terms: Optional[str]) -> int:
    try:
        return PAYMENT_TERM_DAYS[PaymentTerms((terms or "").strip())]
    except ValueError:
        return DEFAULT_TERM_DAYS


def due_date(terms: Optional[str], submitted_on: date) -> date:
    """Submission date plus the payment-term days (calendar date only)."""
    return submitted_on + timedelta(days=payment_term_days(terms))


def _money(value: Decimal) -> str:
    return format(value, "f")


def to_submission(draft: InvoiceDraft, submitted_on: date) -> InvoiceSubmission:
    """Wire payload for the marketplace, every money figure as a decimal string."""
    return InvoiceSubmission(
        load_id=draft.load_id,
        shipper_id=draft.shipper_id,
        line_items=[
            {
                "description": item.description,
                "code": item.code,
                "quantity": _money(item.quantity),
                "rate": _money(item.rate),
                "amount": _money(item.amount),
            }
            for item in draft.line_items
        ],
        subtotal=_money(draft.subtotal),
        fuel_surcharge=_money(draft.fuel_surcharge),
        toll_charges=_money(draft.toll_charges),
        handling_fee=_money(draft.handling_fee),
        insurance_fee=_money(draft.insurance_fee),
        discount_amount=_money(draft.discount_amount),
        discount_reason=draft.discount_reason,
        tax_percent=_money(draft.tax_percent if draft.tax_mode == TaxMode.APPLIED else ZERO),
        tax_amount=_money(draft.tax_amount),
        total_amount=_money(draft.total_amount),
        payment_terms=draft.payment_terms,
        due_date=due_date(draft.payment_terms, submitted_on).isoformat(),
        notes=draft.notes,
    )


# ==================== EDITING SESSIONS ====================

class InvoiceComposer:
    """One open editing session: the current draft plus its undo history."""

    MAX_HISTORY = 100

    def __init__(self, draft: InvoiceDraft) -> None:
        self._draft = draft
        self._history: List[InvoiceDraft] = []
        self._revision = 0
        self._session_key = uuid.uuid4().hex
        self.submitting = False

    @property
    def draft(self) -> InvoiceDraft:
        return self._draft

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def apply(self, operation: Callable[..., InvoiceDraft], *args: Any, **kwargs: Any) -> InvoiceDraft:
        updated = operation(self._draft, *args, **kwargs)
        if updated is not self._draft:
            self._history.append(self._draft)
            del self._history[:-self.MAX_HISTORY]
            self._draft = updated
            self._revision += 1
        return self._draft

    def undo(self) -> InvoiceDraft:
        if self._history:
            self._draft = self._history.pop()
            self._revision += 1
        return self._draft

    def add_line_item(self) -> InvoiceDraft:
        return self.apply(add_line_item)

    def update_line_item(self, item_id: str, field: str, value: Any) -> InvoiceDraft:
        return self.apply(update_line_item, item_id, field, value)

    def remove_line_item(self, item_id: str) -> InvoiceDraft:
        return self.apply(remove_line_item, item_id)

    def submission_key(self, operation: str) -> str:
        """Idempotency key stable across retries of the same, unchanged draft."""
        return f"{self._session_key}-{operation}-{self._revision}"


class DraftRegistry:
    """In-memory editing sessions keyed by draft id."""

    def __init__(self) -> None:
        self._sessions: Dict[str, InvoiceComposer] = {}
        self._lock = Lock()

    def open(self, draft: InvoiceDraft) -> InvoiceComposer:
        composer = InvoiceComposer(draft)
        with self._lock:
            self._sessions[draft.draft_id] = composer
        logger.info("Invoice draft opened", draft_id=draft.draft_id, load_id=draft.load_id)
        return composer

    def get(self, draft_id: str) -> InvoiceComposer:
        with self._lock:
            composer = self._sessions.get(draft_id)
        if composer is None:
            raise DraftNotFoundError(draft_id)
        return composer

    def discard(self, draft_id: str) -> None:
        with self._lock:
            removed = self._sessions.pop(draft_id, None)
        if removed is None:
            raise DraftNotFoundError(draft_id)
        logger.info("Invoice draft discarded", draft_id=draft_id)

    @contextmanager
    def submission(self, draft_id: str) -> Iterator[InvoiceComposer]:
        """Serialize save/send for one draft; a second caller is refused."""
        composer = self.get(draft_id)
        with self._lock:
            if composer.submitting:
                raise SubmissionInProgressError(f"Draft {draft_id} is already being submitted")
            composer.submitting = True
        try:
            yield composer
        finally:
            with self._lock:
                composer.submitting = False

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


draft_registry = DraftRegistry()
