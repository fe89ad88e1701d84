"""API routes for composing, saving and sending load invoices."""
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status

from freightdesk.core.auth import ActorContext, require_roles
from freightdesk.core.logging import logger
from freightdesk.models.invoices import (
    DraftChargesUpdate,
    DraftCreateRequest,
    DraftView,
    LineItemUpdateRequest,
    SubmissionResult,
)
from freightdesk.services.invoice_composer import (
    DraftNotFoundError,
    InvoiceComposer,
    SubmissionInProgressError,
    draft_registry,
    due_date,
    new_draft,
    to_submission,
    update_charges,
)
from freightdesk.services.marketplace_client import (
    InvoiceSaveError,
    InvoiceSendError,
    MarketplaceClient,
    get_marketplace_client,
)

router = APIRouter(prefix="/invoices", tags=["invoices"])

billing_roles = require_roles("admin", "finance")


def _view(composer: InvoiceComposer) -> DraftView:
    draft = composer.draft
    return DraftView(
        draft=draft,
        due_date=due_date(draft.payment_terms, date.today()).isoformat(),
        can_undo=composer.can_undo,
        submitting=composer.submitting,
    )


def _session(draft_id: str) -> InvoiceComposer:
    try:
        return draft_registry.get(draft_id)
    except DraftNotFoundError:
        raise HTTPException(status_code=404, detail=f"Invoice draft {draft_id} not found")


@router.post("/drafts", response_model=DraftView, status_code=status.HTTP_201_CREATED)
async def open_draft(
    request: DraftCreateRequest,
    context: ActorContext = Depends(billing_roles),
) -> DraftView:
    """Open a fresh invoice draft for a load."""
    draft = new_draft(
        load_id=request.load_id,
        shipper_id=request.shipper_id,
        pickup_city=request.pickup_city,
        dropoff_city=request.dropoff_city,
        pricing_amount=request.pricing_amount,
        tax_mode=request.tax_mode,
    )
    return _view(draft_registry.open(draft))


@router.get("/drafts/{draft_id}", response_model=DraftView)
async def get_draft(
    draft_id: str,
    context: ActorContext = Depends(billing_roles),
) -> DraftView:
    return _view(_session(draft_id))


@router.delete("/drafts/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_draft(
    draft_id: str,
    context: ActorContext = Depends(billing_roles),
) -> None:
    try:
        draft_registry.discard(draft_id)
    except DraftNotFoundError:
        raise HTTPException(status_code=404, detail=f"Invoice draft {draft_id} not found")


@router.post("/drafts/{draft_id}/line-items", response_model=DraftView)
async def add_line_item(
    draft_id: str,
    context: ActorContext = Depends(billing_roles),
) -> DraftView:
    composer = _session(draft_id)
    composer.add_line_item()
    return _view(composer)


@router.patch("/drafts/{draft_id}/line-items/{item_id}", response_model=DraftView)
async def update_line_item(
    draft_id: str,
    item_id: str,
    request: LineItemUpdateRequest,
    context: ActorContext = Depends(billing_roles),
) -> DraftView:
    composer = _session(draft_id)
    composer.update_line_item(item_id, request.field, request.value)
    return _view(composer)


@router.delete("/drafts/{draft_id}/line-items/{item_id}", response_model=DraftView)
async def remove_line_item(
    draft_id: str,
    item_id: str,
    context: ActorContext = Depends(billing_roles),
) -> DraftView:
    """Remove an item; the last remaining item is kept."""
    composer = _session(draft_id)
    composer.remove_line_item(item_id)
    return _view(composer)


@router.patch("/drafts/{draft_id}", response_model=DraftView)
async def update_draft_charges(
    draft_id: str,
    request: DraftChargesUpdate,
    context: ActorContext = Depends(billing_roles),
) -> DraftView:
    composer = _session(draft_id)
    composer.apply(update_charges, **request.model_dump(exclude_none=True))
    return _view(composer)


@router.post("/drafts/{draft_id}/undo", response_model=DraftView)
async def undo_draft_edit(
    draft_id: str,
    context: ActorContext = Depends(billing_roles),
) -> DraftView:
    composer = _session(draft_id)
    composer.undo()
    return _view(composer)


async def _submit(draft_id: str, operation: str, client: MarketplaceClient) -> SubmissionResult:
    try:
        with draft_registry.submission(draft_id) as composer:
            submission = to_submission(composer.draft, date.today())
            key = composer.submission_key(operation)
            if operation == "send":
                response = await client.send_invoice(submission, idempotency_key=key)
            else:
                response = await client.save_invoice(submission, idempotency_key=key)
    except DraftNotFoundError:
        raise HTTPException(status_code=404, detail=f"Invoice draft {draft_id} not found")
    except SubmissionInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except (InvoiceSaveError, InvoiceSendError) as exc:
        label = "send" if isinstance(exc, InvoiceSendError) else "save"
        logger.error(f"Invoice {label} failed", draft_id=draft_id, error=str(exc))
        raise HTTPException(
            status_code=502,
            detail={
                "error": f"{label}_failed",
                "message": str(exc),
                "upstream_status": exc.status_code,
                "upstream_detail": exc.detail,
            },
        )

    return SubmissionResult(
        draft_id=draft_id,
        invoice_id=str(response.get("id")) if response.get("id") else None,
        status="sent" if operation == "send" else "saved",
        idempotency_key=key,
        response=response,
    )


@router.post("/drafts/{draft_id}/save", response_model=SubmissionResult)
async def save_draft(
    draft_id: str,
    context: ActorContext = Depends(billing_roles),
    client: MarketplaceClient = Depends(get_marketplace_client),
) -> SubmissionResult:
    """Persist the draft with the marketplace. On failure the draft stays open for retry."""
    return await _submit(draft_id, "save", client)


@router.post("/drafts/{draft_id}/send", response_model=SubmissionResult)
async def send_draft(
    draft_id: str,
    context: ActorContext = Depends(billing_roles),
    client: MarketplaceClient = Depends(get_marketplace_client),
) -> SubmissionResult:
    """Create the invoice and send it to the shipper."""
    return await _submit(draft_id, "send", client)
