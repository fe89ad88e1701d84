"""HTTP client for the marketplace REST API (loads, bids, invoices)."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from freightdesk.core.config import Settings, get_settings
from freightdesk.core.logging import logger
from freightdesk.models.invoices import InvoiceSubmission
from freightdesk.models.loads import Bid, Load


class MarketplaceAPIError(Exception):
    """Raised when a marketplace API request fails.

    The underlying transport error, when there is one, is kept as `__cause__`.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, detail: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class LoadFetchError(MarketplaceAPIError):
    """Raised when a load or its bids cannot be read."""


class InvoiceSaveError(MarketplaceAPIError):
    """Raised when an invoice draft could not be saved."""


class InvoiceSendError(MarketplaceAPIError):
    """Raised when an invoice could not be created or sent to the shipper."""


class MarketplaceClient:
    """Thin async client; one short-lived connection pool per call."""

    INVOICES_PATH = "/api/admin/invoices"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._transport = transport

    def _headers(self, idempotency_key: Optional[str] = None) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        token = (self.settings.marketplace_api_token or "").strip()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.settings.marketplace_base_url(),
                timeout=self.settings.marketplace_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    path,
                    json=json,
                    headers=self._headers(idempotency_key),
                )
        except httpx.HTTPError as exc:
            raise MarketplaceAPIError(
                f"Marketplace request failed {method} {path}: {exc}",
                detail=str(exc),
            ) from exc

        if response.status_code >= 400:
            raise MarketplaceAPIError(
                f"Marketplace request failed ({response.status_code}) {method} {path}",
                status_code=response.status_code,
                detail=response.text[:400],
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise MarketplaceAPIError(
                f"Marketplace returned invalid JSON for {method} {path}",
                status_code=response.status_code,
                detail=response.text[:400],
            ) from exc

    async def get_load(self, load_id: str) -> Load:
        try:
            payload = await self._request("GET", f"/api/loads/{load_id}")
        except MarketplaceAPIError as exc:
            raise LoadFetchError(str(exc), status_code=exc.status_code, detail=exc.detail) from exc
        return Load.model_validate(payload)

    async def list_bids(self, load_id: str) -> List[Bid]:
        try:
            payload = await self._request("GET", f"/api/loads/{load_id}/bids")
        except MarketplaceAPIError as exc:
            raise LoadFetchError(str(exc), status_code=exc.status_code, detail=exc.detail) from exc
        if not isinstance(payload, list):
            raise LoadFetchError(f"Expected a list of bids for load {load_id}")
        return [Bid.model_validate(item) for item in payload if isinstance(item, dict)]

    async def save_invoice(self, submission: InvoiceSubmission, idempotency_key: str) -> Dict[str, Any]:
        """Persist a draft invoice. Returns the created invoice record."""
        body = submission.model_dump(by_alias=True)
        try:
            created = await self._request("POST", self.INVOICES_PATH, json=body, idempotency_key=idempotency_key)
        except MarketplaceAPIError as exc:
            logger.error("Invoice save failed", load_id=submission.load_id, error=str(exc))
            raise InvoiceSaveError(str(exc), status_code=exc.status_code, detail=exc.detail) from exc
        if not isinstance(created, dict):
            created = {"result": created}
        logger.info("Invoice saved", load_id=submission.load_id, invoice_id=created.get("id"))
        return created

    async def send_invoice(self, submission: InvoiceSubmission, idempotency_key: str) -> Dict[str, Any]:
        """Create the invoice, then ask the marketplace to deliver it to the shipper."""
        body = submission.model_dump(by_alias=True)
        try:
            created = await self._request("POST", self.INVOICES_PATH, json=body, idempotency_key=idempotency_key)
            invoice_id = created.get("id") if isinstance(created, dict) else None
            if not invoice_id:
                raise MarketplaceAPIError("Marketplace did not return an invoice id")
            sent = await self._request(
                "POST",
                f"{self.INVOICES_PATH}/{invoice_id}/send",
                idempotency_key=f"{idempotency_key}-deliver",
            )
        except MarketplaceAPIError as exc:
            logger.error("Invoice send failed", load_id=submission.load_id, error=str(exc))
            raise InvoiceSendError(str(exc), status_code=exc.status_code, detail=exc.detail) from exc
        logger.info("Invoice sent", load_id=submission.load_id, invoice_id=invoice_id)
        result = dict(created)
        if isinstance(sent, dict):
            result.update(sent)
        result["id"] = invoice_id
        return result


marketplace_client = MarketplaceClient()


def get_marketplace_client() -> MarketplaceClient:
    """FastAPI dependency; tests override it with a client on a mock transport."""
    return marketplace_client
