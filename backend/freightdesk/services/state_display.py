"""
State display resolver.

Maps a load's workflow status to the badge shown in the admin queue and to
the single next action an admin is expected to take. Both lookups are static,
case-insensitive and never raise: an unknown status renders as an unlabeled
neutral badge with no action.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from freightdesk.models.loads import AdminAction, LoadStatus, StateDisplay

NEUTRAL = "neutral"
INFO = "info"
WARNING = "warning"
SUCCESS = "success"
DANGER = "danger"


STATE_DISPLAY: Mapping[LoadStatus, StateDisplay] = MappingProxyType({
    LoadStatus.DRAFT: StateDisplay(label="Draft", variant=NEUTRAL),
    LoadStatus.PENDING: StateDisplay(label="Pending Review", variant=WARNING, style_hint="bg-amber-500 text-white"),
    LoadStatus.PRICED: StateDisplay(label="Priced - Ready to Post", variant=INFO, style_hint="bg-blue-500 text-white"),
    LoadStatus.POSTED_TO_CARRIERS: StateDisplay(label="Posted to Carriers", variant=INFO, style_hint="bg-cyan-500 text-white"),
    LoadStatus.OPEN_FOR_BID: StateDisplay(label="Awaiting Bids", variant=INFO, style_hint="bg-purple-500 text-white"),
    LoadStatus.COUNTER_RECEIVED: StateDisplay(label="Negotiation", variant=WARNING, style_hint="bg-orange-500 text-white"),
    LoadStatus.AWARDED: StateDisplay(label="Carrier Finalized", variant=SUCCESS, style_hint="bg-emerald-500 text-white"),
    LoadStatus.INVOICE_SENT: StateDisplay(label="Invoice Sent", variant=INFO, style_hint="bg-indigo-500 text-white"),
    LoadStatus.INVOICE_APPROVED: StateDisplay(label="Invoice Approved", variant=SUCCESS, style_hint="bg-green-500 text-white"),
    LoadStatus.IN_TRANSIT: StateDisplay(label="In Transit", variant=INFO, style_hint="bg-blue-600 text-white"),
    LoadStatus.DELIVERED: StateDisplay(label="Delivered", variant=SUCCESS, style_hint="bg-teal-500 text-white"),
    LoadStatus.CLOSED: StateDisplay(label="Completed", variant=NEUTRAL, style_hint="bg-gray-500 text-white"),
    LoadStatus.CANCELLED: StateDisplay(label="Cancelled", variant=DANGER),
})

# Terminal and pre-submission statuses map to None: there is nothing for an admin to do.
ADMIN_ACTIONS: Mapping[LoadStatus, Optional[AdminAction]] = MappingProxyType({
    LoadStatus.DRAFT: None,
    LoadStatus.PENDING: AdminAction(action_id="price", button_label="Price Load", icon="calculator"),
    LoadStatus.PRICED: AdminAction(action_id="post_to_carriers", button_label="Post to Carriers", icon="truck"),
    LoadStatus.POSTED_TO_CARRIERS: AdminAction(action_id="view_bids", button_label="View Bids", icon="gavel"),
    LoadStatus.OPEN_FOR_BID: AdminAction(action_id="view_bids", button_label="View Bids", icon="gavel"),
    LoadStatus.COUNTER_RECEIVED: AdminAction(action_id="review_counter", button_label="Review Counter", icon="gavel"),
    LoadStatus.AWARDED: AdminAction(action_id="send_invoice", button_label="Send Invoice", icon="send"),
    LoadStatus.INVOICE_SENT: AdminAction(action_id="view_invoice", button_label="View Invoice", icon="receipt"),
    LoadStatus.INVOICE_APPROVED: AdminAction(action_id="start_transit", button_label="Start Transit", icon="truck"),
    LoadStatus.IN_TRANSIT: AdminAction(action_id="track_shipment", button_label="Track Shipment", icon="mappin"),
    LoadStatus.DELIVERED: AdminAction(action_id="close_load", button_label="Close Load", icon="check"),
    LoadStatus.CLOSED: None,
    LoadStatus.CANCELLED: None,
})

for _table in (STATE_DISPLAY, ADMIN_ACTIONS):
    _missing = set(LoadStatus) - set(_table)
    if _missing:
        raise RuntimeError(f"Status table missing entries: {sorted(item.value for item in _missing)}")


def _lookup_status(status: object) -> Optional[LoadStatus]:
    text = str(status or "").strip().lower()
    try:
        return LoadStatus(text)
    except ValueError:
        return None


def resolve_state_display(status: object) -> StateDisplay:
    """Badge label, variant and style hint for a status string."""
    known = _lookup_status(status)
    if known is None:
        return StateDisplay(label=str(status if status is not None else ""), variant=NEUTRAL)
    return STATE_DISPLAY[known].model_copy()


def resolve_admin_action(status: object) -> Optional[AdminAction]:
    """Next recommended admin action, or None when the status has no follow-up."""
    known = _lookup_status(status)
    if known is None:
        return None
    action = ADMIN_ACTIONS[known]
    return action.model_copy() if action else None
