"""Unit tests for load status badges and admin next-actions."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from freightdesk.models.loads import LoadStatus  # noqa: E402
from freightdesk.services.state_display import (  # noqa: E402
    ADMIN_ACTIONS,
    STATE_DISPLAY,
    resolve_admin_action,
    resolve_state_display,
)


def test_every_status_has_a_display_and_action_entry():
    assert set(STATE_DISPLAY) == set(LoadStatus)
    assert set(ADMIN_ACTIONS) == set(LoadStatus)


def test_mixed_case_status_resolves_like_lower_case():
    assert resolve_state_display("AWARDED") == resolve_state_display("awarded")
    assert resolve_state_display("  In_Transit ") == resolve_state_display("in_transit")
    assert resolve_admin_action("Awarded") == resolve_admin_action("awarded")


def test_known_statuses_map_to_expected_labels():
    pending = resolve_state_display("pending")
    assert pending.label == "Pending Review"
    assert pending.variant == "warning"
    assert pending.style_hint == "bg-amber-500 text-white"

    assert resolve_state_display("closed").label == "Completed"
    cancelled = resolve_state_display("cancelled")
    assert cancelled.variant == "danger"
    assert cancelled.style_hint is None


def test_unknown_status_falls_back_to_unlabeled_neutral():
    display = resolve_state_display("Pending Admin Review")
    assert display.label == "Pending Admin Review"
    assert display.variant == "neutral"
    assert display.style_hint is None

    assert resolve_state_display(None).label == ""
    assert resolve_admin_action("Pending Admin Review") is None
    assert resolve_admin_action(None) is None


def test_admin_actions_follow_the_workflow():
    action = resolve_admin_action("pending")
    assert action.action_id == "price"
    assert action.button_label == "Price Load"

    assert resolve_admin_action("awarded").action_id == "send_invoice"
    assert resolve_admin_action("posted_to_carriers").action_id == "view_bids"
    assert resolve_admin_action("open_for_bid").action_id == "view_bids"
    assert resolve_admin_action("delivered").action_id == "close_load"


def test_terminal_statuses_have_no_action():
    assert resolve_admin_action("closed") is None
    assert resolve_admin_action("cancelled") is None
    assert resolve_admin_action("draft") is None


def test_returned_records_do_not_alias_the_static_tables():
    display = resolve_state_display("priced")
    display.label = "changed"
    assert resolve_state_display("priced").label == "Priced - Ready to Post"
