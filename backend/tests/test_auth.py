"""Tests for actor role resolution and the role guard."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from freightdesk.core import auth  # noqa: E402
from freightdesk.core.auth import ActorContext, get_actor_context, require_roles  # noqa: E402
from freightdesk.core.config import Settings  # noqa: E402


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.fixture
def token_auth(monkeypatch):
    settings = Settings(auth_enabled=True, api_tokens="fin-1:finance, broken ,car-1:Carrier,x:pilot")
    monkeypatch.setattr(auth, "get_settings", lambda: settings)
    return settings


def test_open_mode_reads_role_header(monkeypatch):
    monkeypatch.setattr(auth, "get_settings", lambda: Settings(auth_enabled=False))
    assert get_actor_context(None, None) == ActorContext(role="admin", authenticated=False)
    assert get_actor_context(None, " Finance ").role == "finance"
    with pytest.raises(HTTPException) as excinfo:
        get_actor_context(None, "pilot")
    assert excinfo.value.status_code == 400


def test_token_mode_maps_tokens_to_roles(token_auth):
    assert get_actor_context(_bearer("fin-1"), "admin") == ActorContext(role="finance", authenticated=True)
    assert get_actor_context(_bearer("car-1"), None).role == "carrier"


def test_token_mode_rejects_missing_and_unknown_tokens(token_auth):
    with pytest.raises(HTTPException) as missing:
        get_actor_context(None, None)
    assert missing.value.status_code == 401

    for token in ("nope", "x", "broken"):
        with pytest.raises(HTTPException) as unknown:
            get_actor_context(_bearer(token), None)
        assert unknown.value.status_code == 403


def test_role_guard_admits_only_listed_roles():
    guard = require_roles("admin", "finance")
    finance = ActorContext(role="finance", authenticated=True)
    assert guard(finance) is finance

    with pytest.raises(HTTPException) as excinfo:
        guard(ActorContext(role="shipper", authenticated=False))
    assert excinfo.value.status_code == 403
