"""Role resolution for console routes: bearer tokens when auth is on, a header otherwise."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from freightdesk.core.config import get_settings
from freightdesk.core.logging import logger


security = HTTPBearer(auto_error=False)

SUPPORTED_ROLES = {"admin", "finance", "shipper", "carrier"}
DEFAULT_ROLE = "admin"


@dataclass
class ActorContext:
    role: str
    authenticated: bool


def _header_role(value: str | None) -> str:
    role = (value or "").strip().lower() or DEFAULT_ROLE
    if role not in SUPPORTED_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported role '{value}'. Expected one of: {sorted(SUPPORTED_ROLES)}",
        )
    return role


def _token_roles(raw: str) -> Dict[str, str]:
    """Map tokens to roles from `token:role,token:role`; bad entries are skipped."""
    roles: Dict[str, str] = {}
    for entry in filter(None, (segment.strip() for segment in raw.split(","))):
        token, sep, role = entry.partition(":")
        role = role.strip().lower()
        if not sep or not token.strip() or role not in SUPPORTED_ROLES:
            logger.warning("Ignoring malformed api token entry", entry=entry)
            continue
        roles[token.strip()] = role
    return roles


def get_actor_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    x_actor_role: str | None = Header(default=None, alias="X-Actor-Role"),
) -> ActorContext:
    settings = get_settings()
    if not settings.auth_enabled:
        return ActorContext(role=_header_role(x_actor_role), authenticated=False)

    token = credentials.credentials.strip() if credentials and credentials.credentials else ""
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Bearer token required")

    role = _token_roles(settings.api_tokens).get(token)
    if role is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid bearer token")
    return ActorContext(role=role, authenticated=True)


def require_roles(*allowed_roles: str):
    """Route dependency admitting only the listed roles."""
    allowed = frozenset(allowed_roles)

    def _guard(context: ActorContext = Depends(get_actor_context)) -> ActorContext:
        if context.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{context.role}' not permitted for this operation",
            )
        return context

    return _guard
