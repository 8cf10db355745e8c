"""Request identity resolution strategies for the auth gate.

Exactly one resolver is chosen at startup. The development resolver is a
superset of the session resolver that additionally trusts a wallet address
from the query string; it is only selected when development mode is active.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Protocol

from fastapi.security.utils import get_authorization_scheme_param

from lorecraft_auth.core.security import is_wallet_address, normalize_address
from lorecraft_auth.core.settings import Settings
from lorecraft_auth.core.time import Clock, utcnow
from lorecraft_auth.models import AuthContext, SessionInfo
from lorecraft_auth.services.session_manager import SessionManager

logger = logging.getLogger(__name__)

DEV_ADDRESS_PARAMS = ("address", "walletAddress")
DEV_SESSION_PREFIX = "dev-"


class IdentityResolver(Protocol):
    def resolve(self, bearer_token: str | None, query: Mapping[str, str]) -> AuthContext: ...

    def describe(self) -> dict[str, object]: ...


def extract_bearer(header: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    scheme, credentials = get_authorization_scheme_param(header.strip() if header else None)
    if scheme.lower() != "bearer":
        return None
    return credentials.strip() or None


class SessionIdentityResolver:
    """Authenticate requests by validating bearer tokens against live sessions."""

    def __init__(self, manager: SessionManager, settings: Settings) -> None:
        self.manager = manager
        self.settings = settings

    def resolve(self, bearer_token: str | None, query: Mapping[str, str]) -> AuthContext:
        if not bearer_token:
            return AuthContext()
        return AuthContext(session=self.manager.validate(bearer_token))

    def describe(self) -> dict[str, object]:
        return {
            "enabled": False,
            "environment": self.settings.environment,
            "flag": self.settings.enable_dev_mode,
        }


class DevModeIdentityResolver(SessionIdentityResolver):
    """Session resolver that also accepts ``?address=`` as an identity when no token is sent."""

    def __init__(self, manager: SessionManager, settings: Settings, clock: Clock = utcnow) -> None:
        super().__init__(manager, settings)
        self._clock = clock

    def resolve(self, bearer_token: str | None, query: Mapping[str, str]) -> AuthContext:
        if bearer_token:
            return super().resolve(bearer_token, query)

        address = next((query[name] for name in DEV_ADDRESS_PARAMS if query.get(name)), None)
        if address is None or not is_wallet_address(address):
            return AuthContext()

        normalized = normalize_address(address)
        ttl = timedelta(minutes=self.settings.dev_session_minutes)
        logger.warning("DEV MODE: auto-authenticated wallet %s from query parameter", normalized)
        return AuthContext(
            session=SessionInfo(
                is_authenticated=True,
                wallet_address=normalized,
                session_id=f"{DEV_SESSION_PREFIX}{normalized}",
                expires_at=self._clock() + ttl,
                is_expired=False,
                time_remaining_ms=int(ttl.total_seconds() * 1000),
            ),
            dev_mode=True,
        )

    def describe(self) -> dict[str, object]:
        return {**super().describe(), "enabled": True}


def select_identity_resolver(
    manager: SessionManager,
    settings: Settings,
    clock: Clock = utcnow,
) -> IdentityResolver:
    """Pick the resolver once at startup based on configuration."""
    if settings.dev_mode_active:
        return DevModeIdentityResolver(manager, settings, clock=clock)
    return SessionIdentityResolver(manager, settings)
