# src/lorecraft_auth/models/auth.py
"""Challenge, session, and derived authentication records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Challenge:
    """An outstanding challenge a wallet must sign exactly once."""

    challenge_id: str
    wallet_address: str
    message: str
    issued_at: datetime
    expires_at: datetime


@dataclass
class Session:
    """Server-side record asserting that a wallet has authenticated.

    Only the session manager mutates ``expires_at`` and ``last_activity``,
    and only through the session store's locked helpers.
    """

    session_id: str
    wallet_address: str
    challenge_id: str
    created_at: datetime
    expires_at: datetime
    last_activity: datetime


@dataclass(frozen=True)
class IssuedChallenge:
    challenge_id: str
    message: str
    expires_at: datetime


@dataclass(frozen=True)
class IssuedTokens:
    token: str
    refresh_token: str
    expires_at: datetime
    session_id: str
    wallet_address: str


@dataclass(frozen=True)
class SessionInfo:
    """Read-only view of a token's authentication state, computed on demand."""

    is_authenticated: bool
    wallet_address: str | None = None
    session_id: str | None = None
    expires_at: datetime | None = None
    is_expired: bool | None = None
    time_remaining_ms: int | None = None

    @classmethod
    def anonymous(cls, *, expired: bool | None = None) -> SessionInfo:
        return cls(is_authenticated=False, is_expired=expired)


@dataclass(frozen=True)
class AuthContext:
    """Identity attached to a request by the auth gate."""

    session: SessionInfo = field(default_factory=SessionInfo.anonymous)
    dev_mode: bool = False

    @property
    def authenticated(self) -> bool:
        return self.session.is_authenticated

    @property
    def wallet_address(self) -> str | None:
        return self.session.wallet_address
