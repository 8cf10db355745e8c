"""Authentication request and response schemas.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChallengeRequest(_CamelModel):
    """Request to obtain a sign-in challenge."""

    wallet_address: str | None = Field(None, alias="walletAddress", description="0x-prefixed wallet")


class ChallengeInstructions(_CamelModel):
    step1: str
    step2: str
    step3: str
    note: str


class ChallengeResponse(_CamelModel):
    """Challenge message the wallet must sign."""

    success: bool = True
    challenge: str = Field(..., description="Exact message to sign")
    challenge_id: str = Field(..., alias="challengeId")
    message: str = Field(..., description="Same as challenge, kept for older clients")
    expires_at: int = Field(..., alias="expiresAt", description="Epoch milliseconds")
    instructions: ChallengeInstructions


class VerifyRequest(_CamelModel):
    """Signed challenge submission."""

    wallet_address: str | None = Field(None, alias="walletAddress")
    signature: str | None = Field(None, description="0x-prefixed 65-byte signature")
    challenge_id: str | None = Field(None, alias="challengeId")


class UsageSummary(_CamelModel):
    authenticated: bool
    enhanced_limits: dict[str, str] = Field(..., alias="enhancedLimits")


class VerifyResponse(_CamelModel):
    """Tokens returned after a successful handshake."""

    success: bool = True
    message: str = "Authentication successful"
    token: str = Field(..., description="Access token for the Authorization header")
    refresh_token: str = Field(..., alias="refreshToken")
    expires_at: int = Field(..., alias="expiresAt", description="Access token expiry, epoch ms")
    wallet_address: str = Field(..., alias="walletAddress")
    usage: UsageSummary


class RefreshRequest(_CamelModel):
    refresh_token: str | None = Field(None, alias="refreshToken")


class RefreshResponse(_CamelModel):
    success: bool = True
    message: str = "Token refreshed successfully"
    token: str
    refresh_token: str = Field(..., alias="refreshToken")
    expires_at: int = Field(..., alias="expiresAt")
    refreshed_at: str = Field(..., alias="refreshedAt")


class LogoutResponse(_CamelModel):
    success: bool = True
    message: str = "Logout successful"
    logged_out_at: str = Field(..., alias="loggedOutAt")
    revoked_sessions: int = Field(0, alias="revokedSessions")


class SessionStatus(_CamelModel):
    wallet_address: str | None = Field(None, alias="walletAddress")
    session_id: str | None = Field(None, alias="sessionId")
    expires_at: int | None = Field(None, alias="expiresAt")
    time_remaining: int | None = Field(None, alias="timeRemaining")
    is_expired: bool | None = Field(None, alias="isExpired")
    dev_mode: bool = Field(False, alias="devMode")


class SystemStatus(_CamelModel):
    active_sessions: int = Field(..., alias="activeSessions")
    active_challenges: int = Field(..., alias="activeChallenges")
    timestamp: int
    dev_mode: dict[str, object] = Field(..., alias="devMode")


class StatusResponse(_CamelModel):
    authenticated: bool
    session: SessionStatus | None = None
    system: SystemStatus
    endpoints: dict[str, str]
    rate_limits: dict[str, str] = Field(..., alias="rateLimits")
