# src/lorecraft_auth/api/v1/endpoints/auth.py
"""Authentication endpoints for the wallet sign-in handshake."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from lorecraft_auth.api.v1.dependencies import (
    AuthServicesDep,
    BearerTokenDep,
    OptionalAuthDep,
    RequiredAuthDep,
    SessionManagerDep,
    SettingsDep,
)
from lorecraft_auth.core.errors import AuthError, MalformedRequestError
from lorecraft_auth.core.security import is_signature_format, is_wallet_address, normalize_address
from lorecraft_auth.core.settings import Settings
from lorecraft_auth.core.time import to_epoch_ms, utcnow
from lorecraft_auth.schemas.auth import (
    ChallengeInstructions,
    ChallengeRequest,
    ChallengeResponse,
    LogoutResponse,
    RefreshRequest,
    RefreshResponse,
    SessionStatus,
    StatusResponse,
    SystemStatus,
    UsageSummary,
    VerifyRequest,
    VerifyResponse,
)
from lorecraft_auth.services.rate_limit import describe_limits

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _require_wallet(wallet_address: str | None) -> str:
    if not wallet_address:
        raise MalformedRequestError("Wallet address is required")
    if not is_wallet_address(wallet_address):
        raise MalformedRequestError("Invalid Ethereum address format")
    return wallet_address


def _endpoint_map(settings: Settings) -> dict[str, str]:
    base = f"{settings.api_prefix}/auth"
    return {
        "challenge": f"{base}/challenge",
        "verify": f"{base}/verify",
        "refresh": f"{base}/refresh",
        "logout": f"{base}/logout",
    }


@router.post(
    "/challenge",
    summary="Issue a wallet sign-in challenge",
    response_model=ChallengeResponse,
)
def issue_challenge(
    payload: ChallengeRequest,
    manager: SessionManagerDep,
    settings: SettingsDep,
) -> ChallengeResponse:
    """Return a single-use message the wallet must sign."""
    wallet_address = _require_wallet(payload.wallet_address)
    issued = manager.issue_challenge(wallet_address)
    endpoints = _endpoint_map(settings)
    return ChallengeResponse(
        challenge=issued.message,
        challenge_id=issued.challenge_id,
        message=issued.message,
        expires_at=to_epoch_ms(issued.expires_at),
        instructions=ChallengeInstructions(
            step1="Copy the challenge message above",
            step2="Sign it with your wallet (personal_sign)",
            step3=f"Send the signature to {endpoints['verify']}",
            note=f"Challenge expires in {settings.challenge_expiry_minutes} minutes",
        ),
    )


@router.post(
    "/verify",
    summary="Exchange a signed challenge for tokens",
    response_model=VerifyResponse,
)
def verify_signature(payload: VerifyRequest, manager: SessionManagerDep) -> VerifyResponse:
    """Verify the signed challenge and open a session."""
    if not payload.wallet_address or not payload.signature or not payload.challenge_id:
        raise MalformedRequestError("Wallet address, signature, and challenge ID are required")
    wallet_address = _require_wallet(payload.wallet_address)
    if not is_signature_format(payload.signature):
        raise MalformedRequestError("Invalid signature format")

    issued = manager.verify_and_create_session(
        wallet_address,
        payload.signature,
        payload.challenge_id,
    )
    return VerifyResponse(
        token=issued.token,
        refresh_token=issued.refresh_token,
        expires_at=to_epoch_ms(issued.expires_at),
        wallet_address=normalize_address(wallet_address),
        usage=UsageSummary(authenticated=True, enhanced_limits=describe_limits(True)),
    )


@router.post(
    "/refresh",
    summary="Obtain a new access token with a refresh token",
    response_model=RefreshResponse,
)
def refresh_token(
    payload: RefreshRequest,
    manager: SessionManagerDep,
) -> RefreshResponse | JSONResponse:
    """Extend the session and return a new access token."""
    if not payload.refresh_token:
        raise MalformedRequestError("Refresh token is required")
    try:
        issued = manager.refresh(payload.refresh_token)
    except AuthError as err:
        logger.info("Token refresh failed: %s (%s)", err.code, err.reason)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "success": False,
                "error": err.message,
                "code": "REFRESH_FAILED",
                "reason": err.code,
                "action": "Please re-authenticate with your wallet",
            },
        )
    return RefreshResponse(
        token=issued.token,
        refresh_token=issued.refresh_token,
        expires_at=to_epoch_ms(issued.expires_at),
        refreshed_at=utcnow().isoformat(),
    )


@router.post(
    "/logout",
    summary="End the current session",
    response_model=LogoutResponse,
)
def logout(token: BearerTokenDep, manager: SessionManagerDep) -> LogoutResponse:
    """Revoke the session behind the presented access token."""
    if token is None:
        raise MalformedRequestError("Authorization header is required")
    revoked = manager.logout(token)
    return LogoutResponse(logged_out_at=utcnow().isoformat(), revoked_sessions=int(revoked))


@router.post(
    "/logout-all",
    summary="End every session for the authenticated wallet",
    response_model=LogoutResponse,
)
def logout_all(context: RequiredAuthDep, manager: SessionManagerDep) -> LogoutResponse:
    """Revoke all sessions held by the caller's wallet."""
    wallet_address = context.wallet_address or ""
    count = manager.revoke_all(wallet_address)
    return LogoutResponse(
        message=f"Logged out of {count} sessions",
        logged_out_at=utcnow().isoformat(),
        revoked_sessions=count,
    )


@router.get(
    "/status",
    summary="Describe the caller's authentication state",
    response_model=StatusResponse,
)
def auth_status(
    context: OptionalAuthDep,
    manager: SessionManagerDep,
    services: AuthServicesDep,
) -> StatusResponse:
    """Report session details, store statistics, and the applicable limits."""
    info = context.session
    session = None
    if context.authenticated:
        session = SessionStatus(
            wallet_address=info.wallet_address,
            session_id=info.session_id,
            expires_at=to_epoch_ms(info.expires_at) if info.expires_at else None,
            time_remaining=info.time_remaining_ms,
            is_expired=info.is_expired,
            dev_mode=context.dev_mode,
        )
    stats = manager.stats()
    return StatusResponse(
        authenticated=context.authenticated,
        session=session,
        system=SystemStatus(
            active_sessions=stats["activeSessions"],
            active_challenges=stats["activeChallenges"],
            timestamp=stats["timestamp"],
            dev_mode=services.resolver.describe(),
        ),
        endpoints=_endpoint_map(services.settings),
        rate_limits=describe_limits(context.authenticated),
    )
