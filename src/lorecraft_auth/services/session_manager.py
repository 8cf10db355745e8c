"""Session lifecycle orchestration.

The session manager is the only component that creates, extends, or revokes
sessions. It consumes challenges, verifies wallet signatures, and issues
token pairs, converting every failure into one of the ``AuthError`` kinds.
"""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Any

from lorecraft_auth.core.errors import (
    ChallengeInvalidError,
    ChallengeWalletMismatchError,
    InvalidSignatureError,
    SessionInvalidError,
    TokenInvalidError,
)
from lorecraft_auth.core.security import normalize_address
from lorecraft_auth.core.settings import Settings
from lorecraft_auth.core.time import Clock, to_epoch_ms, utcnow
from lorecraft_auth.models import IssuedChallenge, IssuedTokens, Session, SessionInfo
from lorecraft_auth.services.challenge import ChallengeIssuer
from lorecraft_auth.services.tokens import TokenService
from lorecraft_auth.services.verification import SignatureVerifier, WalletSignatureVerifier
from lorecraft_auth.storage import ChallengeStore, SessionStore

logger = logging.getLogger(__name__)

SESSION_ID_BYTES = 24


class SessionManager:
    """Challenge consumption, signature verification, and session bookkeeping."""

    def __init__(
        self,
        settings: Settings,
        challenges: ChallengeStore,
        sessions: SessionStore,
        tokens: TokenService,
        *,
        verifier: SignatureVerifier | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.settings = settings
        self.challenges = challenges
        self.sessions = sessions
        self.tokens = tokens
        self.verifier: SignatureVerifier = verifier or WalletSignatureVerifier()
        self.issuer = ChallengeIssuer(settings, challenges, clock=clock)
        self._clock = clock

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(hours=self.settings.session_duration_hours)

    # --- Handshake ------------------------------------------------------------------
    def issue_challenge(self, wallet_address: str) -> IssuedChallenge:
        """Issue a new challenge for ``wallet_address``."""
        return self.issuer.issue(wallet_address)

    def verify_and_create_session(
        self,
        wallet_address: str,
        signature: str,
        challenge_id: str,
    ) -> IssuedTokens:
        """Complete the handshake and open a session.

        The challenge is consumed before anything else is checked, so a failed
        attempt still burns it.

        Raises:
            ChallengeInvalidError: The challenge is unknown, expired, or already used.
            ChallengeWalletMismatchError: The challenge belongs to another wallet.
            InvalidSignatureError: The signature does not prove ownership.
        """
        normalized = normalize_address(wallet_address)
        challenge = self.challenges.consume(challenge_id)
        if challenge is None:
            logger.info("Rejected verification for %s: unknown or expired challenge", normalized)
            raise ChallengeInvalidError(reason="missing or expired")

        if challenge.wallet_address != normalized:
            logger.warning(
                "Rejected verification: challenge %s issued for %s, presented by %s",
                challenge_id[:8],
                challenge.wallet_address,
                normalized,
            )
            raise ChallengeWalletMismatchError(reason="wallet mismatch")

        try:
            verified = self.verifier(challenge.message, signature, normalized)
        except Exception as err:
            logger.warning("Signature verification raised for %s: %s", normalized, err)
            verified = False
        if not verified:
            logger.info("Rejected verification for %s: invalid signature", normalized)
            raise InvalidSignatureError(reason="signature did not recover to wallet")

        session = self._create_session(normalized, challenge.challenge_id)
        return self._issue_tokens(session)

    def _create_session(self, wallet_address: str, challenge_id: str) -> Session:
        now = self._clock()
        session = Session(
            session_id=secrets.token_urlsafe(SESSION_ID_BYTES),
            wallet_address=wallet_address,
            challenge_id=challenge_id,
            created_at=now,
            expires_at=now + self.session_ttl,
            last_activity=now,
        )
        self.sessions.put(session.session_id, session)
        logger.info(
            "Created session %s for wallet %s, expires %s",
            session.session_id[:8],
            wallet_address,
            session.expires_at.isoformat(),
        )
        return session

    def _issue_tokens(self, session: Session, refresh_token: str | None = None) -> IssuedTokens:
        access_token, access_expires_at = self.tokens.issue_access_token(
            wallet_address=session.wallet_address,
            session_id=session.session_id,
            challenge_id=session.challenge_id,
        )
        if refresh_token is None:
            refresh_token, _ = self.tokens.issue_refresh_token(
                wallet_address=session.wallet_address,
                session_id=session.session_id,
            )
        return IssuedTokens(
            token=access_token,
            refresh_token=refresh_token,
            expires_at=access_expires_at,
            session_id=session.session_id,
            wallet_address=session.wallet_address,
        )

    # --- Per-request validation -----------------------------------------------------
    def validate(self, access_token: str) -> SessionInfo:
        """Resolve an access token to the state of its live session.

        Never raises for bad tokens or dead sessions; those yield an
        unauthenticated ``SessionInfo``.
        """
        try:
            payload = self.tokens.verify_access_token(access_token)
        except TokenInvalidError as err:
            logger.debug("Access token rejected: %s", err.reason)
            return SessionInfo.anonymous()

        session = self.sessions.touch(payload.session_id)
        if session is None:
            logger.info("Token presented for missing or expired session %s", payload.session_id[:8])
            return SessionInfo.anonymous(expired=True)

        if session.wallet_address != normalize_address(payload.wallet_address):
            logger.warning("Token wallet does not match session %s", payload.session_id[:8])
            return SessionInfo.anonymous()

        remaining = session.expires_at - self._clock()
        return SessionInfo(
            is_authenticated=True,
            wallet_address=session.wallet_address,
            session_id=session.session_id,
            expires_at=session.expires_at,
            is_expired=False,
            time_remaining_ms=max(0, int(remaining.total_seconds() * 1000)),
        )

    def refresh(self, refresh_token: str) -> IssuedTokens:
        """Extend a session and issue a new access token for it.

        The refresh token itself is returned unchanged; refresh tokens are not
        rotated and stay usable until their own expiry.

        Raises:
            TokenInvalidError: The refresh token is malformed, expired, or mis-signed.
            RefreshTokenTypeError: The token is not a refresh token.
            SessionInvalidError: The session no longer exists.
        """
        payload = self.tokens.verify_refresh_token(refresh_token)
        session = self.sessions.extend(payload.session_id, self._clock() + self.session_ttl)
        if session is None:
            logger.info("Refresh for missing or expired session %s", payload.session_id[:8])
            raise SessionInvalidError(reason="missing or expired")
        if session.wallet_address != normalize_address(payload.wallet_address):
            logger.warning("Refresh token wallet does not match session %s", session.session_id[:8])
            raise SessionInvalidError(reason="wallet mismatch")

        logger.info(
            "Extended session %s, new expiry %s",
            session.session_id[:8],
            session.expires_at.isoformat(),
        )
        return self._issue_tokens(session, refresh_token=refresh_token)

    # --- Revocation -----------------------------------------------------------------
    def revoke(self, session_id: str) -> bool:
        """Delete a session. Returns whether it existed; never fails."""
        existed = self.sessions.delete(session_id)
        if existed:
            logger.info("Revoked session %s", session_id[:8])
        return existed

    def revoke_all(self, wallet_address: str) -> int:
        """Delete every session owned by ``wallet_address``."""
        normalized = normalize_address(wallet_address)
        count = self.sessions.delete_for_wallet(normalized)
        if count:
            logger.info("Revoked %d sessions for wallet %s", count, normalized)
        return count

    def logout(self, access_token: str) -> bool:
        """Revoke the session named by an access token, even if the token has expired."""
        try:
            payload = self.tokens.verify_access_token(access_token, allow_expired=True)
        except TokenInvalidError as err:
            logger.info("Logout with unusable token: %s", err.reason)
            return False
        return self.revoke(payload.session_id)

    # --- Introspection --------------------------------------------------------------
    def active_sessions(self) -> list[Session]:
        return self.sessions.values()

    def stats(self) -> dict[str, Any]:
        return {
            "activeSessions": len(self.sessions.values()),
            "activeChallenges": len(self.challenges.values()),
            "timestamp": to_epoch_ms(self._clock()),
        }
