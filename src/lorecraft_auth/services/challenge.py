"""Challenge issuance for the wallet sign-in handshake."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from lorecraft_auth.core.errors import ChallengeIssueError
from lorecraft_auth.core.security import normalize_address
from lorecraft_auth.core.settings import Settings
from lorecraft_auth.core.time import Clock, utcnow
from lorecraft_auth.models import Challenge, IssuedChallenge
from lorecraft_auth.storage import ChallengeStore

logger = logging.getLogger(__name__)

CHALLENGE_ID_BYTES = 16
NONCE_BYTES = 32


def _iso(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def compose_challenge_message(
    *,
    site_name: str,
    site_domain: str,
    wallet_address: str,
    nonce: str,
    issued_at: datetime,
    expires_at: datetime,
) -> str:
    """Build the human-readable text the wallet is asked to sign."""
    return (
        f"Welcome to {site_name}!\n"
        "\n"
        "Sign this message to prove you own this wallet. "
        "This signature authenticates wallet ownership only.\n"
        "\n"
        f"Only sign this message on {site_domain}. "
        "If another site asks you to sign it, do not proceed.\n"
        "\n"
        f"Wallet: {wallet_address}\n"
        f"Nonce: {nonce}\n"
        f"Issued At: {_iso(issued_at)}\n"
        f"Expires At: {_iso(expires_at)}\n"
        "\n"
        "This request will not trigger a blockchain transaction or cost any gas fees."
    )


class ChallengeIssuer:
    """Generate single-use challenges and register them in the challenge store."""

    def __init__(self, settings: Settings, store: ChallengeStore, clock: Clock = utcnow) -> None:
        self.settings = settings
        self.store = store
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.challenge_expiry_minutes)

    def issue(self, wallet_address: str) -> IssuedChallenge:
        """Create a challenge bound to ``wallet_address``.

        Raises:
            ChallengeIssueError: If the challenge cannot be stored.
        """
        normalized = normalize_address(wallet_address)
        challenge_id = secrets.token_hex(CHALLENGE_ID_BYTES)
        nonce = secrets.token_hex(NONCE_BYTES)
        issued_at = self._clock()
        expires_at = issued_at + self.ttl
        message = compose_challenge_message(
            site_name=self.settings.site_name,
            site_domain=self.settings.site_domain,
            wallet_address=normalized,
            nonce=nonce,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        challenge = Challenge(
            challenge_id=challenge_id,
            wallet_address=normalized,
            message=message,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        try:
            self.store.put(challenge_id, challenge)
        except Exception as err:
            logger.error("Failed to store challenge for wallet %s", normalized, exc_info=True)
            raise ChallengeIssueError(reason=str(err)) from err

        logger.info(
            "Created challenge %s for wallet %s, expires %s",
            challenge_id[:8],
            normalized,
            _iso(expires_at),
        )
        return IssuedChallenge(challenge_id=challenge_id, message=message, expires_at=expires_at)
