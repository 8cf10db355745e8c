"""Signature verification strategies used by the session manager."""
from __future__ import annotations

import logging
from typing import Protocol

from lorecraft_auth.core.security import verify_wallet_signature
from lorecraft_auth.core.settings import Settings

logger = logging.getLogger(__name__)


class SignatureVerifier(Protocol):
    """Decide whether ``signature`` over ``message`` was produced by ``wallet_address``."""

    def __call__(self, message: str, signature: str, wallet_address: str) -> bool: ...


class WalletSignatureVerifier:
    """Recover the signer with personal-message recovery and compare addresses."""

    def __call__(self, message: str, signature: str, wallet_address: str) -> bool:
        return verify_wallet_signature(message, signature, wallet_address)


class DevModeSignatureVerifier:
    """Accept every signature. Only selected when development mode is active."""

    def __call__(self, message: str, signature: str, wallet_address: str) -> bool:
        logger.warning(
            "DEV MODE: skipping signature verification for wallet %s",
            wallet_address.lower(),
        )
        return True


def select_signature_verifier(settings: Settings) -> SignatureVerifier:
    """Pick the verifier once at startup based on configuration."""
    if settings.dev_mode_active:
        logger.warning(
            "Development mode is active (ENVIRONMENT=%s); wallet signatures are NOT verified",
            settings.environment,
        )
        return DevModeSignatureVerifier()
    return WalletSignatureVerifier()
