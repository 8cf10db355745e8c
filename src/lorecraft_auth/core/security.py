"""Wallet signature utilities built on Ethereum personal-message recovery."""
from __future__ import annotations

import re

from eth_account import Account
from eth_account.messages import encode_defunct

from lorecraft_auth.core.errors import InvalidSignatureError

WALLET_ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
SIGNATURE_PATTERN = re.compile(r"^0x[a-fA-F0-9]{130}$")


def normalize_address(wallet_address: str) -> str:
    """Return the canonical lowercase form of a wallet address."""
    return wallet_address.strip().lower()


def is_wallet_address(value: str | None) -> bool:
    """Return True if ``value`` looks like a 20-byte hex Ethereum address."""
    return bool(value) and WALLET_ADDRESS_PATTERN.match(value.strip()) is not None


def is_signature_format(value: str | None) -> bool:
    """Return True if ``value`` is a 0x-prefixed 65-byte hex signature."""
    return bool(value) and SIGNATURE_PATTERN.match(value.strip()) is not None


def recover_wallet_address(message: str, signature: str) -> str:
    """Recover the lowercase address that produced ``signature`` over ``message``.

    Args:
        message: The exact UTF-8 text the wallet signed.
        signature: Hex-encoded recoverable signature.

    Returns:
        The recovered address, lowercased.

    Raises:
        InvalidSignatureError: If the signature cannot be decoded or recovered.
    """
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as err:
        raise InvalidSignatureError(reason=f"malformed signature: {err}") from err
    return normalize_address(recovered)


def verify_wallet_signature(message: str, signature: str, wallet_address: str) -> bool:
    """Verify a personal-message signature against a claimed wallet.

    Returns:
        True if the signature recovers to ``wallet_address``; False otherwise.
    """
    try:
        recovered = recover_wallet_address(message, signature)
    except InvalidSignatureError:
        return False
    return recovered == normalize_address(wallet_address)
