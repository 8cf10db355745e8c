"""Wallet challenge-response authentication and session lifecycle service."""

__version__ = "0.1.0"
