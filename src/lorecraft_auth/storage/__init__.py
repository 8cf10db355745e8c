"""Process-lifetime storage for challenges and sessions."""

from .memory import ChallengeStore, SessionStore, TTLStore

__all__ = ["ChallengeStore", "SessionStore", "TTLStore"]
