"""In-memory domain records for challenges and sessions."""

from .auth import AuthContext, Challenge, IssuedChallenge, IssuedTokens, Session, SessionInfo

__all__ = [
    "AuthContext",
    "Challenge",
    "IssuedChallenge",
    "IssuedTokens",
    "Session",
    "SessionInfo",
]
