"""Business logic services for the authentication subsystem."""

from .challenge import ChallengeIssuer
from .identity import DevModeIdentityResolver, IdentityResolver, SessionIdentityResolver
from .registry import AuthServices, build_auth_services
from .rate_limit import RateLimitInfo, build_rate_limit_info, select_limits
from .session_manager import SessionManager
from .sweeper import StoreSweeper
from .tokens import TokenService

__all__ = [
    "AuthServices",
    "ChallengeIssuer",
    "DevModeIdentityResolver",
    "IdentityResolver",
    "RateLimitInfo",
    "SessionIdentityResolver",
    "SessionManager",
    "StoreSweeper",
    "TokenService",
    "build_auth_services",
    "build_rate_limit_info",
    "select_limits",
]
