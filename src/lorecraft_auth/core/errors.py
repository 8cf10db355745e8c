"""Error taxonomy for the authentication subsystem.

Every failure that crosses the session manager boundary is one of these
classes. Each carries a stable machine-readable ``code``, a human-readable
``message`` and the HTTP status the API layer should answer with.
"""

from __future__ import annotations

from fastapi import status


class AuthError(RuntimeError):
    """Base class for authentication failures surfaced to callers."""

    code = "AUTH_ERROR"
    default_message = "Authentication failed"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str | None = None, *, reason: str | None = None) -> None:
        self.message = message or self.default_message
        # Internal diagnostic detail; logged, never rendered.
        self.reason = reason
        super().__init__(self.message)


class MalformedRequestError(AuthError):
    code = "INVALID_REQUEST"
    default_message = "Request payload is invalid"
    status_code = status.HTTP_400_BAD_REQUEST


class ChallengeIssueError(AuthError):
    code = "CHALLENGE_ISSUE_FAILED"
    default_message = "Failed to generate authentication challenge"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ChallengeInvalidError(AuthError):
    """The challenge is missing, expired, or already consumed."""

    code = "CHALLENGE_INVALID"
    default_message = "Challenge is invalid or has expired"


class ChallengeWalletMismatchError(ChallengeInvalidError):
    code = "CHALLENGE_WALLET_MISMATCH"
    default_message = "Challenge was issued for a different wallet"


class InvalidSignatureError(AuthError):
    """The signature is malformed or does not recover to the claimed wallet."""

    code = "INVALID_SIGNATURE"
    default_message = "Invalid signature"


class SessionInvalidError(AuthError):
    """The session does not exist or has expired."""

    code = "SESSION_INVALID"
    default_message = "Session not found or expired"


class TokenInvalidError(AuthError):
    """The token is malformed, expired, or carries a bad signature."""

    code = "TOKEN_INVALID"
    default_message = "Invalid or expired token"


class RefreshTokenTypeError(TokenInvalidError):
    code = "REFRESH_TOKEN_TYPE_MISMATCH"
    default_message = "Token is not a refresh token"


class AuthenticationRequiredError(AuthError):
    code = "AUTH_REQUIRED"
    default_message = "Authentication required"


class InternalAuthError(AuthError):
    code = "INTERNAL_ERROR"
    default_message = "Authentication check failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_envelope(error: AuthError, challenge_endpoint: str) -> dict[str, object]:
    """Render an error as the JSON body shared by every failing auth response."""
    return {
        "success": False,
        "error": error.message,
        "code": error.code,
        "message": error.message,
        "challengeEndpoint": challenge_endpoint,
    }
