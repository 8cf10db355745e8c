"""Signed access and refresh tokens bound to a session id."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Literal, TypeVar

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lorecraft_auth.core.errors import RefreshTokenTypeError, TokenInvalidError
from lorecraft_auth.core.settings import Settings
from lorecraft_auth.core.time import Clock, utcnow

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class _TokenPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    wallet_address: str = Field(alias="walletAddress", min_length=1)
    session_id: str = Field(alias="sessionId", min_length=1)
    iat: int
    exp: int


class AccessTokenPayload(_TokenPayload):
    """Claims carried by an access token."""

    challenge_id: str = Field(alias="challengeId", min_length=1)
    type: Literal["access"] = ACCESS_TOKEN_TYPE


class RefreshTokenPayload(_TokenPayload):
    """Claims carried by a refresh token."""

    type: Literal["refresh"] = REFRESH_TOKEN_TYPE


PayloadT = TypeVar("PayloadT", bound=_TokenPayload)


class TokenService:
    """Issue and verify the two token kinds with independent secrets."""

    def __init__(self, settings: Settings, clock: Clock = utcnow) -> None:
        self.settings = settings
        self._clock = clock

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.access_token_expire_minutes)

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(days=self.settings.refresh_token_expire_days)

    def _encode(self, claims: dict[str, Any], secret: str, ttl: timedelta) -> tuple[str, datetime]:
        issued_at = self._clock()
        expires_at = issued_at + ttl
        to_encode = {
            **claims,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token: str = jwt.encode(to_encode, secret, algorithm=self.settings.jwt_algorithm)
        return token, expires_at

    def _decode(self, token: str, secret: str, *, verify_exp: bool = True) -> dict[str, Any]:
        # Expiry is checked against the service clock, not the library's wall clock.
        try:
            claims: dict[str, Any] = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.jwt_algorithm],
                options={"verify_exp": False},
            )
        except JWTError as err:
            logger.debug("Token rejected: %s", err)
            raise TokenInvalidError(reason=str(err)) from err

        exp = claims.get("exp")
        if not isinstance(exp, int) or isinstance(exp, bool):
            raise TokenInvalidError(reason="missing or malformed exp")
        if verify_exp and exp <= int(self._clock().timestamp()):
            logger.debug("Token rejected: expired at %d", exp)
            raise TokenInvalidError(reason="token expired")
        return claims

    @staticmethod
    def _parse(claims: dict[str, Any], model: type[PayloadT]) -> PayloadT:
        try:
            return model.model_validate(claims)
        except ValidationError as err:
            raise TokenInvalidError(reason=f"bad claims: {err.error_count()} errors") from err

    def issue_access_token(
        self,
        *,
        wallet_address: str,
        session_id: str,
        challenge_id: str,
    ) -> tuple[str, datetime]:
        """Return a signed access token and its expiry."""
        claims = {
            "walletAddress": wallet_address.lower(),
            "sessionId": session_id,
            "challengeId": challenge_id,
            "type": ACCESS_TOKEN_TYPE,
        }
        return self._encode(claims, self.settings.jwt_secret, self.access_ttl)

    def issue_refresh_token(self, *, wallet_address: str, session_id: str) -> tuple[str, datetime]:
        """Return a signed refresh token and its expiry."""
        claims = {
            "walletAddress": wallet_address.lower(),
            "sessionId": session_id,
            "type": REFRESH_TOKEN_TYPE,
        }
        return self._encode(claims, self.settings.refresh_secret, self.refresh_ttl)

    def verify_access_token(self, token: str, *, allow_expired: bool = False) -> AccessTokenPayload:
        """Decode and validate an access token.

        Args:
            token: Encoded token presented by the client.
            allow_expired: Skip the expiry check (used when logging out).

        Raises:
            TokenInvalidError: For malformed, expired, or mis-signed tokens.
        """
        claims = self._decode(token, self.settings.jwt_secret, verify_exp=not allow_expired)
        if claims.get("type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
            raise TokenInvalidError(reason="not an access token")
        return self._parse(claims, AccessTokenPayload)

    def verify_refresh_token(self, token: str) -> RefreshTokenPayload:
        """Decode and validate a refresh token.

        Raises:
            TokenInvalidError: For malformed, expired, or mis-signed tokens.
            RefreshTokenTypeError: If the token is validly signed but not a refresh token.
        """
        claims = self._decode(token, self.settings.refresh_secret)
        if claims.get("type") != REFRESH_TOKEN_TYPE:
            raise RefreshTokenTypeError(reason=f"type={claims.get('type')!r}")
        return self._parse(claims, RefreshTokenPayload)
