"""Per-request authentication gate.

The middleware resolves the caller's identity once per request, exposes it as
``request.state.auth``, and stamps authentication and rate-limit headers on
every response, including error responses produced further down the stack.
"""

from __future__ import annotations

import asyncio
import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from lorecraft_auth.core.errors import InternalAuthError, error_envelope
from lorecraft_auth.core.time import to_epoch_ms
from lorecraft_auth.models import AuthContext
from lorecraft_auth.services.identity import extract_bearer
from lorecraft_auth.services.rate_limit import RateLimitInfo, build_rate_limit_info
from lorecraft_auth.services.registry import AuthServices

logger = logging.getLogger(__name__)

_RESOURCE_HEADER_NAMES = {
    "opensea": "OpenSea",
    "ai_messages": "AI-Messages",
    "summaries": "Summaries",
    "total_tokens": "Tokens",
}


def auth_headers(context: AuthContext, limits: RateLimitInfo) -> dict[str, str]:
    """Build the authentication and rate-limit headers for a resolved request."""
    session = context.session
    headers = {
        "X-Auth-Authenticated": "true" if context.authenticated else "false",
        "X-Auth-Dev-Mode": "true" if context.dev_mode else "false",
        "X-RateLimit-Tier": limits.tier,
    }
    if context.authenticated:
        headers["X-Auth-Wallet"] = session.wallet_address or ""
        headers["X-Auth-Session"] = session.session_id or ""
        if session.expires_at is not None:
            headers["X-Auth-Expires-At"] = str(to_epoch_ms(session.expires_at))
        if session.time_remaining_ms is not None:
            headers["X-Auth-Time-Remaining"] = str(session.time_remaining_ms)

    ceilings = limits.limits.as_dict()
    remaining = limits.remaining.as_dict()
    for field_name, label in _RESOURCE_HEADER_NAMES.items():
        headers[f"X-RateLimit-{label}-Limit"] = str(ceilings[field_name])
        headers[f"X-RateLimit-{label}-Remaining"] = str(remaining[field_name])
    return headers


def _internal_error(services: AuthServices) -> JSONResponse:
    error = InternalAuthError()
    return JSONResponse(
        error_envelope(error, services.settings.challenge_endpoint),
        status_code=error.status_code,
    )


class AuthGateMiddleware(BaseHTTPMiddleware):
    """Attach an ``AuthContext`` to each request and auth headers to each response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        services: AuthServices = request.app.state.auth
        token = extract_bearer(request.headers.get("Authorization"))
        try:
            # Token decode and store lock stay off the event loop.
            context = await asyncio.to_thread(services.resolver.resolve, token, request.query_params)
        except Exception:
            logger.exception("Identity resolution failed for %s", request.url.path)
            response = _internal_error(services)
            response.headers.update(auth_headers(AuthContext(), build_rate_limit_info(False)))
            return response

        request.state.auth = context
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error while serving %s", request.url.path)
            response = _internal_error(services)
        response.headers.update(auth_headers(context, build_rate_limit_info(context.authenticated)))
        return response
