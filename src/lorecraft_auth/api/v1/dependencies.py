"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lorecraft_auth.core.errors import AuthenticationRequiredError
from lorecraft_auth.core.settings import Settings
from lorecraft_auth.models import AuthContext
from lorecraft_auth.services.registry import AuthServices
from lorecraft_auth.services.session_manager import SessionManager


def get_auth_services(request: Request) -> AuthServices:
    """Return the service graph built for this application instance."""
    services: AuthServices = request.app.state.auth
    return services


AuthServicesDep = Annotated[AuthServices, Depends(get_auth_services)]


def get_settings_dep(services: AuthServicesDep) -> Settings:
    return services.settings


def get_session_manager(services: AuthServicesDep) -> SessionManager:
    return services.manager


SettingsDep = Annotated[Settings, Depends(get_settings_dep)]
SessionManagerDep = Annotated[SessionManager, Depends(get_session_manager)]


# HTTP Bearer scheme; missing or non-bearer credentials resolve to None
bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """Return the bearer token sent with the request, if any."""
    if credentials is None:
        return None
    return credentials.credentials.strip() or None


BearerTokenDep = Annotated[str | None, Depends(get_bearer_token)]


def optional_auth(request: Request, services: AuthServicesDep, token: BearerTokenDep) -> AuthContext:
    """Return the request's identity, authenticated or not.

    The gate middleware normally resolves this already; routers mounted
    without it fall back to resolving here.
    """
    context = getattr(request.state, "auth", None)
    if isinstance(context, AuthContext):
        return context
    context = services.resolver.resolve(token, request.query_params)
    request.state.auth = context
    return context


OptionalAuthDep = Annotated[AuthContext, Depends(optional_auth)]


def require_auth(context: OptionalAuthDep) -> AuthContext:
    """Reject the request before the handler runs unless it is authenticated.

    Raises:
        AuthenticationRequiredError: If no valid session backs the request.
    """
    if not context.authenticated:
        raise AuthenticationRequiredError(
            "Authentication required. Sign a challenge to obtain an access token."
        )
    return context


RequiredAuthDep = Annotated[AuthContext, Depends(require_auth)]
