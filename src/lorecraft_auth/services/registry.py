"""Construction of the authentication service graph."""

from __future__ import annotations

from dataclasses import dataclass

from lorecraft_auth.core.settings import Settings
from lorecraft_auth.core.time import Clock, utcnow
from lorecraft_auth.services.identity import IdentityResolver, select_identity_resolver
from lorecraft_auth.services.session_manager import SessionManager
from lorecraft_auth.services.sweeper import StoreSweeper
from lorecraft_auth.services.tokens import TokenService
from lorecraft_auth.services.verification import select_signature_verifier
from lorecraft_auth.storage import ChallengeStore, SessionStore


@dataclass
class AuthServices:
    """Everything one application instance needs, built once at startup."""

    settings: Settings
    challenges: ChallengeStore
    sessions: SessionStore
    tokens: TokenService
    manager: SessionManager
    resolver: IdentityResolver
    sweeper: StoreSweeper


def build_auth_services(settings: Settings, clock: Clock = utcnow) -> AuthServices:
    """Wire fresh stores, the token codec, and the strategies chosen by ``settings``."""
    challenges = ChallengeStore(clock=clock)
    sessions = SessionStore(clock=clock)
    tokens = TokenService(settings, clock=clock)
    manager = SessionManager(
        settings,
        challenges,
        sessions,
        tokens,
        verifier=select_signature_verifier(settings),
        clock=clock,
    )
    sweeper = StoreSweeper(
        challenges,
        sessions,
        challenge_interval=settings.challenge_sweep_interval_seconds,
        session_interval=settings.session_sweep_interval_seconds,
    )
    return AuthServices(
        settings=settings,
        challenges=challenges,
        sessions=sessions,
        tokens=tokens,
        manager=manager,
        resolver=select_identity_resolver(manager, settings, clock=clock),
        sweeper=sweeper,
    )
