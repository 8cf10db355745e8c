"""Tiered rate-limit policy keyed on authentication state.

Usage counters are not tracked by this service: ``used`` is always zero and
``remaining`` equals the ceiling. A counter backend is a separate component.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Final


@dataclass(frozen=True)
class LimitTable:
    """Ceilings per tracked resource (opensea per hour, the rest per day)."""

    opensea: int
    ai_messages: int
    summaries: int
    total_tokens: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)

    def minus(self, other: LimitTable) -> LimitTable:
        return LimitTable(
            opensea=max(0, self.opensea - other.opensea),
            ai_messages=max(0, self.ai_messages - other.ai_messages),
            summaries=max(0, self.summaries - other.summaries),
            total_tokens=max(0, self.total_tokens - other.total_tokens),
        )


UNAUTHENTICATED_LIMITS: Final = LimitTable(
    opensea=30,
    ai_messages=20,
    summaries=5,
    total_tokens=50_000,
)
AUTHENTICATED_LIMITS: Final = LimitTable(
    opensea=100,
    ai_messages=50,
    summaries=15,
    total_tokens=150_000,
)
ZERO_USAGE: Final = LimitTable(opensea=0, ai_messages=0, summaries=0, total_tokens=0)


def select_limits(is_authenticated: bool) -> LimitTable:
    """Return the static limit table for the given authentication state."""
    return AUTHENTICATED_LIMITS if is_authenticated else UNAUTHENTICATED_LIMITS


@dataclass(frozen=True)
class RateLimitInfo:
    authenticated: bool
    limits: LimitTable
    used: LimitTable = field(default=ZERO_USAGE)

    @property
    def remaining(self) -> LimitTable:
        return self.limits.minus(self.used)

    @property
    def tier(self) -> str:
        return "authenticated" if self.authenticated else "unauthenticated"


def build_rate_limit_info(is_authenticated: bool) -> RateLimitInfo:
    return RateLimitInfo(authenticated=is_authenticated, limits=select_limits(is_authenticated))


def describe_limits(is_authenticated: bool) -> dict[str, str]:
    """Human-readable limit summary used in status and verification responses."""
    limits = select_limits(is_authenticated)
    return {
        "opensea": f"{limits.opensea} requests/hour",
        "aiMessages": f"{limits.ai_messages} per day",
        "summaries": f"{limits.summaries} per day",
        "tokens": f"{limits.total_tokens:,} per day",
        "note": "Authenticated user limits" if is_authenticated else "Unauthenticated user limits",
    }
