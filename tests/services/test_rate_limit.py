"""Tests for tiered rate-limit selection."""

from lorecraft_auth.services.rate_limit import (
    AUTHENTICATED_LIMITS,
    UNAUTHENTICATED_LIMITS,
    LimitTable,
    build_rate_limit_info,
    describe_limits,
    select_limits,
)


def test_select_limits_by_tier() -> None:
    assert select_limits(False) == LimitTable(
        opensea=30,
        ai_messages=20,
        summaries=5,
        total_tokens=50_000,
    )
    assert select_limits(True) == LimitTable(
        opensea=100,
        ai_messages=50,
        summaries=15,
        total_tokens=150_000,
    )


def test_authenticated_limits_dominate() -> None:
    authenticated = AUTHENTICATED_LIMITS.as_dict()
    for resource, ceiling in UNAUTHENTICATED_LIMITS.as_dict().items():
        assert authenticated[resource] >= ceiling
    assert AUTHENTICATED_LIMITS != UNAUTHENTICATED_LIMITS


def test_remaining_equals_limits_without_usage() -> None:
    info = build_rate_limit_info(True)

    assert info.tier == "authenticated"
    assert info.remaining == info.limits
    assert build_rate_limit_info(False).tier == "unauthenticated"


def test_minus_never_goes_negative() -> None:
    used = LimitTable(opensea=500, ai_messages=1, summaries=0, total_tokens=10)

    remaining = UNAUTHENTICATED_LIMITS.minus(used)

    assert remaining.opensea == 0
    assert remaining.ai_messages == 19
    assert remaining.total_tokens == 49_990


def test_describe_limits() -> None:
    summary = describe_limits(True)

    assert summary["opensea"] == "100 requests/hour"
    assert summary["tokens"] == "150,000 per day"
    assert summary["note"] == "Authenticated user limits"
    assert describe_limits(False)["aiMessages"] == "20 per day"
