# tests/v1/test_auth.py
"""Tests for authentication endpoints."""

from __future__ import annotations

from fastapi import status

from tests.conftest import FakeClock, login, sign_text


def _issue_challenge(client, address: str) -> dict:
    response = client.post("/api/v1/auth/challenge", json={"walletAddress": address})
    assert response.status_code == status.HTTP_200_OK
    return response.json()


def test_issue_challenge(client, wallet) -> None:
    data = _issue_challenge(client, wallet.address)

    assert data["success"] is True
    assert data["challenge"] == data["message"]
    assert len(data["challengeId"]) == 32
    assert wallet.address.lower() in data["challenge"]
    assert "lorecrafter.app" in data["challenge"]
    assert isinstance(data["expiresAt"], int)
    assert data["instructions"]["note"] == "Challenge expires in 5 minutes"


def test_issue_challenge_rejects_bad_address(client) -> None:
    response = client.post("/api/v1/auth/challenge", json={"walletAddress": "0x123"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "INVALID_REQUEST"
    assert data["error"] == "Invalid Ethereum address format"


def test_issue_challenge_requires_address(client) -> None:
    response = client.post("/api/v1/auth/challenge", json={})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Wallet address is required"


def test_verify_success(client, wallet) -> None:
    data = login(client, wallet)

    assert data["success"] is True
    assert data["walletAddress"] == wallet.address.lower()
    assert data["token"]
    assert data["refreshToken"]
    assert data["usage"]["authenticated"] is True
    assert data["usage"]["enhancedLimits"]["opensea"] == "100 requests/hour"


def test_verify_requires_all_fields(client, wallet) -> None:
    response = client.post("/api/v1/auth/verify", json={"walletAddress": wallet.address})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "INVALID_REQUEST"


def test_verify_rejects_malformed_signature(client, wallet) -> None:
    challenge = _issue_challenge(client, wallet.address)
    response = client.post(
        "/api/v1/auth/verify",
        json={
            "walletAddress": wallet.address,
            "signature": "0xdeadbeef",
            "challengeId": challenge["challengeId"],
        },
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Invalid signature format"


def test_verify_with_wrong_signer(client, wallet, other_wallet) -> None:
    challenge = _issue_challenge(client, wallet.address)
    response = client.post(
        "/api/v1/auth/verify",
        json={
            "walletAddress": wallet.address,
            "signature": sign_text(other_wallet.key, challenge["challenge"]),
            "challengeId": challenge["challengeId"],
        },
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    data = response.json()
    assert data["code"] == "INVALID_SIGNATURE"
    assert data["challengeEndpoint"] == "/api/v1/auth/challenge"


def test_verify_replay_is_rejected(client, wallet) -> None:
    challenge = _issue_challenge(client, wallet.address)
    payload = {
        "walletAddress": wallet.address,
        "signature": sign_text(wallet.key, challenge["challenge"]),
        "challengeId": challenge["challengeId"],
    }

    assert client.post("/api/v1/auth/verify", json=payload).status_code == status.HTTP_200_OK
    replay = client.post("/api/v1/auth/verify", json=payload)

    assert replay.status_code == status.HTTP_401_UNAUTHORIZED
    assert replay.json()["code"] == "CHALLENGE_INVALID"


def test_verify_after_challenge_expiry(client, wallet, clock: FakeClock) -> None:
    challenge = _issue_challenge(client, wallet.address)
    clock.advance(minutes=6)

    response = client.post(
        "/api/v1/auth/verify",
        json={
            "walletAddress": wallet.address,
            "signature": sign_text(wallet.key, challenge["challenge"]),
            "challengeId": challenge["challengeId"],
        },
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["code"] == "CHALLENGE_INVALID"


def test_refresh_success(client, wallet, clock: FakeClock) -> None:
    tokens = login(client, wallet)
    clock.advance(hours=20)

    response = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["refreshToken"] == tokens["refreshToken"]
    assert data["refreshedAt"]

    # Past the original 24h session; still alive because refresh extended it.
    clock.advance(hours=4, minutes=30)
    again = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert again.status_code == status.HTTP_200_OK
    status_response = client.get(
        "/api/v1/auth/status",
        headers={"Authorization": f"Bearer {again.json()['token']}"},
    )
    assert status_response.json()["authenticated"] is True


def test_refresh_with_access_token_fails(client, wallet) -> None:
    tokens = login(client, wallet)

    response = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["token"]})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    data = response.json()
    assert data["code"] == "REFRESH_FAILED"
    assert data["reason"] == "TOKEN_INVALID"
    assert data["action"] == "Please re-authenticate with your wallet"


def test_refresh_after_logout_fails(client, wallet) -> None:
    tokens = login(client, wallet)
    client.post("/api/v1/auth/logout", headers={"Authorization": f"Bearer {tokens['token']}"})

    response = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["reason"] == "SESSION_INVALID"


def test_refresh_requires_token(client) -> None:
    response = client.post("/api/v1/auth/refresh", json={})

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_logout_revokes_session(client, auth_headers) -> None:
    response = client.post("/api/v1/auth/logout", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["revokedSessions"] == 1

    after = client.get("/api/v1/auth/status", headers=auth_headers)
    assert after.json()["authenticated"] is False


def test_logout_always_succeeds(client) -> None:
    response = client.post("/api/v1/auth/logout", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["success"] is True
    assert response.json()["revokedSessions"] == 0


def test_logout_requires_header(client) -> None:
    response = client.post("/api/v1/auth/logout")

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_logout_ignores_non_bearer_credentials(client, auth_headers) -> None:
    token = auth_headers["Authorization"].removeprefix("Bearer ")

    response = client.post("/api/v1/auth/logout", headers={"Authorization": f"Basic {token}"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert client.get("/api/v1/auth/status", headers=auth_headers).json()["authenticated"] is True


def test_bearer_scheme_is_documented(client) -> None:
    schemes = client.get("/openapi.json").json()["components"]["securitySchemes"]

    assert schemes["HTTPBearer"]["scheme"] == "bearer"


def test_logout_all(client, wallet, other_wallet) -> None:
    first = login(client, wallet)
    second = login(client, wallet)
    other = login(client, other_wallet)

    response = client.post(
        "/api/v1/auth/logout-all",
        headers={"Authorization": f"Bearer {first['token']}"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["revokedSessions"] == 2
    for token, expected in ((second["token"], False), (other["token"], True)):
        check = client.get("/api/v1/auth/status", headers={"Authorization": f"Bearer {token}"})
        assert check.json()["authenticated"] is expected


def test_logout_all_requires_auth(client) -> None:
    response = client.post("/api/v1/auth/logout-all")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    data = response.json()
    assert data["code"] == "AUTH_REQUIRED"
    assert data["challengeEndpoint"] == "/api/v1/auth/challenge"
    assert response.headers["X-Auth-Authenticated"] == "false"


def test_status_anonymous(client) -> None:
    response = client.get("/api/v1/auth/status")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["authenticated"] is False
    assert data["session"] is None
    assert data["system"]["devMode"]["enabled"] is False
    assert data["rateLimits"]["note"] == "Unauthenticated user limits"
    assert data["endpoints"]["verify"] == "/api/v1/auth/verify"


def test_status_authenticated(client, wallet, auth_headers) -> None:
    response = client.get("/api/v1/auth/status", headers=auth_headers)

    data = response.json()
    assert data["authenticated"] is True
    assert data["session"]["walletAddress"] == wallet.address.lower()
    assert data["session"]["timeRemaining"] == 24 * 3600 * 1000
    assert data["session"]["devMode"] is False
    assert data["system"]["activeSessions"] == 1
    assert data["rateLimits"]["note"] == "Authenticated user limits"


def test_session_expiry_ends_authentication(client, auth_headers, clock: FakeClock) -> None:
    clock.advance(hours=24, seconds=1)

    response = client.get("/api/v1/auth/status", headers=auth_headers)

    assert response.json()["authenticated"] is False
    assert response.json()["system"]["activeSessions"] == 0


def test_query_address_ignored_without_dev_mode(client, wallet) -> None:
    response = client.get("/api/v1/auth/status", params={"address": wallet.address})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["authenticated"] is False
    assert response.json()["session"] is None
    assert response.headers["X-Auth-Authenticated"] == "false"
    assert response.headers["X-Auth-Dev-Mode"] == "false"


class TestDevModeEndpoints:
    def test_status_with_query_address(self, dev_client, wallet) -> None:
        response = dev_client.get(
            "/api/v1/auth/status",
            params={"address": wallet.address},
        )

        data = response.json()
        assert data["authenticated"] is True
        assert data["session"]["devMode"] is True
        assert data["session"]["sessionId"] == f"dev-{wallet.address.lower()}"
        assert data["system"]["devMode"]["enabled"] is True
        assert response.headers["X-Auth-Dev-Mode"] == "true"

    def test_verify_skips_signature_check(self, dev_client, wallet) -> None:
        challenge = dev_client.post(
            "/api/v1/auth/challenge",
            json={"walletAddress": wallet.address},
        ).json()

        response = dev_client.post(
            "/api/v1/auth/verify",
            json={
                "walletAddress": wallet.address,
                "signature": "0x" + "11" * 65,
                "challengeId": challenge["challengeId"],
            },
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["walletAddress"] == wallet.address.lower()
