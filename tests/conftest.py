# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import datetime, timedelta
from typing import Any

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi import FastAPI
from fastapi.testclient import TestClient

os.environ.setdefault("JWT_SECRET", "test-access-secret-0123456789")
os.environ.setdefault("REFRESH_SECRET", "test-refresh-secret-0123456789")

from lorecraft_auth.core.settings import Settings
from lorecraft_auth.core.time import utcnow
from lorecraft_auth.main import create_app
from lorecraft_auth.services.registry import AuthServices, build_auth_services

ACCESS_SECRET = "test-access-secret-0123456789"
REFRESH_SECRET = "test-refresh-secret-0123456789"


class FakeClock:
    """Manually advanced clock starting at the real current time."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "jwt_secret": ACCESS_SECRET,
        "refresh_secret": REFRESH_SECRET,
        "environment": "production",
        "enable_dev_mode": False,
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


def sign_text(private_key: Any, message: str) -> str:
    """Sign ``message`` as a personal message and return 0x-prefixed hex."""
    signed = Account.sign_message(encode_defunct(text=message), private_key=private_key)
    signature = signed.signature.hex()
    if not signature.startswith("0x"):
        signature = f"0x{signature}"
    return signature


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def test_settings() -> Settings:
    """Provide production-mode settings with test secrets."""
    return make_settings()


@pytest.fixture()
def dev_settings() -> Settings:
    """Provide settings with development shortcuts fully enabled."""
    return make_settings(environment="development", enable_dev_mode=True)


@pytest.fixture()
def services(test_settings: Settings, clock: FakeClock) -> AuthServices:
    return build_auth_services(test_settings, clock=clock)


@pytest.fixture()
def wallet() -> Any:
    """Return a freshly generated local account."""
    return Account.create()


@pytest.fixture()
def other_wallet() -> Any:
    return Account.create()


@pytest.fixture()
def app(test_settings: Settings, clock: FakeClock) -> FastAPI:
    return create_app(test_settings, clock=clock)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def dev_client(dev_settings: Settings, clock: FakeClock) -> Iterator[TestClient]:
    with TestClient(create_app(dev_settings, clock=clock), base_url="http://test") as test_client:
        yield test_client


def login(client: TestClient, account: Any) -> dict[str, Any]:
    """Run the full challenge/sign/verify handshake and return the verify payload."""
    challenge = client.post(
        "/api/v1/auth/challenge",
        json={"walletAddress": account.address},
    )
    assert challenge.status_code == 200
    body = challenge.json()
    response = client.post(
        "/api/v1/auth/verify",
        json={
            "walletAddress": account.address,
            "signature": sign_text(account.key, body["challenge"]),
            "challengeId": body["challengeId"],
        },
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture()
def auth_headers(client: TestClient, wallet: Any) -> dict[str, str]:
    """Return authorization headers for a wallet that completed the handshake."""
    token = login(client, wallet)["token"]
    return {"Authorization": f"Bearer {token}"}
