# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator
from typing import Any

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from eth_utils import to_hex
from fastapi import FastAPI
from fastapi.testclient import TestClient

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTH_NONCE_TTL_SECONDS", "300")
os.environ.setdefault("SIGNATURE_TIMESTAMP_TOLERANCE_MS", "300000")
os.environ.setdefault("CACHE_BACKEND", "memory")

from wallet_gate.api.v1.endpoints import auth as auth_endpoints
from wallet_gate.main import app as fastapi_app
from wallet_gate.schemas.siwe import SiweMessage
from wallet_gate.services.cache import InMemoryCacheService
from wallet_gate.services.nonce import NonceService

NONCE_TTL_SECONDS = 300


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def sign_text(account: LocalAccount, text: str) -> str:
    """Return a 0x-prefixed personal_sign signature of `text`."""
    signed = account.sign_message(encode_defunct(text=text))
    return to_hex(signed.signature)


def build_siwe_message(address: str, nonce: str, /, **overrides: Any) -> SiweMessage:
    fields: dict[str, Any] = {
        "domain": "app.example.com",
        "address": address,
        "statement": "Sign in to Wallet Gate",
        "uri": "https://app.example.com/login",
        "version": "1",
        "chain_id": 1,
        "nonce": nonce,
        "issued_at": "2026-01-01T00:00:00.000Z",
    }
    fields.update(overrides)
    return SiweMessage(**fields)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock: FakeClock) -> InMemoryCacheService:
    return InMemoryCacheService(clock=clock)


@pytest.fixture()
def nonce_service(cache: InMemoryCacheService) -> NonceService:
    return NonceService(cache, NONCE_TTL_SECONDS)


@pytest.fixture()
def override_nonce_service(app: FastAPI, nonce_service: NonceService) -> Iterator[NonceService]:
    app.dependency_overrides[auth_endpoints.get_nonce_service_dep] = lambda: nonce_service
    try:
        yield nonce_service
    finally:
        app.dependency_overrides.pop(auth_endpoints.get_nonce_service_dep, None)


@pytest.fixture()
def client(app: FastAPI, override_nonce_service: NonceService) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def signer() -> LocalAccount:
    """Return a freshly generated wallet."""
    return Account.create()


@pytest.fixture()
def other_signer() -> LocalAccount:
    """Return a second, unrelated wallet."""
    return Account.create()
