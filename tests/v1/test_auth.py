# tests/v1/test_auth.py
"""Tests for the sign-in endpoints."""

from __future__ import annotations

import re
from unittest.mock import MagicMock

from fastapi import status
from jose import jwt

from wallet_gate.api.v1.endpoints import auth as auth_endpoints
from wallet_gate.core.settings import settings
from wallet_gate.services.cache import CacheError
from wallet_gate.services.nonce import NonceService
from wallet_gate.services.siwe import to_signable_siwe_message

from tests.conftest import NONCE_TTL_SECONDS, build_siwe_message, sign_text


def _issue_nonce(client) -> str:
    response = client.get("/api/v1/auth/nonce")
    assert response.status_code == status.HTTP_200_OK
    return response.json()["nonce"]


def _build_verify_payload(account, nonce: str, **overrides) -> dict:
    message = build_siwe_message(account.address, nonce, **overrides)
    signature = sign_text(account, to_signable_siwe_message(message))
    return {
        "message": message.model_dump(by_alias=True, exclude_none=True),
        "signature": signature,
    }


def test_issue_nonce(client, nonce_service) -> None:
    nonce = _issue_nonce(client)

    assert re.fullmatch(r"[0-9a-f]{18}", nonce)
    assert nonce_service.get_nonce(nonce) == nonce


def test_issued_nonces_expire(client, nonce_service, clock) -> None:
    nonce = _issue_nonce(client)

    clock.advance(NONCE_TTL_SECONDS)

    assert nonce_service.get_nonce(nonce) is None


def test_verify_success(client, signer, nonce_service) -> None:
    nonce = _issue_nonce(client)

    response = client.post("/api/v1/auth/verify", json=_build_verify_payload(signer, nonce))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == settings.access_token_expire_seconds
    claims = jwt.decode(
        data["access_token"],
        settings.secret_key,
        algorithms=[settings.jwt_algorithm],
    )
    assert claims["sub"] == signer.address
    assert claims["chain_id"] == "1"
    assert nonce_service.get_nonce(nonce) is None


def test_verify_rejects_reused_nonce(client, signer) -> None:
    nonce = _issue_nonce(client)
    payload = _build_verify_payload(signer, nonce)

    first = client.post("/api/v1/auth/verify", json=payload)
    second = client.post("/api/v1/auth/verify", json=payload)

    assert first.status_code == status.HTTP_200_OK
    assert second.status_code == status.HTTP_401_UNAUTHORIZED
    assert second.json() == {"detail": "Unauthorized"}


def test_verify_rejects_unknown_nonce(client, signer) -> None:
    response = client.post(
        "/api/v1/auth/verify",
        json=_build_verify_payload(signer, NonceService.generate_nonce()),
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_verify_rejects_expired_nonce(client, signer, clock) -> None:
    nonce = _issue_nonce(client)
    clock.advance(NONCE_TTL_SECONDS + 1)

    response = client.post("/api/v1/auth/verify", json=_build_verify_payload(signer, nonce))

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_invalid_signature_spends_nonce(client, signer, other_signer) -> None:
    nonce = _issue_nonce(client)
    forged = _build_verify_payload(signer, nonce)
    forged["signature"] = _build_verify_payload(other_signer, nonce)["signature"]

    rejected = client.post("/api/v1/auth/verify", json=forged)
    retried = client.post("/api/v1/auth/verify", json=_build_verify_payload(signer, nonce))

    assert rejected.status_code == status.HTTP_401_UNAUTHORIZED
    assert retried.status_code == status.HTTP_401_UNAUTHORIZED


def test_verify_rejects_malformed_signature(client, signer) -> None:
    nonce = _issue_nonce(client)
    payload = _build_verify_payload(signer, nonce)
    payload["signature"] = "0xnothex"

    response = client.post("/api/v1/auth/verify", json=payload)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"detail": "Unauthorized"}


def test_verify_rejects_expired_message(client, signer) -> None:
    nonce = _issue_nonce(client)
    payload = _build_verify_payload(signer, nonce, expiration_time="2020-01-01T00:00:00.000Z")

    response = client.post("/api/v1/auth/verify", json=payload)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_verify_rejects_not_yet_valid_message(client, signer) -> None:
    nonce = _issue_nonce(client)
    payload = _build_verify_payload(signer, nonce, not_before="2999-01-01T00:00:00.000Z")

    response = client.post("/api/v1/auth/verify", json=payload)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_verify_accepts_message_within_bounds(client, signer) -> None:
    nonce = _issue_nonce(client)
    payload = _build_verify_payload(
        signer,
        nonce,
        not_before="2020-01-01T00:00:00.000Z",
        expiration_time="2999-01-01T00:00:00.000Z",
    )

    response = client.post("/api/v1/auth/verify", json=payload)

    assert response.status_code == status.HTTP_200_OK


def test_cache_failure_is_a_server_error(app, client) -> None:
    broken_cache = MagicMock()
    broken_cache.set.side_effect = CacheError("down")
    app.dependency_overrides[auth_endpoints.get_nonce_service_dep] = lambda: NonceService(
        broken_cache, NONCE_TTL_SECONDS
    )

    response = client.get("/api/v1/auth/nonce")

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json() == {"detail": "Cache unavailable"}


def test_cache_failure_during_sign_in_is_a_server_error(app, client, signer) -> None:
    broken_cache = MagicMock()
    broken_cache.get_and_delete.side_effect = CacheError("down")
    app.dependency_overrides[auth_endpoints.get_nonce_service_dep] = lambda: NonceService(
        broken_cache, NONCE_TTL_SECONDS
    )

    response = client.post(
        "/api/v1/auth/verify",
        json=_build_verify_payload(signer, NonceService.generate_nonce()),
    )

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json() == {"detail": "Cache unavailable"}
