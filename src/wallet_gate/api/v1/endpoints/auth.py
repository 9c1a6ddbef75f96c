# src/wallet_gate/api/v1/endpoints/auth.py
"""Sign-In with Ethereum endpoints."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from jose import jwt

from wallet_gate.core.security import normalize_address
from wallet_gate.core.settings import settings
from wallet_gate.schemas.siwe import AccessTokenResponse, NonceResponse, SiweVerifyRequest
from wallet_gate.services.nonce import NonceService, get_nonce_service
from wallet_gate.services.siwe import SiweService, get_siwe_service
from wallet_gate.utils.time import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def get_nonce_service_dep() -> NonceService:
    return get_nonce_service()


def get_siwe_service_dep() -> SiweService:
    return get_siwe_service()


NonceServiceDep = Annotated[NonceService, Depends(get_nonce_service_dep)]
SiweServiceDep = Annotated[SiweService, Depends(get_siwe_service_dep)]


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
    )


def create_access_token(subject: str, extra_claims: dict[str, str] | None = None) -> str:
    """Create JWT access token for an authenticated address."""
    to_encode: dict[str, object] = {"sub": subject}
    if extra_claims:
        to_encode.update(extra_claims)
    now = utcnow()
    to_encode["iat"] = now
    to_encode["exp"] = now + timedelta(minutes=settings.access_token_expire_minutes)
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


@router.get(
    "/nonce",
    summary="Issue a single-use nonce for a sign-in message",
    response_model=NonceResponse,
)
def issue_nonce(nonce_service: NonceServiceDep) -> NonceResponse:
    """Generate a nonce and keep it for the configured TTL."""
    return NonceResponse(nonce=nonce_service.issue_nonce())


@router.post(
    "/verify",
    summary="Verify a signed sign-in message",
    status_code=status.HTTP_200_OK,
    response_model=AccessTokenResponse,
)
def verify_sign_in(
    payload: SiweVerifyRequest,
    nonce_service: NonceServiceDep,
    siwe_service: SiweServiceDep,
) -> AccessTokenResponse:
    """Exchange a signed SiWe message for an access token.

    The nonce is claimed before the signature is checked, so it is spent even
    when verification fails.
    """
    message = payload.message

    if not nonce_service.consume_nonce(message.nonce):
        raise _unauthorized()

    if not siwe_service.is_within_validity_window(message):
        logger.info("Rejected sign-in outside validity window for %s", message.address)
        raise _unauthorized()

    if not siwe_service.verify_message(message, payload.signature):
        raise _unauthorized()

    address = normalize_address(message.address)
    access_token = create_access_token(address, {"chain_id": str(message.chain_id)})
    logger.info("Signed in %s on chain %s", address, message.chain_id)

    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_seconds,
    )
