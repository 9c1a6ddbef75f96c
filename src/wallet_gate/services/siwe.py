"""Sign-In with Ethereum (EIP-4361) message rendering and verification."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Final

from eth_utils import is_checksum_address

from wallet_gate.core.security import verify_signature
from wallet_gate.schemas.siwe import SiweMessage
from wallet_gate.utils.time import parse_iso8601, utcnow

logger = logging.getLogger(__name__)

SIWE_VERSION: Final[str] = "1"
_NONCE_PATTERN = re.compile(r"[a-zA-Z0-9]{8,}")


def _validate_fields(message: SiweMessage) -> None:
    if not message.domain:
        raise ValueError("domain must not be empty")
    if not is_checksum_address(message.address):
        raise ValueError(f"address is not an EIP-55 checksummed address: {message.address!r}")
    if message.statement is not None and "\n" in message.statement:
        raise ValueError("statement must not contain line breaks")
    if not message.uri:
        raise ValueError("uri must not be empty")
    if message.version != SIWE_VERSION:
        raise ValueError(f"unsupported version: {message.version!r}")
    if message.chain_id <= 0:
        raise ValueError("chain id must be positive")
    if not _NONCE_PATTERN.fullmatch(message.nonce):
        raise ValueError("nonce must be at least 8 alphanumeric characters")
    for name in ("issued_at", "expiration_time", "not_before"):
        value = getattr(message, name)
        if value is not None:
            parse_iso8601(value)


def to_signable_siwe_message(message: SiweMessage) -> str:
    """Render the exact EIP-4361 text a wallet signs for `message`.

    Raises:
        ValueError: If a field violates the EIP-4361 constraints.
    """
    _validate_fields(message)

    origin = f"{message.scheme}://{message.domain}" if message.scheme else message.domain
    statement = f"{message.statement}\n" if message.statement else ""
    prefix = (
        f"{origin} wants you to sign in with your Ethereum account:\n"
        f"{message.address}\n\n{statement}"
    )

    suffix = (
        f"URI: {message.uri}\n"
        f"Version: {message.version}\n"
        f"Chain ID: {message.chain_id}\n"
        f"Nonce: {message.nonce}\n"
        f"Issued At: {message.issued_at}"
    )
    if message.expiration_time:
        suffix += f"\nExpiration Time: {message.expiration_time}"
    if message.not_before:
        suffix += f"\nNot Before: {message.not_before}"
    if message.request_id:
        suffix += f"\nRequest ID: {message.request_id}"
    if message.resources:
        suffix += "\nResources:" + "".join(f"\n- {resource}" for resource in message.resources)

    return f"{prefix}\n{suffix}"


class SiweService:
    """Verify signed sign-in messages."""

    def verify_message(self, message: SiweMessage, signature: str) -> bool:
        """Return True if `signature` over `message` was made by `message.address`.

        Never raises: malformed messages or signatures are reported as False
        and logged at debug level.
        """
        try:
            signable = to_signable_siwe_message(message)
        except Exception as err:
            logger.debug("Failed to render SiWe message for %s: %s", message.address, err)
            return False
        if not verify_signature(message.address, signable, signature):
            logger.debug("Failed to verify SiWe message. message=%r", signable)
            return False
        return True

    @staticmethod
    def is_within_validity_window(message: SiweMessage, now: datetime | None = None) -> bool:
        """Check the optional `expirationTime` and `notBefore` bounds."""
        current = now or utcnow()
        try:
            if message.expiration_time and parse_iso8601(message.expiration_time) <= current:
                return False
            if message.not_before and parse_iso8601(message.not_before) > current:
                return False
        except ValueError as err:
            logger.debug("Invalid SiWe timestamp: %s", err)
            return False
        return True


def get_siwe_service() -> SiweService:
    """Return a SiWe verification service instance."""
    return SiweService()
