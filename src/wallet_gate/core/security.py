"""Signature utilities built on secp256k1 recovery (EIP-191 personal_sign)."""
from __future__ import annotations

import logging
import re

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_address, to_checksum_address

logger = logging.getLogger(__name__)

_SIGNATURE_PATTERN = re.compile(r"0x[0-9a-fA-F]+")


def is_hex_signature(value: str) -> bool:
    """Return True if `value` looks like a 0x-prefixed hex signature."""
    return bool(_SIGNATURE_PATTERN.fullmatch(value))


def normalize_address(address: str) -> str:
    """Return the EIP-55 checksum form of an address.

    Raises:
        ValueError: If `address` is not a 20-byte hex address.
    """
    if not is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def recover_address(message: str, signature: str) -> str:
    """Recover the checksummed signer address of a personal_sign signature.

    Args:
        message: Exact text that was signed on the client.
        signature: 0x-prefixed hex encoded 65-byte signature.

    Returns:
        The EIP-55 address of the signing key.
    """
    if not is_hex_signature(signature):
        raise ValueError("Signature must be a 0x-prefixed hex string")
    signable = encode_defunct(text=message)
    return to_checksum_address(Account.recover_message(signable, signature=signature))


def verify_signature(address: str, message: str, signature: str) -> bool:
    """Verify that `signature` over `message` was produced by `address`.

    Args:
        address: Claimed signer address, any casing.
        message: Exact text that was signed on the client.
        signature: 0x-prefixed hex encoded signature.

    Returns:
        True if the recovered signer matches `address`; False otherwise.
    """
    try:
        expected = normalize_address(address)
        return recover_address(message, signature) == expected
    except Exception as err:
        logger.debug("Signature verification failed: %s", err)
        return False
