"""
Pydantic schemas for API request/response models.
"""

from .siwe import AccessTokenResponse, NonceResponse, SiweMessage, SiweVerifyRequest

__all__ = [
    "AccessTokenResponse",
    "NonceResponse",
    "SiweMessage",
    "SiweVerifyRequest",
]
