"""Sign-In with Ethereum (EIP-4361) schemas."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SiweMessage(BaseModel):
    """Structured EIP-4361 message as produced by wallet tooling.

    Fields are kept verbatim; EIP-4361 constraints are checked when the
    message is rendered for signing so that a malformed message is an
    authentication failure rather than a schema error.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    domain: str = Field(..., description="RFC 3986 authority requesting the signing")
    address: str = Field(..., description="EIP-55 checksummed address performing the signing")
    statement: str | None = Field(None, description="Human-readable assertion (single line)")
    uri: str = Field(..., description="RFC 3986 URI referring to the subject of the signing")
    version: str = Field(..., description="Message version, must be '1'")
    chain_id: int = Field(..., description="EIP-155 chain id of the signing account")
    nonce: str = Field(..., description="Server-issued nonce (alphanumeric, 8+ chars)")
    issued_at: str = Field(..., description="ISO-8601 issuance timestamp")
    expiration_time: str | None = Field(None, description="ISO-8601 expiry timestamp")
    not_before: str | None = Field(None, description="ISO-8601 validity start timestamp")
    request_id: str | None = Field(None, description="System-specific request identifier")
    resources: list[str] | None = Field(None, description="URIs the user wishes to have resolved")
    scheme: str | None = Field(None, description="Optional URI scheme of the origin")


class NonceResponse(BaseModel):
    """Nonce issued for a subsequent sign-in message."""

    nonce: str = Field(..., description="Single-use nonce to embed in the SiWe message")


class SiweVerifyRequest(BaseModel):
    """Signed sign-in message submitted for verification."""

    message: SiweMessage
    signature: str = Field(..., description="0x-prefixed hex personal_sign signature")


class AccessTokenResponse(BaseModel):
    """Response returned after a successful sign-in."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type (always 'bearer')")
    expires_in: int = Field(..., description="Token lifetime in seconds")
