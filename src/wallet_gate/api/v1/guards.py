"""Request guards that authenticate stateless, wallet-signed writes.

A guarded request carries a signature over a message the server can rebuild
from the route, two headers and one body field. The guard rebuilds that
message, recovers the signer, checks the timestamp window and either lets the
request through or raises `ForbiddenError`. No state is read or written, so a
signed request may be replayed until its timestamp leaves the window.

Attach a guard to a route as a dependency:

    @router.put(
        "/chains/{chain_id}/safes/{safe_address}/emails/{signer}",
        dependencies=[Depends(email_edit_guard)],
    )
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Final

from fastapi import Request

from wallet_gate.api.errors import ForbiddenError
from wallet_gate.core.security import is_hex_signature, verify_signature
from wallet_gate.core.settings import settings
from wallet_gate.core.signed_actions import EMAIL_EDIT, SignedActionFormat
from wallet_gate.utils.time import now_ms

logger = logging.getLogger(__name__)

SIGNATURE_HEADER: Final[str] = "Safe-Wallet-Signature"
SIGNATURE_TIMESTAMP_HEADER: Final[str] = "Safe-Wallet-Signature-Timestamp"

ROUTE_PARAMS: Final[tuple[str, ...]] = ("chain_id", "safe_address", "signer")

_TIMESTAMP_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class AuthContext:
    """Request values a guard combines into the expected signed message."""

    chain_id: str
    safe_address: str
    signer: str
    signature: str
    timestamp: int
    body_value: str


class SignatureGuard:
    """FastAPI dependency enforcing a wallet signature for one action format.

    Args:
        action: Format of the message the client signs.
        body_key: JSON body key holding the protected value.
        body_field: Name of that value within `action.fields`.
        tolerance_ms: Accepted timestamp skew; defaults to the configured
            `SIGNATURE_TIMESTAMP_TOLERANCE_MS`.
    """

    def __init__(
        self,
        action: SignedActionFormat,
        *,
        body_key: str,
        body_field: str,
        tolerance_ms: int | None = None,
    ) -> None:
        if body_field not in action.fields:
            raise ValueError(f"{body_field!r} is not part of the {action.tag!r} format")
        self.action = action
        self.body_key = body_key
        self.body_field = body_field
        self._tolerance_ms = tolerance_ms

    @property
    def tolerance_ms(self) -> int:
        if self._tolerance_ms is not None:
            return self._tolerance_ms
        return settings.signature_timestamp_tolerance_ms

    async def __call__(self, request: Request) -> None:
        try:
            context = await self._extract_context(request)
            message = self.build_message(context)
        except ForbiddenError as err:
            logger.debug("Denied %s %s: %s", request.method, request.url.path, err.reason)
            raise
        except Exception as err:
            logger.debug("Denied %s %s: %s", request.method, request.url.path, err)
            raise ForbiddenError("unreadable request") from err

        if not verify_signature(context.signer, message, context.signature):
            logger.debug("Denied %s %s: invalid signature", request.method, request.url.path)
            raise ForbiddenError("invalid signature")

        if not self.is_fresh(context.timestamp):
            logger.debug("Denied %s %s: stale timestamp", request.method, request.url.path)
            raise ForbiddenError("stale timestamp")

    def build_message(self, context: AuthContext) -> str:
        """Rebuild the message the client must have signed."""
        values: dict[str, str | int] = {
            "chain_id": context.chain_id,
            "safe_address": context.safe_address,
            "signer": context.signer,
            "timestamp": context.timestamp,
            self.body_field: context.body_value,
        }
        return self.action.build(values)

    def is_fresh(self, timestamp: int, now: int | None = None) -> bool:
        current = now_ms() if now is None else now
        return abs(current - timestamp) <= self.tolerance_ms

    async def _extract_context(self, request: Request) -> AuthContext:
        params = request.path_params
        missing = [name for name in ROUTE_PARAMS if not params.get(name)]
        if missing:
            raise ForbiddenError(f"missing route params {missing}")

        signature = request.headers.get(SIGNATURE_HEADER)
        raw_timestamp = request.headers.get(SIGNATURE_TIMESTAMP_HEADER)
        if not signature or not is_hex_signature(signature):
            raise ForbiddenError("missing or malformed signature header")
        if not raw_timestamp or not _TIMESTAMP_PATTERN.fullmatch(raw_timestamp):
            raise ForbiddenError("missing or malformed timestamp header")

        body_value = _read_body_field(await request.json(), self.body_key)
        if body_value is None:
            raise ForbiddenError(f"missing body field {self.body_key!r}")

        return AuthContext(
            chain_id=params["chain_id"],
            safe_address=params["safe_address"],
            signer=params["signer"],
            signature=signature,
            timestamp=int(raw_timestamp),
            body_value=body_value,
        )


def _read_body_field(body: Any, key: str) -> str | None:
    if not isinstance(body, dict):
        return None
    value = body.get(key)
    if not isinstance(value, str) or not value:
        return None
    return value


email_edit_guard = SignatureGuard(
    EMAIL_EDIT,
    body_key="emailAddress",
    body_field="email_address",
)
