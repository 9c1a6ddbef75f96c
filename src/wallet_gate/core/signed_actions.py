"""Canonical message formats for signed, stateless write requests.

Each protected operation pins down the exact string a client must sign. The
format is versioned by its tag: changing the fields or their order requires a
new tag so that old and new clients never disagree silently.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

MESSAGE_DELIMITER: Final[str] = "-"


@dataclass(frozen=True)
class SignedActionFormat:
    """Layout of the message signed for one protected operation.

    Attributes:
        tag: Literal prefix identifying the operation (and its format version).
        fields: Names of the values joined after the tag, in signing order.
    """

    tag: str
    fields: tuple[str, ...]

    def build(self, values: Mapping[str, str | int]) -> str:
        """Join the tag and the named values with the message delimiter.

        Raises:
            KeyError: If a field named by the format is missing from `values`.
        """
        parts = [self.tag, *(str(values[name]) for name in self.fields)]
        return MESSAGE_DELIMITER.join(parts)


EMAIL_EDIT: Final[SignedActionFormat] = SignedActionFormat(
    tag="email-edit",
    fields=("chain_id", "safe_address", "email_address", "signer", "timestamp"),
)


def build_email_edit_message(
    *,
    chain_id: str,
    safe_address: str,
    email_address: str,
    signer: str,
    timestamp: int,
) -> str:
    """Return the message a signer must sign to edit a Safe's email address."""
    return EMAIL_EDIT.build(
        {
            "chain_id": chain_id,
            "safe_address": safe_address,
            "email_address": email_address,
            "signer": signer,
            "timestamp": timestamp,
        }
    )
