# src/wallet_gate/api/v1/__init__.py
"""Version 1 API endpoints and guards."""

from .endpoints import auth_router
from .guards import SignatureGuard, email_edit_guard

__all__ = [
    "auth_router",
    "SignatureGuard",
    "email_edit_guard",
]
