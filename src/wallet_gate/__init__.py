"""Wallet Gate: wallet-signature authentication for HTTP APIs."""

__version__ = "0.1.0"
