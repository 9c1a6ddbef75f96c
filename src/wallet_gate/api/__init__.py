"""HTTP API layer for Wallet Gate."""
