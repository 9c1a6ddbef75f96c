"""Shared helpers for Wallet Gate."""
