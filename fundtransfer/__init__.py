"""Idempotent, deadlock-safe money transfers between accounts, with SQL storage and an HTTP API."""

__version__ = "0.1.0"