"""Ledgerbook: a double-entry posting engine."""

__version__ = "0.1.0"
