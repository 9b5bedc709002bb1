# src/ledgerbook_app/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base for every failure the posting engine reports to its callers."""

    code = "LEDGER_ERROR"
    http_status = 400

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(LedgerError):
    """Malformed or unbalanced entry. The caller must correct the input."""

    code = "VALIDATION_ERROR"
    http_status = 400

    def __init__(self, message: str, rule: Optional[str] = None, **details: Any) -> None:
        if rule is not None:
            details["rule"] = rule
        super().__init__(message, **details)
        self.rule = rule


class NotFoundError(LedgerError):
    """Unknown account code(s) or entry id."""

    code = "NOT_FOUND"
    http_status = 404


class ConflictError(LedgerError):
    """Duplicate account code, or an idempotency key reused with another payload."""

    code = "CONFLICT"
    http_status = 409


class IntegrityFault(LedgerError):
    """The trial balance did not reconcile. Indicates a bug or corrupted storage."""

    code = "INTEGRITY_FAULT"
    http_status = 500


__all__ = [
    "LedgerError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "IntegrityFault",
]
