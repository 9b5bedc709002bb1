# src/ledgerbook_app/services/idempotency.py
"""
Idempotency guard for entry creation.

A client key maps to the hash of the canonical request and to the entry
that request produced. Replaying the same request under the same key
returns the original entry; replaying a different request is a conflict.
"""
from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping, Optional

from loguru import logger
from sqlalchemy import delete
from sqlalchemy.orm import Session

from ..errors import ConflictError, ValidationError
from ..models import IdempotencyRecord, utcnow
from .validation import CandidateEntry

MAX_KEY_LENGTH = 255
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def canonical_json(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def hash_request(request: CandidateEntry | Mapping[str, Any]) -> str:
    """SHA-256 of the canonical request, so field order never changes the digest."""
    payload = request.to_payload() if isinstance(request, CandidateEntry) else request
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()


def is_valid_key(key: Optional[str]) -> bool:
    return bool(key) and len(key) <= MAX_KEY_LENGTH and _KEY_PATTERN.match(key) is not None


@dataclass(frozen=True)
class IdempotencyCheck:
    is_new: bool
    entry_id: Optional[str] = None

    @property
    def is_duplicate(self) -> bool:
        return not self.is_new


class IdempotencyGuard:
    def __init__(self, db: Session) -> None:
        self.db = db

    def lookup(self, key: str) -> Optional[IdempotencyRecord]:
        return self.db.get(IdempotencyRecord, key, populate_existing=True)

    def check(self, key: str, request_hash: str) -> IdempotencyCheck:
        """
        New key -> ``is_new``; same key and hash -> duplicate with the original
        entry id; same key, different hash -> ConflictError.
        """
        self._require_key(key)
        record = self.lookup(key)
        if record is None:
            return IdempotencyCheck(is_new=True)
        if record.request_hash == request_hash:
            logger.info(f"Idempotent replay for key {key!r} -> entry {record.entry_id}")
            return IdempotencyCheck(is_new=False, entry_id=record.entry_id)
        raise ConflictError(
            f"Idempotency key '{key}' already used with different request data",
            idempotency_key=key,
        )

    def record(self, key: str, request_hash: str, entry_id: str) -> IdempotencyRecord:
        """Stage the mapping in the caller's transaction; the flush surfaces a lost race early."""
        self._require_key(key)
        rec = IdempotencyRecord(key=key, request_hash=request_hash, entry_id=entry_id)
        self.db.add(rec)
        self.db.flush()
        return rec

    def prune(self, older_than_days: int = 30) -> int:
        """Drop records older than the cutoff. Returns how many were removed."""
        if older_than_days < 1:
            raise ValidationError("older_than_days must be at least 1", older_than_days=older_than_days)
        cutoff = utcnow() - timedelta(days=older_than_days)
        result = self.db.execute(delete(IdempotencyRecord).where(IdempotencyRecord.created_at < cutoff))
        self.db.commit()
        removed = result.rowcount or 0
        logger.info(f"Pruned {removed} idempotency record(s) older than {older_than_days} day(s)")
        return removed

    @staticmethod
    def _require_key(key: str) -> None:
        if not key or len(key) > MAX_KEY_LENGTH:
            raise ValidationError(
                f"Idempotency key must be 1-{MAX_KEY_LENGTH} characters",
                idempotency_key=key,
            )


__all__ = [
    "IdempotencyGuard",
    "IdempotencyCheck",
    "hash_request",
    "canonical_json",
    "is_valid_key",
    "MAX_KEY_LENGTH",
]
