# src/ledgerbook_app/services/reversal.py
from __future__ import annotations

from datetime import date
from typing import Optional

from loguru import logger

from ..models import JournalEntry
from .posting import PostingService
from .validation import CandidateEntry, CandidateLine

MAX_NARRATION = 500


def build_reversal(original: JournalEntry, reversal_date: date, narration: Optional[str] = None) -> CandidateEntry:
    """Swap debit and credit on every line, keeping account and line order.

    Pure transform; the result still has to go through posting like any other entry.
    """
    lines = tuple(
        CandidateLine(
            account_code=line.account_code,
            debit_cents=line.credit_cents,
            credit_cents=line.debit_cents,
        )
        for line in sorted(original.lines, key=lambda l: l.line_index)
    )
    text = narration or f"Reversal of entry {original.id}: {original.narration}"
    return CandidateEntry(
        date=reversal_date,
        narration=text[:MAX_NARRATION],
        lines=lines,
        reverses_entry_id=original.id,
    )


def reverse_entry(
    service: PostingService,
    original_entry_id: str,
    reversal_date: Optional[date] = None,
    narration: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> JournalEntry:
    """Post the inverse of an existing entry. Returns the new reversing entry."""
    original = service.get_entry(original_entry_id)
    candidate = build_reversal(original, reversal_date or service.today(), narration)
    reversal = service.create_entry(candidate, idempotency_key=idempotency_key)
    logger.success(f"Created reversing entry {reversal.id} for original {original_entry_id}")
    return reversal


__all__ = ["build_reversal", "reverse_entry"]
