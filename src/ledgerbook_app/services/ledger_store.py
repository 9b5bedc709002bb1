# src/ledgerbook_app/services/ledger_store.py
"""
Append-only persistence for journal entries and their lines.

There is no update or delete here: entries are immutable once written, and
corrections go through reversal entries.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable, List, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..models import Account, JournalEntry, JournalLine, utcnow
from .validation import CandidateEntry

_TICK = timedelta(microseconds=1)


class LedgerStore:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock

    def append(self, candidate: CandidateEntry, accounts: Mapping[str, Account]) -> JournalEntry:
        """
        Stage an entry and all of its lines in the current transaction.

        Lines keep their input order as ``line_index``. ``posted_at`` is kept
        strictly increasing so same-date entries sort in insertion order.
        The caller commits; a rollback discards the entry and every line together.
        """
        entry = JournalEntry(
            date=candidate.date,
            narration=candidate.narration,
            posted_at=self._next_posted_at(),
            reverses_entry_id=candidate.reverses_entry_id,
        )
        for index, line in enumerate(candidate.lines):
            entry.lines.append(
                JournalLine(
                    account=accounts[line.account_code],
                    debit_cents=line.debit_cents,
                    credit_cents=line.credit_cents,
                    line_index=index,
                )
            )
        self.db.add(entry)
        self.db.flush()
        return entry

    def find_by_id(self, entry_id: str) -> Optional[JournalEntry]:
        stmt = (
            select(JournalEntry)
            .where(JournalEntry.id == entry_id)
            .options(selectinload(JournalEntry.lines))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def exists(self, entry_id: str) -> bool:
        return self.db.scalar(select(func.count()).select_from(JournalEntry).where(JournalEntry.id == entry_id)) > 0

    def find_by_date_range(self, date_from: date, date_to: date) -> List[JournalEntry]:
        stmt = (
            select(JournalEntry)
            .where(JournalEntry.date >= date_from, JournalEntry.date <= date_to)
            .options(selectinload(JournalEntry.lines))
            .order_by(JournalEntry.date, JournalEntry.posted_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_entries(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[JournalEntry]:
        """Newest first, for browsing."""
        stmt = (
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines))
            .order_by(JournalEntry.date.desc(), JournalEntry.posted_at.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        return list(self.db.execute(stmt).scalars().all())

    def _next_posted_at(self) -> datetime:
        now = self.clock()
        latest = self.db.scalar(select(func.max(JournalEntry.posted_at)))
        if latest is not None and now <= latest:
            return latest + _TICK
        return now


__all__ = ["LedgerStore"]
