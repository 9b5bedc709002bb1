# src/ledgerbook_app/services/posting.py
from __future__ import annotations

from datetime import date, datetime
from typing import Callable, List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConflictError, LedgerError, NotFoundError, ValidationError
from ..models import JournalEntry, utcnow
from .accounts import AccountDirectory
from .idempotency import IdempotencyGuard, hash_request
from .ledger_store import LedgerStore
from .validation import CandidateEntry, Rule, RuleViolation, validate_entry


def violation_to_error(violation: RuleViolation) -> LedgerError:
    if violation.rule is Rule.REVERSED_ENTRY_EXISTS:
        return NotFoundError(violation.message, **violation.details)
    return ValidationError(violation.message, rule=violation.rule.value, **violation.details)


class PostingService:
    """
    Creates journal entries as one unit of work:
    idempotency check, account resolution, validation, append, idempotency record, commit.
    """

    def __init__(
        self,
        db: Session,
        *,
        today: Callable[[], date] = date.today,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.today = today
        self.accounts = AccountDirectory(db)
        self.guard = IdempotencyGuard(db)
        self.store = LedgerStore(db, clock=clock)

    def create_entry(self, candidate: CandidateEntry, idempotency_key: Optional[str] = None) -> JournalEntry:
        request_hash = hash_request(candidate) if idempotency_key else None
        try:
            if idempotency_key:
                check = self.guard.check(idempotency_key, request_hash)
                if check.is_duplicate:
                    return self.get_entry(check.entry_id)

            accounts = self.accounts.resolve(candidate.account_codes)
            reversed_exists = bool(candidate.reverses_entry_id) and self.store.exists(
                candidate.reverses_entry_id
            )
            violation = validate_entry(
                candidate, today=self.today(), reversed_entry_exists=reversed_exists
            )
            if violation is not None:
                raise violation_to_error(violation)

            entry = self.store.append(candidate, accounts)
            if idempotency_key:
                self.guard.record(idempotency_key, request_hash, entry.id)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if not idempotency_key:
                raise
            return self._reread_after_race(idempotency_key, request_hash, exc)
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Posted entry {entry.id} dated {entry.date} with {len(entry.lines)} lines "
            f"({entry.total_debits} cents)"
        )
        return entry

    def _reread_after_race(self, key: str, request_hash: str, exc: IntegrityError) -> JournalEntry:
        """Another writer recorded the key first: same payload wins together, different payload conflicts."""
        record = self.guard.lookup(key)
        if record is None:
            raise exc
        if record.request_hash != request_hash:
            raise ConflictError(
                f"Idempotency key '{key}' already used with different request data",
                idempotency_key=key,
            )
        logger.warning(f"Concurrent create for idempotency key {key!r}; returning entry {record.entry_id}")
        return self.get_entry(record.entry_id)

    def get_entry(self, entry_id: str) -> JournalEntry:
        entry = self.store.find_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f"Journal entry with ID '{entry_id}' not found", entry_id=entry_id)
        return entry

    def list_entries(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[JournalEntry]:
        return self.store.list_entries(limit=limit, offset=offset)

    def entries_between(self, date_from: date, date_to: date) -> List[JournalEntry]:
        if date_from > date_to:
            raise ValidationError(
                "From date must be before or equal to to date",
                date_from=date_from.isoformat(),
                date_to=date_to.isoformat(),
            )
        return self.store.find_by_date_range(date_from, date_to)


__all__ = ["PostingService", "violation_to_error"]
