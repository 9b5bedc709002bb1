# src/ledgerbook_app/services/validation.py
"""
Double-entry rule engine.

``validate_entry`` is a pure gate: it returns ``None`` for a legal entry or
the first ``RuleViolation`` it finds. Rules run in a fixed order and the
caller surfaces the violation's message verbatim.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Set, Tuple

from ..money import MAX_MINOR_UNITS, from_minor_units, is_valid_amount


@dataclass(frozen=True)
class CandidateLine:
    account_code: str
    debit_cents: int = 0
    credit_cents: int = 0


@dataclass(frozen=True)
class CandidateEntry:
    """A proposed journal entry, already typed and converted to minor units."""

    date: date
    narration: str
    lines: Tuple[CandidateLine, ...]
    reverses_entry_id: Optional[str] = None

    @property
    def total_debits(self) -> int:
        return sum(line.debit_cents for line in self.lines)

    @property
    def total_credits(self) -> int:
        return sum(line.credit_cents for line in self.lines)

    @property
    def account_codes(self) -> Set[str]:
        return {line.account_code for line in self.lines}

    def to_payload(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "narration": self.narration,
            "lines": [
                {
                    "account_code": line.account_code,
                    "debit_cents": line.debit_cents,
                    "credit_cents": line.credit_cents,
                }
                for line in self.lines
            ],
            "reverses_entry_id": self.reverses_entry_id,
        }


class Rule(str, Enum):
    MIN_LINES = "min_lines"
    ONE_SIDED_LINE = "one_sided_line"
    UNIQUE_ACCOUNT = "unique_account"
    NON_NEGATIVE_AMOUNT = "non_negative_amount"
    BALANCED = "balanced"
    POSITIVE_TOTAL = "positive_total"
    NOT_FUTURE_DATED = "not_future_dated"
    REVERSED_ENTRY_EXISTS = "reversed_entry_exists"


@dataclass(frozen=True)
class RuleViolation:
    rule: Rule
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


def _is_minor_units(value: Any) -> bool:
    return isinstance(value, int) and is_valid_amount(value) and value <= MAX_MINOR_UNITS


def validate_entry(
    entry: CandidateEntry,
    *,
    today: date,
    reversed_entry_exists: bool = False,
) -> Optional[RuleViolation]:
    """
    Check ``entry`` against the double-entry rules.

    Account codes are expected to be resolved already. The validator is
    polarity-agnostic: any account may take either side. ``reversed_entry_exists``
    only matters when the entry carries ``reverses_entry_id``.
    """
    lines = entry.lines

    if len(lines) < 2:
        return RuleViolation(
            Rule.MIN_LINES,
            "Journal entry must have at least 2 lines",
            {"line_count": len(lines)},
        )

    for index, line in enumerate(lines):
        debit_set = line.debit_cents != 0
        credit_set = line.credit_cents != 0
        if debit_set and credit_set:
            return RuleViolation(
                Rule.ONE_SIDED_LINE,
                f"Line for account '{line.account_code}' has both debit and credit amounts. "
                "Each line must have either a debit OR a credit amount, not both.",
                {"line_index": index, "account_code": line.account_code},
            )
        if not debit_set and not credit_set:
            return RuleViolation(
                Rule.ONE_SIDED_LINE,
                f"Line for account '{line.account_code}' has zero amount. "
                "Each line must have either a debit or credit amount greater than zero.",
                {"line_index": index, "account_code": line.account_code},
            )

    seen: Set[str] = set()
    for index, line in enumerate(lines):
        if line.account_code in seen:
            return RuleViolation(
                Rule.UNIQUE_ACCOUNT,
                f"Account '{line.account_code}' appears multiple times in the same entry. "
                "This is not allowed in our ledger system.",
                {"line_index": index, "account_code": line.account_code},
            )
        seen.add(line.account_code)

    for index, line in enumerate(lines):
        if not (_is_minor_units(line.debit_cents) and _is_minor_units(line.credit_cents)):
            return RuleViolation(
                Rule.NON_NEGATIVE_AMOUNT,
                "Debit and credit amounts must be non-negative integers in minor units "
                f"no larger than {MAX_MINOR_UNITS}",
                {"line_index": index, "account_code": line.account_code, "max_minor_units": MAX_MINOR_UNITS},
            )

    total_debits = entry.total_debits
    total_credits = entry.total_credits
    if total_debits != total_credits:
        return RuleViolation(
            Rule.BALANCED,
            f"Entry is not balanced. Total debits ({from_minor_units(total_debits)}) "
            f"must equal total credits ({from_minor_units(total_credits)})",
            {"total_debits": total_debits, "total_credits": total_credits},
        )

    if total_debits <= 0:
        return RuleViolation(
            Rule.POSITIVE_TOTAL,
            "Journal entry must have a total amount greater than zero",
            {"total_debits": total_debits},
        )

    if entry.date > today:
        return RuleViolation(
            Rule.NOT_FUTURE_DATED,
            f"Entry date {entry.date.isoformat()} cannot be in the future",
            {"date": entry.date.isoformat(), "today": today.isoformat()},
        )

    if entry.reverses_entry_id is not None and not reversed_entry_exists:
        return RuleViolation(
            Rule.REVERSED_ENTRY_EXISTS,
            f"Reversed entry with ID '{entry.reverses_entry_id}' not found",
            {"entry_id": entry.reverses_entry_id},
        )

    return None


__all__ = [
    "CandidateLine",
    "CandidateEntry",
    "Rule",
    "RuleViolation",
    "validate_entry",
]
