# src/ledgerbook_app/models.py
from __future__ import annotations

import uuid
import datetime as dt
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> dt.datetime:
    # Naive UTC: SQLite drops tzinfo, so keep comparisons naive everywhere.
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


class AccountType(str, Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class Polarity(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class Account(Base):
    """Chart-of-accounts entry, keyed naturally by its unique code."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[AccountType] = mapped_column(SAEnum(AccountType), nullable=False, index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    lines: Mapped[List["JournalLine"]] = relationship(back_populates="account")

    def __repr__(self) -> str:
        return f"Account(code={self.code!r}, name={self.name!r}, type={self.type.value})"


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    narration: Mapped[str] = mapped_column(String(500), nullable=False)
    posted_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, index=True)
    # weak back-reference; no FK so reversals never cascade
    reverses_entry_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    lines: Mapped[List["JournalLine"]] = relationship(
        "JournalLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="JournalLine.line_index",
    )

    @property
    def total_debits(self) -> int:
        return sum(line.debit_cents for line in self.lines)

    @property
    def total_credits(self) -> int:
        return sum(line.credit_cents for line in self.lines)


class JournalLine(Base):
    __tablename__ = "journal_lines"
    __table_args__ = (
        UniqueConstraint("entry_id", "line_index", name="uq_journal_line_index"),
        CheckConstraint("debit_cents >= 0", name="ck_journal_line_debit_nonneg"),
        CheckConstraint("credit_cents >= 0", name="ck_journal_line_credit_nonneg"),
        CheckConstraint(
            "(debit_cents > 0 AND credit_cents = 0) OR (credit_cents > 0 AND debit_cents = 0)",
            name="ck_journal_line_one_side",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    entry_id: Mapped[str] = mapped_column(
        ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    debit_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credit_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    line_index: Mapped[int] = mapped_column(Integer, nullable=False)

    entry: Mapped["JournalEntry"] = relationship("JournalEntry", back_populates="lines")
    account: Mapped["Account"] = relationship("Account", back_populates="lines", lazy="joined")

    @property
    def account_code(self) -> str:
        return self.account.code


class IdempotencyRecord(Base):
    __tablename__ = "idempotency_records"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    request_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    entry_id: Mapped[str] = mapped_column(
        ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)


__all__ = [
    "Base",
    "AccountType",
    "Polarity",
    "Account",
    "JournalEntry",
    "JournalLine",
    "IdempotencyRecord",
    "new_id",
    "utcnow",
]
