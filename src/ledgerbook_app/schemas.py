from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal, List
import datetime as dt
from decimal import Decimal

from .models import AccountType
from .money import MAX_AMOUNT, from_minor_units, to_minor_units
from .services.validation import CandidateEntry, CandidateLine

AccountTypeName = Literal["ASSET", "LIABILITY", "EQUITY", "REVENUE", "EXPENSE"]

# Pydantic v2 models
class AccountCreate(BaseModel):
    code: str = Field(min_length=1, max_length=20, pattern=r"^[A-Za-z0-9]+$")
    name: str = Field(min_length=1, max_length=100)
    type: AccountTypeName

class AccountRead(BaseModel):
    id: str
    code: str
    name: str
    type: AccountType
    created_at: dt.datetime
    model_config = ConfigDict(from_attributes=True)

class AccountActivity(BaseModel):
    code: str
    has_activity: bool

class JournalLineCreate(BaseModel):
    account_code: str = Field(min_length=1, max_length=20)
    # sign is checked by the validator, not here
    debit: Decimal = Field(default=Decimal("0"), ge=-MAX_AMOUNT, le=MAX_AMOUNT)
    credit: Decimal = Field(default=Decimal("0"), ge=-MAX_AMOUNT, le=MAX_AMOUNT)

    def to_candidate(self) -> CandidateLine:
        return CandidateLine(
            account_code=self.account_code,
            debit_cents=to_minor_units(self.debit),
            credit_cents=to_minor_units(self.credit),
        )

class JournalEntryCreate(BaseModel):
    date: dt.date
    narration: str = Field(min_length=1, max_length=500)
    lines: List[JournalLineCreate]
    reverses_entry_id: Optional[str] = None

    def to_candidate(self) -> CandidateEntry:
        return CandidateEntry(
            date=self.date,
            narration=self.narration,
            lines=tuple(line.to_candidate() for line in self.lines),
            reverses_entry_id=self.reverses_entry_id,
        )

class ReversalCreate(BaseModel):
    date: Optional[dt.date] = None
    narration: Optional[str] = Field(default=None, min_length=1, max_length=500)

class JournalLineRead(BaseModel):
    id: str
    account_code: str
    debit_cents: int
    credit_cents: int
    debit: Decimal
    credit: Decimal
    line_index: int

class JournalEntryRead(BaseModel):
    id: str
    date: dt.date
    narration: str
    posted_at: dt.datetime
    reverses_entry_id: Optional[str] = None
    lines: List[JournalLineRead]

    @classmethod
    def from_entry(cls, entry) -> "JournalEntryRead":
        return cls(
            id=entry.id,
            date=entry.date,
            narration=entry.narration,
            posted_at=entry.posted_at,
            reverses_entry_id=entry.reverses_entry_id,
            lines=[
                JournalLineRead(
                    id=line.id,
                    account_code=line.account_code,
                    debit_cents=line.debit_cents,
                    credit_cents=line.credit_cents,
                    debit=from_minor_units(line.debit_cents),
                    credit=from_minor_units(line.credit_cents),
                    line_index=line.line_index,
                )
                for line in sorted(entry.lines, key=lambda l: l.line_index)
            ],
        )

class AccountBalanceRead(BaseModel):
    account_code: str
    account_name: str
    account_type: AccountTypeName
    debits: Decimal
    credits: Decimal
    balance: Decimal
    as_of: Optional[dt.date] = None

    @classmethod
    def from_balance(cls, bal, as_of: Optional[dt.date] = None) -> "AccountBalanceRead":
        return cls(
            account_code=bal.account_code,
            account_name=bal.account_name,
            account_type=bal.account_type.value,
            debits=from_minor_units(bal.debits),
            credits=from_minor_units(bal.credits),
            balance=from_minor_units(bal.balance),
            as_of=as_of,
        )

class TrialBalanceTotals(BaseModel):
    debits: Decimal
    credits: Decimal

class TrialBalanceRead(BaseModel):
    from_date: dt.date = Field(alias="from")
    to_date: dt.date = Field(alias="to")
    accounts: List[AccountBalanceRead]
    totals: TrialBalanceTotals
    is_balanced: bool
    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_report(cls, report) -> "TrialBalanceRead":
        return cls(
            from_date=report.date_from,
            to_date=report.date_to,
            accounts=[AccountBalanceRead.from_balance(b) for b in report.accounts],
            totals=TrialBalanceTotals(
                debits=from_minor_units(report.total_debits),
                credits=from_minor_units(report.total_credits),
            ),
            is_balanced=report.is_balanced,
        )

class BalanceSummaryRead(BaseModel):
    assets: Decimal
    liabilities: Decimal
    equity: Decimal
    revenue: Decimal
    expenses: Decimal
    net_income: Decimal
    as_of: Optional[dt.date] = None

class AccountingEquationRead(BaseModel):
    assets: Decimal
    liabilities: Decimal
    equity: Decimal
    difference: Decimal
    net_income: Decimal
    is_balanced: bool
    message: str
    as_of: Optional[dt.date] = None
