# src/ledgerbook_app/services/balances.py
"""
Balance engine.

All figures are recomputed on demand from the stored lines; nothing is
cached. ``balance`` is always the signed net-debit figure
(debits - credits). Flipping credit-normal accounts to a positive
"normal" number is a presentation concern, see ``display_balance``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..errors import IntegrityFault, ValidationError
from ..models import Account, AccountType, JournalEntry, JournalLine, Polarity
from .accounts import AccountDirectory, normal_polarity


@dataclass(frozen=True)
class AccountBalance:
    account_code: str
    account_name: str
    account_type: AccountType
    debits: int
    credits: int

    @property
    def balance(self) -> int:
        return self.debits - self.credits

    @property
    def normalized(self) -> int:
        return display_balance(self.account_type, self.balance)


@dataclass(frozen=True)
class TrialBalance:
    date_from: date
    date_to: date
    accounts: List[AccountBalance] = field(default_factory=list)
    total_debits: int = 0
    total_credits: int = 0

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


@dataclass(frozen=True)
class BalanceSummary:
    assets: int
    liabilities: int
    equity: int
    revenue: int
    expenses: int

    @property
    def net_income(self) -> int:
        return self.revenue - self.expenses


@dataclass(frozen=True)
class AccountingEquation:
    assets: int
    liabilities: int
    equity: int
    net_income: int

    @property
    def difference(self) -> int:
        return self.assets - (self.liabilities + self.equity)

    @property
    def is_balanced(self) -> bool:
        return self.difference == 0

    @property
    def message(self) -> str:
        if self.is_balanced:
            return "Accounting equation is balanced"
        return f"Accounting equation is not balanced. Difference: {self.difference} cents"


def display_balance(account_type: AccountType, balance: int) -> int:
    """Net-debit balance expressed on the account's normal side."""
    return balance if normal_polarity(account_type) is Polarity.DEBIT else -balance


class BalanceEngine:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.accounts = AccountDirectory(db)

    def account_balance(self, code: str, as_of: Optional[date] = None) -> AccountBalance:
        acct = self.accounts.get(code)
        rows = self._aggregate(date_to=as_of, account_id=acct.id)
        return rows[0]

    def all_balances(self, as_of: Optional[date] = None) -> List[AccountBalance]:
        return self._aggregate(date_to=as_of)

    def trial_balance(self, date_from: date, date_to: date) -> TrialBalance:
        if date_from > date_to:
            raise ValidationError(
                "to date must be greater than or equal to from date",
                date_from=date_from.isoformat(),
                date_to=date_to.isoformat(),
            )
        rows = self._aggregate(date_from=date_from, date_to=date_to)
        report = TrialBalance(
            date_from=date_from,
            date_to=date_to,
            accounts=rows,
            total_debits=sum(r.debits for r in rows),
            total_credits=sum(r.credits for r in rows),
        )
        if not report.is_balanced:
            raise IntegrityFault(
                f"Trial balance does not balance! Total debits: {report.total_debits}, "
                f"Total credits: {report.total_credits}. "
                "This indicates a serious data integrity issue.",
                total_debits=report.total_debits,
                total_credits=report.total_credits,
                date_from=date_from.isoformat(),
                date_to=date_to.isoformat(),
            )
        return report

    def balance_summary(self, as_of: Optional[date] = None) -> BalanceSummary:
        totals = {t: 0 for t in AccountType}
        for row in self.all_balances(as_of):
            totals[row.account_type] += row.normalized
        return BalanceSummary(
            assets=totals[AccountType.ASSET],
            liabilities=totals[AccountType.LIABILITY],
            equity=totals[AccountType.EQUITY],
            revenue=totals[AccountType.REVENUE],
            expenses=totals[AccountType.EXPENSE],
        )

    def accounting_equation(self, as_of: Optional[date] = None) -> AccountingEquation:
        """
        Assets vs liabilities + equity, each on its normal side.

        Revenue and expense accounts are left out, so until they are closed
        into equity the difference equals net income. The difference is
        reported as-is.
        """
        summary = self.balance_summary(as_of)
        return AccountingEquation(
            assets=summary.assets,
            liabilities=summary.liabilities,
            equity=summary.equity,
            net_income=summary.net_income,
        )

    def _aggregate(
        self,
        *,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        account_id: Optional[str] = None,
    ) -> List[AccountBalance]:
        # filter lines before the outer join so idle accounts still report zeros
        line_totals = (
            select(
                JournalLine.account_id.label("account_id"),
                func.sum(JournalLine.debit_cents).label("debits"),
                func.sum(JournalLine.credit_cents).label("credits"),
            )
            .join(JournalEntry, JournalLine.entry_id == JournalEntry.id)
            .group_by(JournalLine.account_id)
        )
        if date_from is not None:
            line_totals = line_totals.where(JournalEntry.date >= date_from)
        if date_to is not None:
            line_totals = line_totals.where(JournalEntry.date <= date_to)
        totals = line_totals.subquery()

        stmt = (
            select(
                Account,
                func.coalesce(totals.c.debits, 0),
                func.coalesce(totals.c.credits, 0),
            )
            .outerjoin(totals, totals.c.account_id == Account.id)
            .order_by(Account.code)
        )
        if account_id is not None:
            stmt = stmt.where(Account.id == account_id)

        return [
            AccountBalance(
                account_code=acct.code,
                account_name=acct.name,
                account_type=acct.type,
                debits=int(debits),
                credits=int(credits),
            )
            for acct, debits, credits in self.db.execute(stmt).all()
        ]


__all__ = [
    "AccountBalance",
    "TrialBalance",
    "BalanceSummary",
    "AccountingEquation",
    "BalanceEngine",
    "display_balance",
]
