# src/ledgerbook_app/services/accounts.py
"""
Account directory: the authoritative code -> account mapping.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Account, AccountType, JournalLine, Polarity

_DEBIT_NORMAL = frozenset({AccountType.ASSET, AccountType.EXPENSE})


def normal_polarity(account_type: AccountType) -> Polarity:
    """Assets and expenses grow with debits; liabilities, equity and revenue with credits."""
    return Polarity.DEBIT if AccountType(account_type) in _DEBIT_NORMAL else Polarity.CREDIT


class AccountDirectory:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create(self, code: str, name: str, account_type: AccountType) -> Account:
        if not code or not code.isalnum():
            raise ValidationError(f"Invalid account code: {code!r}", code_value=code)
        if self._find(code) is not None:
            raise ConflictError(f"Account with code '{code}' already exists", account_code=code)

        acct = Account(code=code, name=name, type=AccountType(account_type))
        self.db.add(acct)
        try:
            self.db.commit()
        except IntegrityError as e:
            # lost a race on the unique code
            self.db.rollback()
            raise ConflictError(f"Account with code '{code}' already exists", account_code=code) from e
        self.db.refresh(acct)
        logger.info(f"Created account {acct.code} - {acct.name} ({acct.type.value})")
        return acct

    def get(self, code: str) -> Account:
        acct = self._find(code)
        if acct is None:
            raise NotFoundError(f"Account with code '{code}' not found", missing_codes=[code])
        return acct

    def list(self, account_type: Optional[AccountType] = None) -> List[Account]:
        stmt = select(Account).order_by(Account.code)
        if account_type is not None:
            stmt = stmt.where(Account.type == AccountType(account_type))
        return list(self.db.execute(stmt).scalars().all())

    def resolve(self, codes: Iterable[str]) -> Dict[str, Account]:
        """Map every code to its account; a single NotFoundError names all the missing ones."""
        wanted = set(codes)
        if not wanted:
            return {}
        found = {
            acct.code: acct
            for acct in self.db.execute(select(Account).where(Account.code.in_(wanted))).scalars()
        }
        missing = sorted(wanted - found.keys())
        if missing:
            raise NotFoundError(f"Accounts not found: {', '.join(missing)}", missing_codes=missing)
        return found

    def has_activity(self, code: str) -> bool:
        acct = self.get(code)
        count = self.db.scalar(
            select(func.count()).select_from(JournalLine).where(JournalLine.account_id == acct.id)
        )
        return bool(count)

    def delete(self, code: str) -> None:
        """Retire an account. Only allowed while no line references it."""
        acct = self.get(code)
        if self.has_activity(code):
            raise ConflictError(
                f"Account '{code}' has journal activity and cannot be deleted", account_code=code
            )
        self.db.delete(acct)
        self.db.commit()
        logger.info(f"Deleted account {code}")

    def _find(self, code: str) -> Optional[Account]:
        return self.db.execute(select(Account).where(Account.code == code)).scalar_one_or_none()


__all__ = ["AccountDirectory", "normal_polarity"]
