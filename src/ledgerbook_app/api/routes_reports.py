from __future__ import annotations
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from ledgerbook_app.api.deps import get_db, require_api_key
from ledgerbook_app.money import from_minor_units
from ledgerbook_app.schemas import (
    AccountBalanceRead,
    AccountingEquationRead,
    BalanceSummaryRead,
    TrialBalanceRead,
)
from ledgerbook_app.services.balances import BalanceEngine

router = APIRouter(tags=["reports"], dependencies=[Depends(require_api_key)])

@router.get("/reports/trial-balance", response_model=TrialBalanceRead)
def trial_balance(
    from_date: date = Query(alias="from"),
    to_date: date = Query(alias="to"),
    db: Session = Depends(get_db),
) -> TrialBalanceRead:
    return TrialBalanceRead.from_report(BalanceEngine(db).trial_balance(from_date, to_date))

@router.get("/reports/balance-summary", response_model=BalanceSummaryRead)
def balance_summary(as_of: Optional[date] = Query(default=None), db: Session = Depends(get_db)):
    s = BalanceEngine(db).balance_summary(as_of)
    return BalanceSummaryRead(
        assets=from_minor_units(s.assets),
        liabilities=from_minor_units(s.liabilities),
        equity=from_minor_units(s.equity),
        revenue=from_minor_units(s.revenue),
        expenses=from_minor_units(s.expenses),
        net_income=from_minor_units(s.net_income),
        as_of=as_of,
    )

@router.get("/reports/accounting-equation", response_model=AccountingEquationRead)
def accounting_equation(as_of: Optional[date] = Query(default=None), db: Session = Depends(get_db)):
    eq = BalanceEngine(db).accounting_equation(as_of)
    return AccountingEquationRead(
        assets=from_minor_units(eq.assets),
        liabilities=from_minor_units(eq.liabilities),
        equity=from_minor_units(eq.equity),
        difference=from_minor_units(eq.difference),
        net_income=from_minor_units(eq.net_income),
        is_balanced=eq.is_balanced,
        message=eq.message,
        as_of=as_of,
    )

@router.get("/balances", response_model=List[AccountBalanceRead])
def all_balances(as_of: Optional[date] = Query(default=None), db: Session = Depends(get_db)):
    return [AccountBalanceRead.from_balance(b, as_of=as_of) for b in BalanceEngine(db).all_balances(as_of)]
