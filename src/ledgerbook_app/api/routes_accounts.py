from __future__ import annotations
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from ledgerbook_app.api.deps import get_db, require_api_key
from ledgerbook_app.models import Account, AccountType
from ledgerbook_app.schemas import AccountActivity, AccountBalanceRead, AccountCreate, AccountRead
from ledgerbook_app.services.accounts import AccountDirectory
from ledgerbook_app.services.balances import BalanceEngine

router = APIRouter(prefix="/accounts", tags=["accounts"], dependencies=[Depends(require_api_key)])

@router.get("", response_model=List[AccountRead])
def list_accounts(type: Optional[AccountType] = None, db: Session = Depends(get_db)) -> List[Account]:
    return AccountDirectory(db).list(account_type=type)

@router.post("", response_model=AccountRead, status_code=status.HTTP_201_CREATED)
def create_account(payload: AccountCreate, db: Session = Depends(get_db)) -> Account:
    return AccountDirectory(db).create(payload.code, payload.name, AccountType(payload.type))

@router.get("/{code}", response_model=AccountRead)
def get_account(code: str, db: Session = Depends(get_db)) -> Account:
    return AccountDirectory(db).get(code)

@router.get("/{code}/activity", response_model=AccountActivity)
def account_activity(code: str, db: Session = Depends(get_db)) -> AccountActivity:
    return AccountActivity(code=code, has_activity=AccountDirectory(db).has_activity(code))

@router.get("/{code}/balance", response_model=AccountBalanceRead)
def account_balance(
    code: str,
    as_of: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
) -> AccountBalanceRead:
    bal = BalanceEngine(db).account_balance(code, as_of=as_of)
    return AccountBalanceRead.from_balance(bal, as_of=as_of)

@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(code: str, db: Session = Depends(get_db)) -> None:
    # refuses accounts that already carry journal lines
    AccountDirectory(db).delete(code)
