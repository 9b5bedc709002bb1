from datetime import date

import pytest
from conftest import make_entry
from sqlalchemy import insert, select

from ledgerbook_app.errors import IntegrityFault, NotFoundError, ValidationError
from ledgerbook_app.models import AccountType, JournalLine, new_id
from ledgerbook_app.services.balances import BalanceEngine, display_balance


@pytest.fixture
def ledger(db_session, service):
    service.create_entry(make_entry(date(2024, 1, 1), "Owner capital", ("1001", 100000, 0), ("3001", 0, 100000)))
    service.create_entry(make_entry(date(2024, 1, 5), "Cash sale", ("1001", 50000, 0), ("4001", 0, 50000)))
    service.create_entry(make_entry(date(2024, 2, 10), "February rent", ("5001", 20000, 0), ("1001", 0, 20000)))
    return BalanceEngine(db_session)


def test_as_of_excludes_later_entries(ledger):
    assert ledger.account_balance("1001", as_of=date(2024, 1, 31)).balance == 150000
    assert ledger.account_balance("1001", as_of=date(2024, 2, 10)).balance == 130000
    assert ledger.account_balance("1001", as_of=date(2023, 12, 31)).balance == 0


def test_account_balance_reports_sides(ledger):
    bal = ledger.account_balance("4001")
    assert (bal.debits, bal.credits, bal.balance) == (0, 50000, -50000)
    assert bal.normalized == 50000


def test_unknown_account(ledger):
    with pytest.raises(NotFoundError):
        ledger.account_balance("9999")


def test_all_balances_include_idle_accounts(ledger):
    rows = {r.account_code: r.balance for r in ledger.all_balances()}
    assert rows == {"1001": 130000, "2001": 0, "3001": -100000, "4001": -50000, "5001": 20000}


def test_trial_balance_window_keeps_every_account(ledger):
    tb = ledger.trial_balance(date(2024, 2, 1), date(2024, 2, 29))
    assert [r.account_code for r in tb.accounts] == ["1001", "2001", "3001", "4001", "5001"]
    assert tb.total_debits == tb.total_credits == 20000
    by_code = {r.account_code: r for r in tb.accounts}
    assert by_code["3001"].balance == 0
    assert by_code["1001"].credits == 20000


def test_trial_balance_inverted_range(ledger):
    with pytest.raises(ValidationError):
        ledger.trial_balance(date(2024, 3, 1), date(2024, 1, 1))


def test_trial_balance_detects_corruption(db_session, ledger, accounts):
    entry_id = db_session.scalars(select(JournalLine.entry_id)).first()
    # a one-sided row written behind the engine's back
    db_session.execute(
        insert(JournalLine).values(
            id=new_id(), entry_id=entry_id, account_id=accounts["2001"].id,
            debit_cents=999, credit_cents=0, line_index=99,
        )
    )
    db_session.commit()
    with pytest.raises(IntegrityFault) as exc:
        ledger.trial_balance(date(2024, 1, 1), date(2024, 12, 31))
    assert exc.value.details["total_debits"] == exc.value.details["total_credits"] + 999


def test_balance_summary_and_equation(ledger):
    summary = ledger.balance_summary()
    assert (summary.assets, summary.liabilities, summary.equity) == (130000, 0, 100000)
    assert (summary.revenue, summary.expenses, summary.net_income) == (50000, 20000, 30000)

    eq = ledger.accounting_equation()
    # revenue and expenses are not closed into equity, so the gap is net income
    assert eq.difference == eq.net_income == 30000
    assert not eq.is_balanced
    assert "Difference" in eq.message


def test_equation_balances_without_pnl_activity(ledger):
    eq = ledger.accounting_equation(as_of=date(2024, 1, 1))
    assert eq.is_balanced
    assert eq.message == "Accounting equation is balanced"


def test_display_balance_flips_credit_normal():
    assert display_balance(AccountType.ASSET, 100) == 100
    assert display_balance(AccountType.REVENUE, -100) == 100
    assert display_balance(AccountType.LIABILITY, 250) == -250
