from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session
from .models import Account, AccountType

DEFAULT_CHART = [
    ("1001", "Cash", AccountType.ASSET),
    ("1002", "Bank", AccountType.ASSET),
    ("1100", "Accounts Receivable", AccountType.ASSET),
    ("1200", "Inventory", AccountType.ASSET),
    ("1500", "Equipment", AccountType.ASSET),
    ("2001", "Accounts Payable", AccountType.LIABILITY),
    ("2100", "Short-term Loans", AccountType.LIABILITY),
    ("2500", "Long-term Debt", AccountType.LIABILITY),
    ("3001", "Capital", AccountType.EQUITY),
    ("3100", "Retained Earnings", AccountType.EQUITY),
    ("4001", "Sales", AccountType.REVENUE),
    ("4100", "Service Revenue", AccountType.REVENUE),
    ("4200", "Interest Income", AccountType.REVENUE),
    ("5001", "Rent", AccountType.EXPENSE),
    ("5100", "Utilities", AccountType.EXPENSE),
    ("5200", "Office Supplies", AccountType.EXPENSE),
    ("5300", "Marketing", AccountType.EXPENSE),
    ("5400", "Travel", AccountType.EXPENSE),
]


def seed_chart_of_accounts(db: Session) -> int:
    """Create the default chart of accounts. Existing codes are left alone; returns how many were added."""
    existing = set(db.execute(select(Account.code)).scalars().all())
    created = 0
    for code, name, acct_type in DEFAULT_CHART:
        if code in existing:
            logger.info(f"Account '{code}' already exists, skipping.")
            continue
        db.add(Account(code=code, name=name, type=acct_type))
        created += 1
        logger.success(f"Created account: {code} {name} ({acct_type.value})")

    db.commit()
    logger.info("Chart of accounts seeding complete.")
    return created
