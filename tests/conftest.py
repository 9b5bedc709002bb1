# tests/conftest.py
"""
Pytest fixtures for the ledger engine, API and CLI.

- Every test gets its own temp-file SQLite database (schema via create_all).
- ``migrated_url`` builds a database through the Alembic migrations instead.
- "Today" is pinned so future-date checks are deterministic.
"""
from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Iterable, Tuple

import pytest
from alembic import command
from alembic.config import Config

from ledgerbook_app.db import create_schema, make_engine, make_sessionmaker
from ledgerbook_app.models import AccountType
from ledgerbook_app.services.accounts import AccountDirectory
from ledgerbook_app.services.posting import PostingService
from ledgerbook_app.services.validation import CandidateEntry, CandidateLine

PROJECT_ROOT = Path(__file__).parent.parent
TODAY = date(2025, 6, 30)
API_KEY = "test-key"


def make_entry(entry_date: date, narration: str, *lines: Tuple[str, int, int], reverses: str = None) -> CandidateEntry:
    """Build a candidate from (account_code, debit_cents, credit_cents) tuples."""
    return CandidateEntry(
        date=entry_date,
        narration=narration,
        lines=tuple(CandidateLine(code, debit, credit) for code, debit, credit in lines),
        reverses_entry_id=reverses,
    )


@pytest.fixture(autouse=True, scope="session")
def silence_sqlalchemy_logging():
    logging.getLogger("sqlalchemy").setLevel(logging.CRITICAL)


@pytest.fixture
def db_url(tmp_path, monkeypatch) -> str:
    url = f"sqlite:///{tmp_path / 'ledger.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    return url


@pytest.fixture
def session_factory(db_url):
    engine = make_engine(db_url)
    create_schema(engine)
    engine.dispose()
    return make_sessionmaker(db_url)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def accounts(db_session):
    """The small chart used by most scenarios."""
    directory = AccountDirectory(db_session)
    chart: Iterable[Tuple[str, str, AccountType]] = [
        ("1001", "Cash", AccountType.ASSET),
        ("2001", "Accounts Payable", AccountType.LIABILITY),
        ("3001", "Capital", AccountType.EQUITY),
        ("4001", "Sales", AccountType.REVENUE),
        ("5001", "Rent", AccountType.EXPENSE),
    ]
    return {code: directory.create(code, name, acct_type) for code, name, acct_type in chart}


@pytest.fixture
def service(db_session, accounts) -> PostingService:
    return PostingService(db_session, today=lambda: TODAY)


@pytest.fixture
def client(session_factory, accounts, monkeypatch):
    from fastapi.testclient import TestClient
    from ledgerbook_app.api.deps import get_db, get_today
    from ledgerbook_app.app import app

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setenv("LEDGER_API_KEYS", f"{API_KEY},other-key")
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_today] = lambda: (lambda: TODAY)
    try:
        with TestClient(app) as c:
            c.headers.update({"X-API-Key": API_KEY})
            yield c
    finally:
        app.dependency_overrides.clear()


def alembic_cfg(url: str) -> Config:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    cfg.attributes["sqlalchemy.url"] = url
    cfg.attributes["configure_logger"] = False
    return cfg


@pytest.fixture
def migrated_url(tmp_path) -> str:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    command.upgrade(alembic_cfg(url), "head")
    return url
