from __future__ import annotations

import os
from contextlib import contextmanager
from datetime import date as _date
from pathlib import Path
from typing import Iterator, Optional

import typer
from alembic import command
from alembic.config import Config
from loguru import logger
from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ledgerbook_app import __version__
from ledgerbook_app.db import make_sessionmaker
from ledgerbook_app.errors import IntegrityFault, LedgerError
from ledgerbook_app.models import AccountType
from ledgerbook_app.money import format_minor_units
from ledgerbook_app.schemas import JournalEntryCreate
from ledgerbook_app.seeds import seed_chart_of_accounts
from ledgerbook_app.services.accounts import AccountDirectory
from ledgerbook_app.services.balances import BalanceEngine, display_balance
from ledgerbook_app.services.idempotency import IdempotencyGuard
from ledgerbook_app.services.posting import PostingService
from ledgerbook_app.services.reversal import reverse_entry as reverse_entry_service

app = typer.Typer(no_args_is_help=True)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"Ledgerbook CLI version: {__version__}")
        raise typer.Exit()


@app.callback()
def _banner(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the CLI version and exit",
        callback=_show_version,
        is_eager=True,
    ),
):
    logger.debug("Ledgerbook CLI starting up")


# ---- Alembic ini discovery + config ----
def _find_alembic_ini(start: Path) -> Path:
    for p in [start, *start.parents]:
        candidate = p / "alembic.ini"
        if candidate.exists():
            return candidate
    raise FileNotFoundError("alembic.ini not found from " + str(start))


def alembic_config(db_url: Optional[str] = None) -> Config:
    ini = _find_alembic_ini(Path(__file__).resolve())
    cfg = Config(str(ini))
    cfg.set_main_option("script_location", str(ini.parent / "alembic"))
    if db_url:
        # wins over DATABASE_URL in env.py
        cfg.attributes["sqlalchemy.url"] = db_url
    return cfg


# ---- Friendly validators ----
def _parse_date(label: str, s: str) -> _date:
    try:
        return _date.fromisoformat(s)
    except ValueError as e:
        raise typer.BadParameter(f"{label} must be YYYY-MM-DD, got {s!r}") from e


def _money(cents: int) -> str:
    return format_minor_units(cents, os.getenv("LEDGER_CURRENCY", "INR"))


@contextmanager
def _ledger_session() -> Iterator[Session]:
    """Open a session and turn ledger errors into a logged, non-zero exit."""
    db = make_sessionmaker()()
    try:
        yield db
    except IntegrityFault as e:
        logger.critical(f"{e.message} details={e.details}")
        raise typer.Exit(code=3)
    except LedgerError as e:
        logger.error(f"{e.code}: {e.message}")
        raise typer.Exit(code=1)
    except OperationalError as e:
        msg = str(e).splitlines()[0]
        logger.error(f"Database not ready (OperationalError). Run init-db first. Details: {msg}")
        raise typer.Exit(code=2)
    finally:
        db.close()


# -------------------------
# schema
# -------------------------
@app.command("init-db")
def init_db(db: Optional[str] = typer.Option(None, help="DB URL (overrides DATABASE_URL and alembic.ini)")):
    logger.info(f"Applying migrations to DB: {db or 'DATABASE_URL / alembic.ini setting'}")
    command.upgrade(alembic_config(db), "head")
    logger.success("Migrations applied.")


@app.command()
def rev(message: str = typer.Option("auto", "-m", "--message", help="Revision message")):
    logger.info(f"Creating new revision: {message!r}")
    command.revision(alembic_config(None), message=message, autogenerate=True)
    logger.success("Revision created.")


@app.command()
def downgrade(steps: str = typer.Option("1", "-n", "--steps", help="Steps to downgrade (default 1)")):
    logger.warning(f"Downgrading by {steps} step(s)…")
    command.downgrade(alembic_config(None), f"-{steps}")
    logger.success("Downgrade complete.")


# -------------------------
# accounts
# -------------------------
@app.command("seed-coa")
def seed_coa(
    migrate: bool = typer.Option(True, "--migrate/--no-migrate", help="Run alembic migrations first."),
):
    """
    Seed the database with the default chart of accounts. Safe to run repeatedly.
    """
    if migrate:
        logger.info("Ensuring schema is up to date (alembic upgrade head)")
        command.upgrade(alembic_config(None), "head")
        logger.success("Migrations are up to date.")
    with _ledger_session() as db:
        created = seed_chart_of_accounts(db)
        logger.success(f"Seeded chart of accounts. created={created}")


@app.command("add-account")
def add_account(
    code: str = typer.Argument(..., help="Unique alphanumeric code, up to 20 characters"),
    name: str = typer.Argument(..., help="Display name"),
    type_: AccountType = typer.Option(..., "--type", case_sensitive=False, help="Account type"),
):
    if len(code) > 20 or not 1 <= len(name) <= 100:
        raise typer.BadParameter("code must be at most 20 characters and name 1-100 characters")
    with _ledger_session() as db:
        acct = AccountDirectory(db).create(code, name, type_)
        logger.success(f"Account created: {acct.code} {acct.name} ({acct.type.value})")


@app.command()
def accounts(
    type_: Optional[AccountType] = typer.Option(None, "--type", case_sensitive=False, help="Only this type"),
):
    with _ledger_session() as db:
        rows = AccountDirectory(db).list(account_type=type_)
        if not rows:
            logger.warning("No accounts found.")
            return
        for acct in rows:
            typer.echo(f"{acct.code:<20} {acct.type.value:<10} {acct.name}")


# -------------------------
# journal entries
# -------------------------
@app.command("post-entry")
def post_entry(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with date, narration and lines"),
    idempotency_key: Optional[str] = typer.Option(None, "--idempotency-key", help="Client key for safe retries"),
):
    """
    Post a journal entry described by a JSON file. Amounts are decimals, e.g. 1300.00.
    """
    try:
        payload = JournalEntryCreate.model_validate_json(path.read_text(encoding="utf-8"))
    except SchemaError as e:
        raise typer.BadParameter(f"{path} is not a valid journal entry: {e}") from e

    with _ledger_session() as db:
        entry = PostingService(db).create_entry(payload.to_candidate(), idempotency_key=idempotency_key)
        logger.success(f"Journal entry posted: id={entry.id}")
        typer.echo(entry.id)


@app.command("reverse-entry")
def reverse_entry(
    entry_id: str = typer.Argument(..., help="ID of the entry to reverse"),
    date: Optional[str] = typer.Option(None, help="ISO date for reversal (default today)"),
    narration: Optional[str] = typer.Option(None, help="Optional narration"),
    idempotency_key: Optional[str] = typer.Option(None, "--idempotency-key", help="Client key for safe retries"),
):
    """
    Creates a reversing entry for a given journal entry ID.
    """
    d = _parse_date("date", date) if date else None
    with _ledger_session() as db:
        reversal = reverse_entry_service(
            PostingService(db), entry_id, reversal_date=d, narration=narration, idempotency_key=idempotency_key
        )
        typer.echo(reversal.id)


# -------------------------
# reports
# -------------------------
@app.command()
def balance(
    code: str = typer.Argument(..., help="Account code"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="YYYY-MM-DD inclusive"),
):
    d = _parse_date("as-of", as_of) if as_of else None
    with _ledger_session() as db:
        bal = BalanceEngine(db).account_balance(code, as_of=d)
        typer.echo(
            f"{bal.account_code} {bal.account_name}: debits={_money(bal.debits)} "
            f"credits={_money(bal.credits)} balance={_money(bal.balance)}"
        )


@app.command("trial-balance")
def trial_balance(
    from_: str = typer.Option(..., "--from", help="YYYY-MM-DD inclusive"),
    to: str = typer.Option(..., "--to", help="YYYY-MM-DD inclusive"),
):
    date_from = _parse_date("from", from_)
    date_to = _parse_date("to", to)
    with _ledger_session() as db:
        report = BalanceEngine(db).trial_balance(date_from, date_to)
        for row in report.accounts:
            typer.echo(
                f"{row.account_code:<20} {_money(row.debits):>18} {_money(row.credits):>18} "
                f"{_money(display_balance(row.account_type, row.balance)):>18}"
            )
        typer.echo(f"{'TOTAL':<20} {_money(report.total_debits):>18} {_money(report.total_credits):>18}")
        logger.success(f"Trial balance {date_from} to {date_to} is balanced.")


@app.command()
def equation(as_of: Optional[str] = typer.Option(None, "--as-of", help="YYYY-MM-DD inclusive")):
    d = _parse_date("as-of", as_of) if as_of else None
    with _ledger_session() as db:
        eq = BalanceEngine(db).accounting_equation(d)
        typer.echo(f"Assets:      {_money(eq.assets)}")
        typer.echo(f"Liabilities: {_money(eq.liabilities)}")
        typer.echo(f"Equity:      {_money(eq.equity)}")
        typer.echo(f"Net income:  {_money(eq.net_income)}")
        typer.echo(eq.message)


@app.command("prune-idempotency")
def prune_idempotency(days: int = typer.Option(30, "--days", help="Remove records older than this many days")):
    with _ledger_session() as db:
        removed = IdempotencyGuard(db).prune(older_than_days=days)
        typer.echo(f"Removed {removed} idempotency record(s)")


if __name__ == "__main__":
    app()
