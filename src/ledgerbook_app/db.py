# src/ledgerbook_app/db.py
from __future__ import annotations

import os
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

# Re-export the single, canonical Base used by all models
from .models import Base

DEFAULT_DATABASE_URL = "sqlite:///./ledgerbook.db"


def database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: Optional[str] = None, *, echo: Optional[bool] = None) -> Engine:
    """
    Create a SQLAlchemy Engine.
    - Reads DATABASE_URL if url is not provided.
    - Sets SQLite connect_args to allow threaded tests/tools and turns on FK enforcement.
    - echo can be forced via SQL_ECHO=1.
    """
    if url is None:
        url = database_url()

    if echo is None:
        echo = os.getenv("SQL_ECHO", "0") == "1"

    is_sqlite = url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    logger.debug(f"Connecting to database: {url}")
    engine = create_engine(url, future=True, echo=echo, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", enable_sqlite_foreign_keys)
    return engine


def make_sessionmaker(url: Optional[str] = None) -> sessionmaker:
    """
    Return a Session factory bound to the engine for the given (or env) URL.
    """
    engine = make_engine(url)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


def create_schema(engine: Engine) -> None:
    """Create all tables directly; migrations are the normal path."""
    Base.metadata.create_all(engine)


__all__ = ["Base", "database_url", "make_engine", "make_sessionmaker", "create_schema"]
