from __future__ import annotations
import os
from datetime import date
from functools import lru_cache
from typing import Callable, FrozenSet, Generator, Optional

from fastapi import Depends, Header, HTTPException, status
from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from ledgerbook_app.db import database_url, make_sessionmaker
from ledgerbook_app.services.idempotency import MAX_KEY_LENGTH, is_valid_key

DEFAULT_API_KEYS = "dev-key-1,dev-key-2"


@lru_cache(maxsize=None)
def _session_factory(url: str) -> sessionmaker:
    return make_sessionmaker(url)


def get_db() -> Generator[Session, None, None]:
    SessionLocal = _session_factory(database_url())
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_today() -> Callable[[], date]:
    """Clock used for the future-date rule; overridden in tests."""
    return date.today


def allowed_api_keys() -> FrozenSet[str]:
    raw = os.getenv("LEDGER_API_KEYS", DEFAULT_API_KEYS)
    return frozenset(k.strip() for k in raw.split(",") if k.strip())


def require_api_key(
    x_api_key: Optional[str] = Header(default=None),
    keys: FrozenSet[str] = Depends(allowed_api_keys),
) -> str:
    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is required. Please provide X-API-Key header.",
        )
    if x_api_key not in keys:
        logger.warning("Rejected request with unknown API key")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
    return x_api_key


def idempotency_key(idempotency_key: Optional[str] = Header(default=None)) -> Optional[str]:
    if idempotency_key is None:
        return None
    if not is_valid_key(idempotency_key):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Idempotency-Key must be 1-{MAX_KEY_LENGTH} characters of letters, "
                "digits, '-' or '_'"
            ),
        )
    return idempotency_key
