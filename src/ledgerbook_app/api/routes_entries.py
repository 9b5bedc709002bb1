from __future__ import annotations
from datetime import date
from typing import Callable, List, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from ledgerbook_app.api.deps import get_db, get_today, idempotency_key, require_api_key
from ledgerbook_app.schemas import JournalEntryCreate, JournalEntryRead, ReversalCreate
from ledgerbook_app.services.posting import PostingService
from ledgerbook_app.services.reversal import reverse_entry

router = APIRouter(prefix="/journal-entries", tags=["journal-entries"], dependencies=[Depends(require_api_key)])

@router.post("", response_model=JournalEntryRead, status_code=status.HTTP_201_CREATED)
def create_entry(
    payload: JournalEntryCreate,
    response: Response,
    key: Optional[str] = Depends(idempotency_key),
    today: Callable[[], date] = Depends(get_today),
    db: Session = Depends(get_db),
) -> JournalEntryRead:
    service = PostingService(db, today=today)
    entry = service.create_entry(payload.to_candidate(), idempotency_key=key)
    if key:
        response.headers["Idempotency-Key"] = key
    return JournalEntryRead.from_entry(entry)

@router.get("", response_model=List[JournalEntryRead])
def list_entries(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    from_date: Optional[date] = Query(default=None, alias="from"),
    to_date: Optional[date] = Query(default=None, alias="to"),
    db: Session = Depends(get_db),
) -> List[JournalEntryRead]:
    service = PostingService(db)
    if from_date is not None or to_date is not None:
        entries = service.entries_between(from_date or date.min, to_date or date.max)
    else:
        entries = service.list_entries(limit=limit, offset=offset)
    return [JournalEntryRead.from_entry(e) for e in entries]

@router.get("/{entry_id}", response_model=JournalEntryRead)
def get_entry(entry_id: str, db: Session = Depends(get_db)) -> JournalEntryRead:
    return JournalEntryRead.from_entry(PostingService(db).get_entry(entry_id))

@router.post("/{entry_id}/reverse", response_model=JournalEntryRead, status_code=status.HTTP_201_CREATED)
def reverse_journal_entry(
    entry_id: str,
    payload: Optional[ReversalCreate] = None,
    key: Optional[str] = Depends(idempotency_key),
    today: Callable[[], date] = Depends(get_today),
    db: Session = Depends(get_db),
) -> JournalEntryRead:
    payload = payload or ReversalCreate()
    service = PostingService(db, today=today)
    reversal = reverse_entry(
        service,
        entry_id,
        reversal_date=payload.date,
        narration=payload.narration,
        idempotency_key=key,
    )
    return JournalEntryRead.from_entry(reversal)
