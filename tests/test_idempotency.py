from datetime import timedelta

import pytest
from conftest import TODAY, make_entry
from sqlalchemy import func, select

from ledgerbook_app.errors import ConflictError, ValidationError
from ledgerbook_app.models import IdempotencyRecord, JournalEntry, utcnow
from ledgerbook_app.services.idempotency import IdempotencyCheck, IdempotencyGuard, hash_request, is_valid_key
from ledgerbook_app.services.posting import PostingService


def _entries(db):
    return db.scalar(select(func.count()).select_from(JournalEntry))


def _sale(amount=50000, narration="Cash sale"):
    return make_entry(TODAY, narration, ("1001", amount, 0), ("4001", 0, amount))


def test_hash_ignores_key_order():
    a = {"date": "2024-01-01", "lines": [{"debit_cents": 1, "account_code": "1001"}]}
    b = {"lines": [{"account_code": "1001", "debit_cents": 1}], "date": "2024-01-01"}
    assert hash_request(a) == hash_request(b)
    assert hash_request(_sale()) == hash_request(_sale())
    assert hash_request(_sale()) != hash_request(_sale(amount=1))


@pytest.mark.parametrize(
    "key, ok",
    [("abc-123_X", True), ("", False), (None, False), ("has space", False), ("k" * 255, True), ("k" * 256, False)],
)
def test_key_format(key, ok):
    assert is_valid_key(key) is ok


def test_replay_returns_original_entry(db_session, service):
    first = service.create_entry(_sale(), idempotency_key="sale-1")
    again = service.create_entry(_sale(), idempotency_key="sale-1")
    assert again.id == first.id
    assert _entries(db_session) == 1


def test_same_key_different_payload_conflicts(db_session, service):
    service.create_entry(_sale(), idempotency_key="sale-1")
    with pytest.raises(ConflictError) as exc:
        service.create_entry(_sale(amount=1), idempotency_key="sale-1")
    assert "already used with different request data" in exc.value.message
    assert _entries(db_session) == 1


def test_failed_validation_records_no_key(db_session, service):
    with pytest.raises(ValidationError):
        service.create_entry(make_entry(TODAY, "bad", ("1001", 2, 0), ("4001", 0, 1)), idempotency_key="k1")
    assert db_session.get(IdempotencyRecord, "k1") is None
    # the key is still free for a corrected request
    assert service.create_entry(_sale(), idempotency_key="k1").id


def _racing_pair(session_factory):
    """Two writers on separate sessions; the loser already passed its idempotency check."""
    winner_db, loser_db = session_factory(), session_factory()
    winner = PostingService(winner_db, today=lambda: TODAY)
    loser = PostingService(loser_db, today=lambda: TODAY)
    loser.guard.check = lambda key, request_hash: IdempotencyCheck(is_new=True)
    return winner_db, loser_db, winner, loser


def test_race_with_same_payload_returns_winner(session_factory, accounts):
    winner_db, loser_db, winner, loser = _racing_pair(session_factory)
    try:
        won = winner.create_entry(_sale(), idempotency_key="race-1")
        lost = loser.create_entry(_sale(), idempotency_key="race-1")
        assert lost.id == won.id
        assert _entries(loser_db) == 1
    finally:
        winner_db.close()
        loser_db.close()


def test_race_with_different_payload_conflicts(session_factory, accounts):
    winner_db, loser_db, winner, loser = _racing_pair(session_factory)
    try:
        winner.create_entry(_sale(), idempotency_key="race-2")
        with pytest.raises(ConflictError):
            loser.create_entry(_sale(amount=7), idempotency_key="race-2")
        assert _entries(loser_db) == 1
    finally:
        winner_db.close()
        loser_db.close()


def test_prune_drops_only_old_records(db_session, service):
    old = service.create_entry(_sale(narration="old"), idempotency_key="old-key")
    service.create_entry(_sale(narration="new"), idempotency_key="new-key")
    record = db_session.get(IdempotencyRecord, "old-key")
    record.created_at = utcnow() - timedelta(days=45)
    db_session.commit()

    guard = IdempotencyGuard(db_session)
    assert guard.prune(older_than_days=30) == 1
    assert guard.lookup("old-key") is None
    assert guard.lookup("new-key") is not None
    # the entry itself is untouched
    assert service.get_entry(old.id).narration == "old"


def test_prune_requires_positive_days(db_session):
    with pytest.raises(ValidationError):
        IdempotencyGuard(db_session).prune(older_than_days=0)
