from datetime import date, timedelta

import pytest
from conftest import TODAY, make_entry

from ledgerbook_app.money import MAX_MINOR_UNITS
from ledgerbook_app.services.validation import CandidateEntry, CandidateLine, Rule, validate_entry


def _check(entry, **kw):
    return validate_entry(entry, today=TODAY, **kw)


def test_balanced_entry_passes():
    entry = make_entry(TODAY, "Sale", ("1001", 50000, 0), ("4001", 0, 50000))
    assert _check(entry) is None


def test_single_line_rejected():
    v = _check(make_entry(TODAY, "one", ("1001", 100, 0)))
    assert v.rule is Rule.MIN_LINES
    assert v.message == "Journal entry must have at least 2 lines"


def test_both_sides_on_one_line_rejected():
    v = _check(make_entry(TODAY, "x", ("1001", 100, 100), ("4001", 0, 100)))
    assert v.rule is Rule.ONE_SIDED_LINE
    assert "both debit and credit" in v.message


def test_zero_line_rejected():
    v = _check(make_entry(TODAY, "x", ("1001", 100, 0), ("4001", 0, 100), ("5001", 0, 0)))
    assert v.rule is Rule.ONE_SIDED_LINE
    assert "zero amount" in v.message


def test_repeated_account_rejected_even_when_balanced():
    v = _check(make_entry(TODAY, "x", ("1001", 100, 0), ("1001", 0, 100)))
    assert v.rule is Rule.UNIQUE_ACCOUNT
    assert "appears multiple times" in v.message


def test_negative_amount_rejected():
    v = _check(make_entry(TODAY, "x", ("1001", -100, 0), ("4001", 0, -100)))
    assert v.rule is Rule.NON_NEGATIVE_AMOUNT


def test_bool_amount_rejected():
    entry = CandidateEntry(
        date=TODAY,
        narration="x",
        lines=(CandidateLine("1001", True, 0), CandidateLine("4001", 0, True)),
    )
    assert _check(entry).rule is Rule.NON_NEGATIVE_AMOUNT


def test_unbalanced_reports_totals():
    v = _check(make_entry(TODAY, "x", ("1001", 10000, 0), ("4001", 0, 9000)))
    assert v.rule is Rule.BALANCED
    assert v.details == {"total_debits": 10000, "total_credits": 9000}
    assert "100.00" in v.message and "90.00" in v.message


def test_future_date_rejected_today_allowed():
    lines = (("1001", 100, 0), ("4001", 0, 100))
    assert _check(make_entry(TODAY, "ok", *lines)) is None
    v = _check(make_entry(TODAY + timedelta(days=1), "later", *lines))
    assert v.rule is Rule.NOT_FUTURE_DATED


def test_missing_reversed_entry():
    entry = make_entry(TODAY, "rev", ("1001", 100, 0), ("4001", 0, 100), reverses="nope")
    assert _check(entry).rule is Rule.REVERSED_ENTRY_EXISTS
    assert _check(entry, reversed_entry_exists=True) is None


def test_first_violation_wins():
    # unbalanced and future-dated: balance is checked first
    entry = make_entry(date(2099, 1, 1), "x", ("1001", 100, 0), ("4001", 0, 50))
    assert _check(entry).rule is Rule.BALANCED


def test_validator_is_polarity_agnostic():
    # credit an expense, debit a revenue account
    entry = make_entry(TODAY, "odd", ("4001", 100, 0), ("5001", 0, 100))
    assert _check(entry) is None


def test_amount_beyond_integer_column_rejected():
    too_big = MAX_MINOR_UNITS + 1
    v = _check(make_entry(TODAY, "huge", ("1001", too_big, 0), ("4001", 0, too_big)))
    assert v.rule is Rule.NON_NEGATIVE_AMOUNT
    assert v.details["max_minor_units"] == MAX_MINOR_UNITS
    assert _check(make_entry(TODAY, "max", ("1001", MAX_MINOR_UNITS, 0), ("4001", 0, MAX_MINOR_UNITS))) is None
