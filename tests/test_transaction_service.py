from decimal import Decimal

import pytest

from ledgerbook.common.exceptions import InvalidOperationError, NotFoundError, ValidationError
from ledgerbook.models.ledger_entry import EntryDirection, EntrySource
from ledgerbook.services.ledger_service import create_category
from ledgerbook.services.report_service import ReportEngine, ReportScope
from ledgerbook.services.transaction_service import (
    EntryFilter,
    delete_manual_entry,
    get_entries_page,
    get_entry,
    list_entries,
    record_entry,
    reverse_entry,
    update_manual_entry,
)
from tests.conftest import OTHER_TENANT, TENANT, day


def test_record_entry_sets_one_side(db, ledgers, institute):
    debit = record_entry(db, TENANT, ledgers["expense"].id, day(3), "Paint", "250.5", "debit")
    credit = record_entry(db, TENANT, ledgers["income"].id, day(3), "Donation", 1000, EntryDirection.CREDIT)

    assert debit.debit == Decimal("250.50") and debit.credit == 0
    assert credit.credit == Decimal("1000") and credit.debit == 0
    assert debit.source == EntrySource.MANUAL
    # Entries inherit the institute of an institute-scoped ledger
    assert debit.institute_id == institute.id


@pytest.mark.parametrize("amount", [0, -10, "abc"])
def test_record_entry_rejects_bad_amount(db, ledgers, amount):
    with pytest.raises(ValidationError):
        record_entry(db, TENANT, ledgers["bank"].id, day(1), "Bad", amount, "credit")


def test_record_entry_rejects_bad_direction_and_source(db, ledgers):
    with pytest.raises(ValidationError):
        record_entry(db, TENANT, ledgers["bank"].id, day(1), "Bad", 10, "sideways")
    with pytest.raises(ValidationError):
        record_entry(db, TENANT, ledgers["bank"].id, day(1), "Bad", 10, "credit", source="payroll")


def test_record_entry_unknown_ledger(db):
    with pytest.raises(NotFoundError):
        record_entry(db, TENANT, "LED-MISSING", day(1), "Nothing", 10, "credit")


def test_record_entry_category_must_belong_to_ledger(db, ledgers):
    category = create_category(db, TENANT, ledgers["income"].id, "Friday Collection")

    with pytest.raises(ValidationError):
        record_entry(db, TENANT, ledgers["expense"].id, day(1), "Wrong", 10, "debit", category_id=category.id)

    entry = record_entry(db, TENANT, ledgers["income"].id, day(1), "Right", 10, "credit", category_id=category.id)
    assert entry.category_id == category.id


def test_record_entry_rejects_other_institute(db, ledgers, second_institute):
    with pytest.raises(ValidationError):
        record_entry(
            db, TENANT, ledgers["bank"].id, day(1), "Wrong scope", 10, "credit",
            institute_id=second_institute.id,
        )


def test_list_entries_order_and_restartable(db, ledgers):
    bank = ledgers["bank"].id
    third = record_entry(db, TENANT, bank, day(5), "third", 30, "credit")
    first = record_entry(db, TENANT, bank, day(2), "first", 10, "credit")
    second = record_entry(db, TENANT, bank, day(2), "second", 20, "debit")

    entries = list_entries(db, TENANT, EntryFilter(ledger_id=bank))
    ids = [e.id for e in entries]
    assert ids == [first.id, second.id, third.id]
    # Iterating again reads the store again
    assert [e.id for e in entries] == ids


def test_list_entries_filters(db, ledgers):
    record_entry(db, TENANT, ledgers["bank"].id, day(1), "Opening", 500, "credit")
    record_entry(db, TENANT, ledgers["income"].id, day(4), "Receipt 7", 80, "credit", source="collection")
    record_entry(db, TENANT, ledgers["expense"].id, day(9), "Bulbs", 40, "debit")

    in_range = list_entries(db, TENANT, EntryFilter(start_date=day(2), end_date=day(9))).all()
    assert [e.description for e in in_range] == ["Receipt 7", "Bulbs"]

    collections = list_entries(db, TENANT, EntryFilter(source=EntrySource.COLLECTION)).all()
    assert [e.description for e in collections] == ["Receipt 7"]

    assert list_entries(db, OTHER_TENANT).all() == []

    with pytest.raises(ValidationError):
        list_entries(db, TENANT, EntryFilter(start_date=day(9), end_date=day(1)))


def test_entries_page_totals_cover_whole_filter(db, ledgers):
    for n in range(1, 6):
        record_entry(db, TENANT, ledgers["bank"].id, day(n), f"Deposit {n}", 100, "credit")
    record_entry(db, TENANT, ledgers["bank"].id, day(6), "Withdrawal", 50, "debit")

    rows, count, totals = get_entries_page(db, TENANT, skip=0, limit=2)

    assert len(rows) == 2
    assert count == 6
    assert totals["total_credit"] == Decimal("500")
    assert totals["total_debit"] == Decimal("50")


def test_update_and_delete_manual_entry(db, ledgers):
    entry = record_entry(db, TENANT, ledgers["expense"].id, day(2), "Paint", 100, "debit")

    updated = update_manual_entry(db, TENANT, entry.id, amount=120, direction="credit", description="Paint refund")
    assert updated.credit == Decimal("120") and updated.debit == 0
    assert updated.description == "Paint refund"

    delete_manual_entry(db, TENANT, entry.id)
    with pytest.raises(NotFoundError):
        get_entry(db, TENANT, entry.id)


def test_non_manual_entries_cannot_be_edited(db, ledgers):
    entry = record_entry(db, TENANT, ledgers["income"].id, day(2), "Receipt", 100, "credit", source="collection")

    with pytest.raises(InvalidOperationError):
        update_manual_entry(db, TENANT, entry.id, amount=50)
    with pytest.raises(InvalidOperationError):
        delete_manual_entry(db, TENANT, entry.id)

    assert get_entry(db, TENANT, entry.id).credit == Decimal("100")


def test_reverse_entry_posts_opposite_side_once(db, ledgers):
    entry = record_entry(db, TENANT, ledgers["income"].id, day(2), "Receipt", 100, "credit", source="collection")

    reversal = reverse_entry(db, TENANT, entry.id, entry_date=day(3))

    assert reversal.debit == Decimal("100") and reversal.credit == 0
    assert reversal.source == EntrySource.COLLECTION
    assert reversal.reference_id == f"REV-{entry.id}"
    assert reversal.date == day(3)

    with pytest.raises(InvalidOperationError):
        reverse_entry(db, TENANT, entry.id)


def test_rejected_update_leaves_entry_unchanged(db, ledgers):
    entry = record_entry(db, TENANT, ledgers["expense"].id, day(2), "Paint", 100, "debit")

    with pytest.raises(ValidationError):
        update_manual_entry(db, TENANT, entry.id, amount=999, description="   ")
    with pytest.raises(NotFoundError):
        update_manual_entry(db, TENANT, entry.id, amount=999, category_id="CAT-MISSING")

    # A later commit in the same session must not carry the rejected amount
    record_entry(db, TENANT, ledgers["bank"].id, day(3), "Deposit", 50, "credit")
    db.expire_all()

    stored = get_entry(db, TENANT, entry.id)
    assert stored.debit == Decimal("100")
    assert stored.description == "Paint"


def test_reversed_manual_entry_is_frozen(db, ledgers):
    expense = ledgers["expense"].id
    entry = record_entry(db, TENANT, expense, day(2), "Paint", 100, "debit")
    reversal = reverse_entry(db, TENANT, entry.id, entry_date=day(3))

    with pytest.raises(InvalidOperationError):
        delete_manual_entry(db, TENANT, entry.id)
    with pytest.raises(InvalidOperationError):
        update_manual_entry(db, TENANT, entry.id, amount=40)

    report = ReportEngine(db, TENANT).ledger_report(expense, ReportScope())
    assert report["closing_balance"] == 0

    # Removing the reversal first releases the original
    delete_manual_entry(db, TENANT, reversal.id)
    delete_manual_entry(db, TENANT, entry.id)
    report = ReportEngine(db, TENANT).ledger_report(expense, ReportScope())
    assert report["entries"] == [] and report["closing_balance"] == 0


def test_entries_page_unknown_institute(db, ledgers):
    with pytest.raises(NotFoundError):
        get_entries_page(db, TENANT, EntryFilter(institute_id="INS-MISSING"))
