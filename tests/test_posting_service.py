from decimal import Decimal

import pytest

from ledgerbook.common.exceptions import InvalidOperationError
from ledgerbook.models.ledger import LedgerType
from ledgerbook.models.ledger_entry import EntryDirection, EntrySource
from ledgerbook.services.ledger_service import list_ledgers
from ledgerbook.services.posting_service import (
    get_or_create_ledger,
    increasing_direction,
    post_ledger_entry,
    reverse_posted_entries,
)
from ledgerbook.services.transaction_service import EntryFilter, list_entries
from tests.conftest import TENANT, day


def test_increasing_direction():
    assert increasing_direction(LedgerType.EXPENSE) == EntryDirection.DEBIT
    assert increasing_direction(LedgerType.INCOME) == EntryDirection.CREDIT
    assert increasing_direction(LedgerType.BANK) == EntryDirection.CREDIT


def test_get_or_create_ledger_reuses_existing(db, institute):
    created = get_or_create_ledger(db, TENANT, "Collections", "income", institute.id)
    db.commit()
    again = get_or_create_ledger(db, TENANT, "Collections", LedgerType.INCOME, institute.id)

    assert again.id == created.id
    assert list_ledgers(db, TENANT)[1] == 1


def test_get_or_create_ledger_type_mismatch(db, ledgers, institute):
    with pytest.raises(InvalidOperationError):
        get_or_create_ledger(db, TENANT, "Donations", LedgerType.EXPENSE, institute.id)


def test_post_ledger_entry_creates_ledger_on_first_use(db, institute):
    entry = post_ledger_entry(
        db, TENANT, "Monthly Subscription", LedgerType.INCOME, 250, "Family 12 - March",
        day(3), EntrySource.COLLECTION, reference_id="COL-12", institute_id=institute.id,
        payment_method="upi", reference_no="TXN991",
    )

    assert entry.credit == Decimal("250") and entry.debit == 0
    assert entry.ledger.name == "Monthly Subscription"
    assert entry.ledger.institute_id == institute.id
    assert entry.payment_method == "upi"


def test_reverse_posted_entries(db, institute):
    for month in (1, 2):
        post_ledger_entry(
            db, TENANT, "Staff Salary", LedgerType.EXPENSE, 1000, f"Salary part {month}",
            day(month), EntrySource.SALARY, reference_id="SAL-7", institute_id=institute.id,
        )

    reversals = reverse_posted_entries(db, TENANT, EntrySource.SALARY, "SAL-7", entry_date=day(9))
    assert len(reversals) == 2
    assert all(r.credit == Decimal("1000") for r in reversals)

    # Running it again finds nothing left to offset
    assert reverse_posted_entries(db, TENANT, EntrySource.SALARY, "SAL-7") == []

    entries = list_entries(db, TENANT, EntryFilter(source=EntrySource.SALARY)).all()
    net = sum((e.debit - e.credit for e in entries), Decimal("0"))
    assert net == 0
