import pytest

from ledgerbook.common.exceptions import InvalidOperationError, NotFoundError, ValidationError
from ledgerbook.models.ledger import LedgerType
from ledgerbook.services.ledger_service import (
    create_category,
    create_ledger,
    get_ledger,
    list_categories,
    list_ledgers,
    update_ledger,
)
from tests.conftest import OTHER_TENANT, TENANT


def test_create_ledger_accepts_string_type(db, institute):
    ledger = create_ledger(db, TENANT, "  Zakat Fund ", "Income", institute_id=institute.id)

    assert ledger.id.startswith("LED-")
    assert ledger.name == "Zakat Fund"
    assert ledger.type == LedgerType.INCOME
    assert ledger.institute_id == institute.id


def test_create_ledger_rejects_missing_name_and_bad_type(db):
    with pytest.raises(ValidationError):
        create_ledger(db, TENANT, "   ", LedgerType.BANK)
    with pytest.raises(ValidationError):
        create_ledger(db, TENANT, "Assets", "asset")
    with pytest.raises(ValidationError):
        create_ledger(db, TENANT, "Assets", None)


def test_create_ledger_unknown_institute(db):
    with pytest.raises(NotFoundError):
        create_ledger(db, TENANT, "Donations", LedgerType.INCOME, institute_id="INS-MISSING")


def test_ledger_name_unique_per_scope(db, institute, second_institute):
    create_ledger(db, TENANT, "Donations", LedgerType.INCOME, institute_id=institute.id)

    with pytest.raises(ValidationError):
        create_ledger(db, TENANT, "Donations", LedgerType.INCOME, institute_id=institute.id)

    # Same name is fine in another institute, tenant-wide, or another tenant
    create_ledger(db, TENANT, "Donations", LedgerType.INCOME, institute_id=second_institute.id)
    create_ledger(db, TENANT, "Donations", LedgerType.INCOME)
    create_ledger(db, OTHER_TENANT, "Donations", LedgerType.INCOME)

    with pytest.raises(ValidationError):
        create_ledger(db, TENANT, "Donations", LedgerType.EXPENSE)


def test_ledger_type_is_immutable(db, ledgers):
    bank = ledgers["bank"]

    with pytest.raises(InvalidOperationError):
        update_ledger(db, TENANT, bank.id, type=LedgerType.INCOME)

    renamed = update_ledger(db, TENANT, bank.id, name="Savings Account", type="bank")
    assert renamed.name == "Savings Account"
    assert renamed.type == LedgerType.BANK


def test_rename_to_existing_name_fails(db, ledgers):
    with pytest.raises(ValidationError):
        update_ledger(db, TENANT, ledgers["bank"].id, name="Donations")


def test_list_ledgers_filters(db, institute, ledgers):
    create_ledger(db, TENANT, "Tenant Bank", LedgerType.BANK)

    all_ledgers, total = list_ledgers(db, TENANT)
    assert total == 4

    banks, total = list_ledgers(db, TENANT, type="bank")
    assert total == 2
    assert {l.name for l in banks} == {"Bank Account", "Tenant Bank"}

    scoped, total = list_ledgers(db, TENANT, institute_id=institute.id, type=LedgerType.BANK)
    assert [l.name for l in scoped] == ["Bank Account"]

    found, total = list_ledgers(db, TENANT, search="donat")
    assert [l.name for l in found] == ["Donations"]


def test_ledgers_are_tenant_scoped(db, ledgers):
    with pytest.raises(NotFoundError):
        get_ledger(db, OTHER_TENANT, ledgers["bank"].id)

    other, total = list_ledgers(db, OTHER_TENANT)
    assert other == [] and total == 0


def test_categories(db, ledgers):
    income = ledgers["income"]
    create_category(db, TENANT, income.id, "Friday Collection")
    create_category(db, TENANT, income.id, "Building Fund")

    with pytest.raises(ValidationError):
        create_category(db, TENANT, income.id, "Friday Collection")

    names = [c.name for c in list_categories(db, TENANT, income.id)]
    assert names == ["Building Fund", "Friday Collection"]
    assert list_categories(db, TENANT, ledgers["bank"].id) == []


def test_category_on_unknown_ledger(db):
    with pytest.raises(NotFoundError):
        create_category(db, TENANT, "LED-MISSING", "Anything")
    with pytest.raises(NotFoundError):
        list_categories(db, TENANT, "LED-MISSING")


def test_list_ledgers_unknown_institute(db, ledgers):
    with pytest.raises(NotFoundError):
        list_ledgers(db, TENANT, institute_id="INS-MISSING")
    with pytest.raises(NotFoundError):
        list_ledgers(db, OTHER_TENANT, institute_id=ledgers["bank"].institute_id)
