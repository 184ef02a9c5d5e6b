from decimal import Decimal

import pytest

from ledgerbook.common.exceptions import NotFoundError, ValidationError
from ledgerbook.models.ledger import LedgerType
from ledgerbook.models.ledger_entry import EntrySource
from ledgerbook.services.ledger_service import create_category, create_ledger
from ledgerbook.services.posting_service import post_ledger_entry
from ledgerbook.services.report_service import ReportEngine, ReportScope
from ledgerbook.services.transaction_service import record_entry
from ledgerbook.utils.accounting import signed_amount
from tests.conftest import TENANT, day


@pytest.fixture
def engine_(db):
    return ReportEngine(db, TENANT)


@pytest.fixture
def books(db, institute, ledgers):
    """A month of activity: donations, repairs, a refund, salary and bank movements."""
    friday = create_category(db, TENANT, ledgers["income"].id, "Friday Collection")
    repairs = create_category(db, TENANT, ledgers["expense"].id, "Repairs")

    record_entry(db, TENANT, ledgers["bank"].id, day(1), "Opening balance", 10000, "credit")
    record_entry(db, TENANT, ledgers["income"].id, day(2), "Friday", 3000, "credit", category_id=friday.id)
    record_entry(db, TENANT, ledgers["income"].id, day(3), "Walk-in donation", 500, "credit")
    record_entry(db, TENANT, ledgers["expense"].id, day(4), "Roof", 1200, "debit", category_id=repairs.id)
    record_entry(db, TENANT, ledgers["expense"].id, day(5), "Roof refund", 200, "credit", category_id=repairs.id)
    record_entry(db, TENANT, ledgers["bank"].id, day(6), "Cash withdrawal", 700, "debit")
    post_ledger_entry(
        db, TENANT, "Staff Salary", LedgerType.EXPENSE, 2500, "Imam salary", day(28),
        EntrySource.SALARY, reference_id="SAL-1", institute_id=institute.id,
    )
    return {"friday": friday, "repairs": repairs}


def test_ledger_report_running_balance(db, engine_, ledgers):
    bank = ledgers["bank"].id
    record_entry(db, TENANT, bank, day(1), "Opening", 10000, "credit")
    record_entry(db, TENANT, bank, day(2), "Deposit", 2000, "credit")
    record_entry(db, TENANT, bank, day(5), "Cheque", 500, "debit")

    report = engine_.ledger_report(bank, ReportScope(start_date=day(2), end_date=day(31)))

    assert report["opening_balance"] == Decimal("10000")
    assert [e["balance"] for e in report["entries"]] == [Decimal("12000"), Decimal("11500")]
    assert report["closing_balance"] == Decimal("11500")
    assert report["total_debit"] == Decimal("500")
    assert report["total_credit"] == Decimal("2000")
    assert report["ledger"]["type"] == LedgerType.BANK


@pytest.mark.parametrize("kind", ["bank", "income", "expense"])
def test_ledger_report_closing_matches_opening_plus_signed_entries(engine_, books, ledgers, kind):
    ledger = ledgers[kind]
    report = engine_.ledger_report(ledger.id, ReportScope(start_date=day(2), end_date=day(5)))

    signed = sum(
        (signed_amount(ledger.type, e["debit"], e["credit"]) for e in report["entries"]),
        Decimal("0"),
    )
    assert report["closing_balance"] == report["opening_balance"] + signed


def test_expense_ledger_refund_reduces_balance(engine_, books, ledgers):
    report = engine_.ledger_report(ledgers["expense"].id, ReportScope())

    assert report["opening_balance"] == 0
    assert [e["balance"] for e in report["entries"]] == [Decimal("1200"), Decimal("1000")]


def test_ledger_report_unknown_ledger(engine_):
    with pytest.raises(NotFoundError):
        engine_.ledger_report("LED-MISSING", ReportScope())


def test_trial_balance_totals_match_entries(engine_, books):
    report = engine_.trial_balance(ReportScope())
    rows = {r["ledger_name"]: r for r in report["ledgers"]}

    assert rows["Bank Account"]["debit"] == Decimal("700")
    assert rows["Bank Account"]["credit"] == Decimal("10000")
    assert rows["Maintenance"]["transaction_count"] == 2
    assert rows["Staff Salary"]["type"] == LedgerType.EXPENSE

    day_book = engine_.day_book(ReportScope())
    assert report["totals"]["total_debit"] == sum(e["debit"] for e in day_book["entries"])
    assert report["totals"]["total_credit"] == sum(e["credit"] for e in day_book["entries"])
    assert sum(r["transaction_count"] for r in report["ledgers"]) == len(day_book["entries"])


def test_trial_balance_reports_imbalance(engine_, books):
    totals = engine_.trial_balance(ReportScope())["totals"]

    # Single-sided entries never balance; the difference is reported, not rejected
    assert totals["total_debit"] == Decimal("4400")
    assert totals["total_credit"] == Decimal("13700")
    assert totals["difference"] == Decimal("-9300")


def test_day_book_types_and_summary(engine_, books):
    report = engine_.day_book(ReportScope(start_date=day(2), end_date=day(31)))
    types = [e["type"] for e in report["entries"]]

    assert types == ["income", "income", "expense", "expense", "bank", "salary"]
    summary = report["summary"]
    assert summary["total_income"] == Decimal("3500")
    assert summary["total_expense"] == Decimal("3700")
    assert summary["net_balance"] == Decimal("-200")
    assert summary["total_entries"] == 6


def test_balance_sheet_keeps_salary_separate(engine_, books):
    report = engine_.balance_sheet(ReportScope())

    assert report["total_bank_balance"] == Decimal("9300")
    assert report["total_income"] == Decimal("3500")
    assert {r["category_name"]: r["total"] for r in report["income_by_category"]} == {
        "Friday Collection": Decimal("3000"),
        "Uncategorized": Decimal("500"),
    }
    assert report["total_expense"] == Decimal("1000")
    assert report["salary_expense"] == Decimal("2500")
    assert report["total_expense_with_salary"] == Decimal("3500")
    assert report["net_balance"] == report["total_income"] - report["total_expense_with_salary"]


def test_balance_sheet_bank_balance_is_cumulative(engine_, books):
    report = engine_.balance_sheet(ReportScope(start_date=day(10), end_date=day(31)))

    assert report["total_bank_balance"] == Decimal("9300")
    assert report["total_income"] == 0
    assert report["salary_expense"] == Decimal("2500")


def test_income_expenditure_groups_by_ledger_then_category(engine_, books):
    report = engine_.income_expenditure(ReportScope())

    assert [g["ledger_name"] for g in report["income"]] == ["Donations"]
    assert [g["ledger_name"] for g in report["expenses"]] == ["Maintenance", "Staff Salary"]
    maintenance = report["expenses"][0]
    assert maintenance["categories"][0]["category_name"] == "Repairs"
    assert maintenance["total"] == Decimal("1000")
    assert report["total_income"] == Decimal("3500")
    assert report["total_expense"] == Decimal("3500")
    assert report["surplus"] == 0


def test_deficit_is_not_an_error(db, engine_, ledgers):
    record_entry(db, TENANT, ledgers["expense"].id, day(1), "Generator", 900, "debit")

    report = engine_.income_expenditure(ReportScope())
    assert report["surplus"] == Decimal("-900")


def test_consolidated_report(db, engine_, books, second_institute):
    north_bank = create_ledger(db, TENANT, "Bank Account", LedgerType.BANK, institute_id=second_institute.id)
    north_income = create_ledger(db, TENANT, "Donations", LedgerType.INCOME, institute_id=second_institute.id)
    tenant_income = create_ledger(db, TENANT, "Head Office Grants", LedgerType.INCOME)
    record_entry(db, TENANT, north_bank.id, day(3), "Deposit", 4000, "credit")
    record_entry(db, TENANT, north_income.id, day(3), "Donation", 1500, "credit")
    record_entry(db, TENANT, tenant_income.id, day(3), "Grant", 100, "credit")

    report = engine_.consolidated_report()
    rows = [r["institute_name"] for r in report["institutes"]]
    assert rows == ["Central Mahallu", "North Madrasa", "Unassigned"]

    central, north, unassigned = report["institutes"]
    assert central["total_income"] == Decimal("3500")
    assert central["total_expense"] == Decimal("3500")
    assert central["bank_balance"] == Decimal("9300")
    assert central["transaction_count"] == 7
    assert north["net_balance"] == Decimal("1500")
    assert unassigned["institute_id"] is None

    totals = report["grand_totals"]
    assert totals["total_income"] == Decimal("5100")
    assert totals["bank_balance"] == Decimal("13300")
    assert totals["transaction_count"] == 10


def test_institute_scope(engine_, books, second_institute):
    scoped = engine_.balance_sheet(ReportScope(institute_id=second_institute.id))

    assert scoped["total_income"] == 0
    assert scoped["bank_balances"] == []


def test_empty_reports_are_zeroed(engine_):
    scope = ReportScope(start_date=day(1), end_date=day(31))

    assert engine_.day_book(scope)["summary"]["total_entries"] == 0
    assert engine_.trial_balance(scope) == {
        "ledgers": [],
        "totals": {"total_debit": 0, "total_credit": 0, "difference": 0},
    }
    sheet = engine_.balance_sheet(scope)
    assert sheet["income_by_category"] == [] and sheet["net_balance"] == 0
    assert engine_.consolidated_report()["institutes"] == []


def test_unknown_institute_and_bad_range(engine_):
    with pytest.raises(NotFoundError):
        engine_.day_book(ReportScope(institute_id="INS-MISSING"))
    with pytest.raises(ValidationError):
        engine_.trial_balance(ReportScope(start_date=day(5), end_date=day(1)))
