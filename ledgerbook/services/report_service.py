from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ledgerbook.logger_config import logger
from ledgerbook.models.institute import Institute
from ledgerbook.models.ledger import Ledger, LedgerType
from ledgerbook.models.ledger_entry import EntrySource, LedgerEntry
from ledgerbook.services.institute_service import require_institute
from ledgerbook.services.ledger_service import get_ledger
from ledgerbook.services.transaction_service import (
    EntryFilter,
    apply_entry_filters,
    entry_amount,
    list_entries,
)
from ledgerbook.utils.accounting import ZERO, signed_amount, to_decimal, validate_date_range

UNCATEGORIZED = "Uncategorized"
UNASSIGNED = "Unassigned"


@dataclass(frozen=True)
class ReportScope:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    institute_id: Optional[str] = None

    def entry_filter(self, **overrides) -> EntryFilter:
        values = {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "institute_id": self.institute_id,
        }
        values.update(overrides)
        return EntryFilter(**values)


def _signed(entry: LedgerEntry) -> Decimal:
    return signed_amount(entry.ledger.type, entry.debit, entry.credit)


def _is_salary(entry: LedgerEntry) -> bool:
    return entry.source == EntrySource.SALARY


def _category_rows(entries: Iterable[LedgerEntry]) -> List[dict]:
    """Group entries by (ledger, category) with signed totals."""
    groups: Dict[tuple, dict] = {}
    for entry in entries:
        key = (entry.ledger_id, entry.category_id)
        row = groups.get(key)
        if row is None:
            row = groups[key] = {
                "ledger_id": entry.ledger_id,
                "ledger_name": entry.ledger.name,
                "category_id": entry.category_id,
                "category_name": entry.category.name if entry.category else UNCATEGORIZED,
                "total": ZERO,
                "count": 0,
            }
        row["total"] += _signed(entry)
        row["count"] += 1
    return sorted(groups.values(), key=lambda r: (r["ledger_name"], r["category_name"]))


def _ledger_groups(entries: Iterable[LedgerEntry]) -> List[dict]:
    """Group by ledger, then by category inside each ledger."""
    ledgers: Dict[str, dict] = {}
    for row in _category_rows(entries):
        ledger = ledgers.get(row["ledger_id"])
        if ledger is None:
            ledger = ledgers[row["ledger_id"]] = {
                "ledger_id": row["ledger_id"],
                "ledger_name": row["ledger_name"],
                "categories": [],
                "total": ZERO,
            }
        ledger["categories"].append({
            "category_id": row["category_id"],
            "category_name": row["category_name"],
            "total": row["total"],
            "count": row["count"],
        })
        ledger["total"] += row["total"]
    return sorted(ledgers.values(), key=lambda r: r["ledger_name"])


class ReportEngine:
    """
    Read-only accounting reports computed from the ledger entries of one tenant.

    Every report is recomputed from the store on each call; nothing is cached
    between calls and nothing is written.
    """

    def __init__(self, db: Session, tenant_id: str):
        self.db = db
        self.tenant_id = tenant_id

    # ================= HELPERS ===================

    def _check_scope(self, scope: ReportScope) -> None:
        validate_date_range(scope.start_date, scope.end_date)
        if scope.institute_id:
            require_institute(self.db, self.tenant_id, scope.institute_id)

    def _entries(self, scope: ReportScope, **overrides) -> List[LedgerEntry]:
        return list_entries(self.db, self.tenant_id, scope.entry_filter(**overrides)).all()

    def _bank_balances(self, scope: ReportScope) -> List[dict]:
        """
        Bank balances are cumulative: every bank entry up to end_date counts,
        including those before start_date.
        """
        bank_entries = self._entries(scope, start_date=None, ledger_type=LedgerType.BANK)
        balances: Dict[str, dict] = {}
        for entry in bank_entries:
            row = balances.get(entry.ledger_id)
            if row is None:
                row = balances[entry.ledger_id] = {
                    "ledger_id": entry.ledger_id,
                    "ledger_name": entry.ledger.name,
                    "institute_id": entry.institute_id,
                    "balance": ZERO,
                }
            row["balance"] += _signed(entry)
        return sorted(balances.values(), key=lambda r: r["ledger_name"])

    # ================= DAY BOOK ===================

    def day_book(self, scope: ReportScope) -> dict:
        self._check_scope(scope)

        total_income = ZERO
        total_expense = ZERO
        entries = []
        for entry in list_entries(self.db, self.tenant_id, scope.entry_filter()):
            ledger_type = entry.ledger.type
            if ledger_type == LedgerType.INCOME:
                total_income += to_decimal(entry.credit)
            if ledger_type == LedgerType.EXPENSE or _is_salary(entry):
                total_expense += to_decimal(entry.debit)

            entries.append({
                "id": entry.id,
                "date": entry.date,
                "description": entry.description,
                "ledger_id": entry.ledger_id,
                "ledger_name": entry.ledger.name,
                "ledger_type": ledger_type,
                "category_id": entry.category_id,
                "category_name": entry.category.name if entry.category else None,
                "institute_id": entry.institute_id,
                "institute_name": entry.institute.name if entry.institute else None,
                "debit": to_decimal(entry.debit),
                "credit": to_decimal(entry.credit),
                "amount": entry_amount(entry),
                "source": entry.source,
                "type": "salary" if _is_salary(entry) else ledger_type.value,
                "reference_id": entry.reference_id,
                "payment_method": entry.payment_method,
                "reference_no": entry.reference_no,
            })

        logger.debug(f"Day book for tenant {self.tenant_id}: {len(entries)} entries")
        return {
            "entries": entries,
            "summary": {
                "total_income": total_income,
                "total_expense": total_expense,
                "net_balance": total_income - total_expense,
                "total_entries": len(entries),
            },
        }

    # ================= TRIAL BALANCE ===================

    def trial_balance(self, scope: ReportScope) -> dict:
        self._check_scope(scope)

        query = self.db.query(
            Ledger.id,
            Ledger.name,
            Ledger.type,
            func.coalesce(func.sum(LedgerEntry.debit), 0),
            func.coalesce(func.sum(LedgerEntry.credit), 0),
            func.count(LedgerEntry.id),
        ).select_from(LedgerEntry).join(LedgerEntry.ledger)
        rows = (
            apply_entry_filters(query, self.tenant_id, scope.entry_filter())
            .group_by(Ledger.id, Ledger.name, Ledger.type)
            .all()
        )

        ledgers = sorted(
            (
                {
                    "ledger_id": ledger_id,
                    "ledger_name": name,
                    "type": ledger_type,
                    "debit": to_decimal(debit),
                    "credit": to_decimal(credit),
                    "transaction_count": count,
                }
                for ledger_id, name, ledger_type, debit, credit, count in rows
            ),
            key=lambda r: (r["type"].value, r["ledger_name"]),
        )

        total_debit = sum((r["debit"] for r in ledgers), ZERO)
        total_credit = sum((r["credit"] for r in ledgers), ZERO)
        if total_debit != total_credit:
            logger.debug(f"Trial balance for tenant {self.tenant_id} is off by {total_debit - total_credit}")

        return {
            "ledgers": ledgers,
            "totals": {
                "total_debit": total_debit,
                "total_credit": total_credit,
                "difference": total_debit - total_credit,
            },
        }

    # ================= LEDGER REPORT ===================

    def ledger_report(self, ledger_id: str, scope: ReportScope) -> dict:
        self._check_scope(scope)
        ledger = get_ledger(self.db, self.tenant_id, ledger_id)

        opening_balance = ZERO
        if scope.start_date:
            opening_rows = apply_entry_filters(
                self.db.query(
                    func.coalesce(func.sum(LedgerEntry.debit), 0),
                    func.coalesce(func.sum(LedgerEntry.credit), 0),
                ),
                self.tenant_id,
                EntryFilter(
                    ledger_id=ledger.id,
                    institute_id=scope.institute_id,
                    before_date=scope.start_date,
                ),
            ).first()
            opening_balance = signed_amount(ledger.type, opening_rows[0], opening_rows[1])

        running_balance = opening_balance
        total_debit = ZERO
        total_credit = ZERO
        entries = []
        for entry in list_entries(self.db, self.tenant_id, scope.entry_filter(ledger_id=ledger.id)):
            debit = to_decimal(entry.debit)
            credit = to_decimal(entry.credit)
            running_balance += signed_amount(ledger.type, debit, credit)
            total_debit += debit
            total_credit += credit
            entries.append({
                "id": entry.id,
                "date": entry.date,
                "description": entry.description,
                "category_id": entry.category_id,
                "category_name": entry.category.name if entry.category else None,
                "institute_id": entry.institute_id,
                "debit": debit,
                "credit": credit,
                "balance": running_balance,
                "source": entry.source,
                "reference_id": entry.reference_id,
                "payment_method": entry.payment_method,
                "reference_no": entry.reference_no,
            })

        return {
            "ledger": {"id": ledger.id, "name": ledger.name, "type": ledger.type},
            "opening_balance": opening_balance,
            "entries": entries,
            "total_debit": total_debit,
            "total_credit": total_credit,
            "closing_balance": running_balance,
        }

    # ================= BALANCE SHEET ===================

    def balance_sheet(self, scope: ReportScope) -> dict:
        self._check_scope(scope)
        entries = self._entries(scope)

        income_entries = [e for e in entries if e.ledger.type == LedgerType.INCOME]
        expense_entries = [
            e for e in entries if e.ledger.type == LedgerType.EXPENSE and not _is_salary(e)
        ]
        salary_entries = [
            e for e in entries if e.ledger.type == LedgerType.EXPENSE and _is_salary(e)
        ]

        bank_balances = self._bank_balances(scope)
        income_by_category = _category_rows(income_entries)
        expense_by_category = _category_rows(expense_entries)

        total_bank_balance = sum((r["balance"] for r in bank_balances), ZERO)
        total_income = sum((r["total"] for r in income_by_category), ZERO)
        total_expense = sum((r["total"] for r in expense_by_category), ZERO)
        salary_expense = sum((_signed(e) for e in salary_entries), ZERO)
        total_expense_with_salary = total_expense + salary_expense

        return {
            "bank_balances": bank_balances,
            "total_bank_balance": total_bank_balance,
            "income_by_category": income_by_category,
            "total_income": total_income,
            "expense_by_category": expense_by_category,
            "total_expense": total_expense,
            "salary_expense": salary_expense,
            "total_expense_with_salary": total_expense_with_salary,
            "net_balance": total_income - total_expense_with_salary,
        }

    # ================= INCOME & EXPENDITURE ===================

    def income_expenditure(self, scope: ReportScope) -> dict:
        self._check_scope(scope)
        entries = self._entries(scope)

        income = _ledger_groups(e for e in entries if e.ledger.type == LedgerType.INCOME)
        expenses = _ledger_groups(e for e in entries if e.ledger.type == LedgerType.EXPENSE)

        total_income = sum((g["total"] for g in income), ZERO)
        total_expense = sum((g["total"] for g in expenses), ZERO)

        return {
            "income": income,
            "expenses": expenses,
            "total_income": total_income,
            "total_expense": total_expense,
            "surplus": total_income - total_expense,
        }

    # ================= CONSOLIDATED ===================

    def consolidated_report(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
        """Balance-sheet figures per institute plus grand totals, always tenant-wide."""
        scope = ReportScope(start_date=start_date, end_date=end_date)
        self._check_scope(scope)

        rows: Dict[Optional[str], dict] = defaultdict(lambda: {
            "total_income": ZERO,
            "total_expense": ZERO,
            "bank_balance": ZERO,
            "transaction_count": 0,
        })

        for entry in self._entries(scope):
            row = rows[entry.institute_id]
            row["transaction_count"] += 1
            if entry.ledger.type == LedgerType.INCOME:
                row["total_income"] += _signed(entry)
            elif entry.ledger.type == LedgerType.EXPENSE:
                row["total_expense"] += _signed(entry)

        for bank in self._bank_balances(scope):
            rows[bank["institute_id"]]["bank_balance"] += bank["balance"]

        names = {
            institute_id: name
            for institute_id, name in self.db.query(Institute.id, Institute.name).filter(
                Institute.tenant_id == self.tenant_id,
                Institute.id.in_([i for i in rows if i is not None]),
            )
        } if rows else {}

        institutes = []
        for institute_id, row in rows.items():
            institutes.append({
                "institute_id": institute_id,
                "institute_name": names.get(institute_id, UNASSIGNED) if institute_id else UNASSIGNED,
                "total_income": row["total_income"],
                "total_expense": row["total_expense"],
                "net_balance": row["total_income"] - row["total_expense"],
                "bank_balance": row["bank_balance"],
                "transaction_count": row["transaction_count"],
            })
        institutes.sort(key=lambda r: (r["institute_id"] is None, r["institute_name"]))

        grand_income = sum((i["total_income"] for i in institutes), ZERO)
        grand_expense = sum((i["total_expense"] for i in institutes), ZERO)
        return {
            "institutes": institutes,
            "grand_totals": {
                "total_income": grand_income,
                "total_expense": grand_expense,
                "net_balance": grand_income - grand_expense,
                "bank_balance": sum((i["bank_balance"] for i in institutes), ZERO),
                "transaction_count": sum(i["transaction_count"] for i in institutes),
            },
        }
