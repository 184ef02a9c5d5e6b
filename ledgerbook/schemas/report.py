from decimal import Decimal
from pydantic import BaseModel
from typing import List, Optional
from datetime import date

from ledgerbook.models.ledger import LedgerType
from ledgerbook.models.ledger_entry import EntrySource

DateType = date

# ================= DAY BOOK ===================

class DayBookEntry(BaseModel):
    id: int
    date: DateType
    description: str
    ledger_id: str
    ledger_name: str
    ledger_type: LedgerType
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    institute_id: Optional[str] = None
    institute_name: Optional[str] = None
    debit: Decimal
    credit: Decimal
    amount: Decimal
    source: EntrySource
    type: str  # income / expense / bank / salary
    reference_id: Optional[str] = None
    payment_method: Optional[str] = None
    reference_no: Optional[str] = None


class DayBookSummary(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    total_entries: int


class DayBookResponse(BaseModel):
    entries: List[DayBookEntry]
    summary: DayBookSummary

# ================= TRIAL BALANCE ===================

class TrialBalanceRow(BaseModel):
    ledger_id: str
    ledger_name: str
    type: LedgerType
    debit: Decimal
    credit: Decimal
    transaction_count: int


class TrialBalanceTotals(BaseModel):
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal


class TrialBalanceResponse(BaseModel):
    ledgers: List[TrialBalanceRow]
    totals: TrialBalanceTotals

# ================= LEDGER REPORT ===================

class LedgerRef(BaseModel):
    id: str
    name: str
    type: LedgerType


class LedgerReportEntry(BaseModel):
    id: int
    date: DateType
    description: str
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    institute_id: Optional[str] = None
    debit: Decimal
    credit: Decimal
    balance: Decimal
    source: EntrySource
    reference_id: Optional[str] = None
    payment_method: Optional[str] = None
    reference_no: Optional[str] = None


class LedgerReportResponse(BaseModel):
    ledger: LedgerRef
    opening_balance: Decimal
    entries: List[LedgerReportEntry]
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal

# ================= BALANCE SHEET ===================

class BankBalanceRow(BaseModel):
    ledger_id: str
    ledger_name: str
    institute_id: Optional[str] = None
    balance: Decimal


class CategoryTotalRow(BaseModel):
    ledger_id: str
    ledger_name: str
    category_id: Optional[str] = None
    category_name: str
    total: Decimal
    count: int


class BalanceSheetResponse(BaseModel):
    bank_balances: List[BankBalanceRow]
    total_bank_balance: Decimal
    income_by_category: List[CategoryTotalRow]
    total_income: Decimal
    expense_by_category: List[CategoryTotalRow]
    total_expense: Decimal
    salary_expense: Decimal
    total_expense_with_salary: Decimal
    net_balance: Decimal

# ================= INCOME & EXPENDITURE ===================

class CategoryTotal(BaseModel):
    category_id: Optional[str] = None
    category_name: str
    total: Decimal
    count: int


class LedgerGroup(BaseModel):
    ledger_id: str
    ledger_name: str
    categories: List[CategoryTotal]
    total: Decimal


class IncomeExpenditureResponse(BaseModel):
    income: List[LedgerGroup]
    expenses: List[LedgerGroup]
    total_income: Decimal
    total_expense: Decimal
    surplus: Decimal

# ================= CONSOLIDATED ===================

class ConsolidatedInstituteRow(BaseModel):
    institute_id: Optional[str] = None
    institute_name: str
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    bank_balance: Decimal
    transaction_count: int


class ConsolidatedTotals(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    bank_balance: Decimal
    transaction_count: int


class ConsolidatedResponse(BaseModel):
    institutes: List[ConsolidatedInstituteRow]
    grand_totals: ConsolidatedTotals
