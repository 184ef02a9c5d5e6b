from datetime import date
from fastapi import APIRouter, Depends, Query
from typing import Optional

from ledgerbook.core.dependencies import get_report_engine
from ledgerbook.schemas.report import (
    BalanceSheetResponse,
    ConsolidatedResponse,
    DayBookResponse,
    IncomeExpenditureResponse,
    LedgerReportResponse,
    TrialBalanceResponse,
)
from ledgerbook.services.report_service import ReportEngine, ReportScope

router = APIRouter()


def get_scope(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    institute_id: Optional[str] = Query(None),
) -> ReportScope:
    return ReportScope(start_date=start_date, end_date=end_date, institute_id=institute_id)


@router.get("/day-book", response_model=DayBookResponse)
def day_book(
    scope: ReportScope = Depends(get_scope),
    engine: ReportEngine = Depends(get_report_engine),
):
    """Chronological list of all entries in the range."""
    return DayBookResponse.model_validate(engine.day_book(scope))


@router.get("/trial-balance", response_model=TrialBalanceResponse)
def trial_balance(
    scope: ReportScope = Depends(get_scope),
    engine: ReportEngine = Depends(get_report_engine),
):
    """Debit and credit totals per ledger. An unbalanced result is reported as-is."""
    return TrialBalanceResponse.model_validate(engine.trial_balance(scope))


@router.get("/ledger-report", response_model=LedgerReportResponse)
def ledger_report(
    ledger_id: str = Query(...),
    scope: ReportScope = Depends(get_scope),
    engine: ReportEngine = Depends(get_report_engine),
):
    """Statement of one ledger with opening, running and closing balance."""
    return LedgerReportResponse.model_validate(engine.ledger_report(ledger_id, scope))


@router.get("/balance-sheet", response_model=BalanceSheetResponse)
def balance_sheet(
    scope: ReportScope = Depends(get_scope),
    engine: ReportEngine = Depends(get_report_engine),
):
    return BalanceSheetResponse.model_validate(engine.balance_sheet(scope))


@router.get("/income-expenditure", response_model=IncomeExpenditureResponse)
def income_expenditure(
    scope: ReportScope = Depends(get_scope),
    engine: ReportEngine = Depends(get_report_engine),
):
    return IncomeExpenditureResponse.model_validate(engine.income_expenditure(scope))


@router.get("/consolidated", response_model=ConsolidatedResponse)
def consolidated(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    engine: ReportEngine = Depends(get_report_engine),
):
    """Per-institute figures and grand totals for the whole tenant."""
    return ConsolidatedResponse.model_validate(engine.consolidated_report(start_date, end_date))
