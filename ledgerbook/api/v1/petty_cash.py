from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional

from ledgerbook.common.exceptions import LedgerbookError
from ledgerbook.core.dependencies import get_petty_cash_manager
from ledgerbook.models.petty_cash import FundStatus
from ledgerbook.schemas.petty_cash import (
    FundCreate,
    FundListResponse,
    FundResponse,
    FundUpdate,
    PettyCashExpenseCreate,
    PettyCashTransactionListResponse,
    PettyCashTransactionResponse,
    ReplenishRequest,
)
from ledgerbook.services.petty_cash_service import PettyCashManager
from ledgerbook.logger_config import logger

router = APIRouter()


@router.get("", response_model=FundListResponse)
def list_funds(
    institute_id: Optional[str] = Query(None),
    fund_status: Optional[FundStatus] = Query(None, alias="status"),
    manager: PettyCashManager = Depends(get_petty_cash_manager),
):
    funds = manager.list_funds(institute_id=institute_id, status=fund_status)
    return FundListResponse(total=len(funds), funds=[FundResponse.model_validate(f) for f in funds])


@router.get("/{fund_id}", response_model=FundResponse)
def get_fund(
    fund_id: str,
    manager: PettyCashManager = Depends(get_petty_cash_manager),
):
    return FundResponse.model_validate(manager.get_fund(fund_id))


@router.post("", response_model=FundResponse, status_code=status.HTTP_201_CREATED)
def create_fund(
    data: FundCreate,
    manager: PettyCashManager = Depends(get_petty_cash_manager),
):
    """Issue a petty cash float to a custodian."""
    try:
        fund = manager.create_fund(
            institute_id=data.institute_id,
            custodian_name=data.custodian_name,
            float_amount=data.float_amount,
            fund_date=data.date,
        )
        return FundResponse.model_validate(fund)
    except LedgerbookError:
        raise
    except Exception:
        logger.exception("Error creating petty cash fund")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create petty cash fund",
        )


@router.put("/{fund_id}", response_model=FundResponse)
def update_fund(
    fund_id: str,
    data: FundUpdate,
    manager: PettyCashManager = Depends(get_petty_cash_manager),
):
    return FundResponse.model_validate(manager.update_fund(fund_id, custodian_name=data.custodian_name))


@router.post("/{fund_id}/close", response_model=FundResponse)
def close_fund(
    fund_id: str,
    manager: PettyCashManager = Depends(get_petty_cash_manager),
):
    return FundResponse.model_validate(manager.close_fund(fund_id))


@router.get("/{fund_id}/transactions", response_model=PettyCashTransactionListResponse)
def list_fund_transactions(
    fund_id: str,
    manager: PettyCashManager = Depends(get_petty_cash_manager),
):
    transactions = manager.list_transactions(fund_id)
    return PettyCashTransactionListResponse(
        total=len(transactions),
        transactions=[PettyCashTransactionResponse.model_validate(t) for t in transactions],
    )


@router.post(
    "/{fund_id}/expenses",
    response_model=PettyCashTransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def record_expense(
    fund_id: str,
    data: PettyCashExpenseCreate,
    manager: PettyCashManager = Depends(get_petty_cash_manager),
):
    """Spend from the fund. Nothing reaches the ledger until replenishment."""
    try:
        txn = manager.record_expense(
            fund_id,
            amount=data.amount,
            description=data.description,
            receipt_no=data.receipt_no,
            expense_date=data.date,
        )
        return PettyCashTransactionResponse.model_validate(txn)
    except LedgerbookError:
        raise
    except Exception:
        logger.exception("Error recording petty cash expense")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record petty cash expense",
        )


@router.post("/{fund_id}/replenish", response_model=PettyCashTransactionResponse)
def replenish(
    fund_id: str,
    data: Optional[ReplenishRequest] = None,
    manager: PettyCashManager = Depends(get_petty_cash_manager),
):
    """Restore the fund to its float and post the spent amount to the ledger."""
    data = data or ReplenishRequest()
    try:
        return PettyCashTransactionResponse.model_validate(
            manager.replenish(fund_id, replenish_date=data.date)
        )
    except LedgerbookError:
        raise
    except Exception:
        logger.exception("Error replenishing petty cash fund")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to replenish petty cash fund",
        )
