from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from ledgerbook.models.petty_cash import FundStatus, PettyCashTransactionType

DateType = date


class FundCreate(BaseModel):
    institute_id: str = Field(..., min_length=1)
    custodian_name: str = Field(..., min_length=1, max_length=200)
    float_amount: Decimal = Field(..., gt=0)
    date: Optional[DateType] = None  # default to today in service


class FundUpdate(BaseModel):
    custodian_name: Optional[str] = Field(None, min_length=1, max_length=200)


class FundInstituteRef(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class FundResponse(BaseModel):
    id: str
    institute_id: str
    custodian_name: str
    float_amount: Decimal
    current_balance: Decimal
    status: FundStatus
    created_at: datetime
    institute: Optional[FundInstituteRef] = None

    class Config:
        from_attributes = True


class FundListResponse(BaseModel):
    total: int
    funds: List[FundResponse]


class PettyCashExpenseCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    receipt_no: Optional[str] = Field(None, max_length=50)
    date: Optional[DateType] = None


class ReplenishRequest(BaseModel):
    date: Optional[DateType] = None


class PettyCashTransactionResponse(BaseModel):
    id: int
    fund_id: str
    type: PettyCashTransactionType
    amount: Decimal
    description: str
    receipt_no: Optional[str] = None
    date: DateType
    ledger_entry_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PettyCashTransactionListResponse(BaseModel):
    total: int
    transactions: List[PettyCashTransactionResponse]
