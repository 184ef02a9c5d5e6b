from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from ledgerbook.models.ledger_entry import EntryDirection, EntrySource

# Alias to avoid field name 'date' shadowing type 'date' in annotations (Pydantic v2)
DateType = date


class EntryCreate(BaseModel):
    """Manual entries by default; salary/collection collaborators pass their own source."""
    ledger_id: str = Field(..., min_length=1)
    category_id: Optional[str] = None
    date: DateType
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    direction: EntryDirection
    source: EntrySource = EntrySource.MANUAL
    reference_id: Optional[str] = Field(None, max_length=30)
    institute_id: Optional[str] = None
    payment_method: Optional[str] = Field(None, max_length=30)
    reference_no: Optional[str] = Field(None, max_length=50)


class EntryUpdate(BaseModel):
    date: Optional[DateType] = None
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[Decimal] = Field(None, gt=0)
    direction: Optional[EntryDirection] = None
    category_id: Optional[str] = None
    payment_method: Optional[str] = Field(None, max_length=30)
    reference_no: Optional[str] = Field(None, max_length=50)


class EntryReverse(BaseModel):
    date: Optional[DateType] = None
    description: Optional[str] = None


class EntryResponse(BaseModel):
    id: int
    ledger_id: str
    category_id: Optional[str] = None
    institute_id: Optional[str] = None
    date: DateType
    description: str
    debit: Decimal
    credit: Decimal
    source: EntrySource
    reference_id: Optional[str] = None
    payment_method: Optional[str] = None
    reference_no: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class EntryDeleteResponse(BaseModel):
    message: str


class EntryListResponse(BaseModel):
    data: List[EntryResponse]
    count: int
    total_dic: dict
