from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from ledgerbook.models.ledger import LedgerType


class LedgerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: LedgerType
    institute_id: Optional[str] = None
    description: Optional[str] = None


class LedgerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    # Accepted only so a changed type can be rejected explicitly
    type: Optional[LedgerType] = None


class LedgerResponse(BaseModel):
    id: str
    name: str
    type: LedgerType
    institute_id: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerListResponse(BaseModel):
    total: int
    ledgers: List[LedgerResponse]


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    id: str
    ledger_id: str
    name: str
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CategoryListResponse(BaseModel):
    total: int
    categories: List[CategoryResponse]
