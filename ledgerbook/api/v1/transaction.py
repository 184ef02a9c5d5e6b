from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from ledgerbook.common.exceptions import LedgerbookError
from ledgerbook.core.config import settings
from ledgerbook.core.dependencies import get_db, get_tenant_id
from ledgerbook.models.ledger_entry import EntrySource
from ledgerbook.schemas.transaction import (
    EntryCreate,
    EntryDeleteResponse,
    EntryListResponse,
    EntryResponse,
    EntryReverse,
    EntryUpdate,
)
from ledgerbook.services.transaction_service import (
    EntryFilter,
    delete_manual_entry,
    get_entries_page,
    get_entry,
    record_entry,
    reverse_entry,
    update_manual_entry,
)
from ledgerbook.logger_config import logger

router = APIRouter()


@router.get("", response_model=EntryListResponse)
def list_transactions(
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    search: Optional[str] = Query(None),
    ledger_id: Optional[str] = Query(None),
    institute_id: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    source: Optional[EntrySource] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """Ledger entries in date order with debit/credit totals for the filtered set."""
    try:
        rows, count, totals = get_entries_page(
            db,
            tenant_id,
            EntryFilter(
                ledger_id=ledger_id,
                institute_id=institute_id,
                category_id=category_id,
                source=source,
                start_date=start_date,
                end_date=end_date,
                search=search,
            ),
            skip=skip,
            limit=limit,
        )
        return EntryListResponse(
            data=[EntryResponse.model_validate(r) for r in rows],
            count=count,
            total_dic=totals,
        )
    except LedgerbookError:
        raise
    except Exception:
        logger.exception("Error fetching ledger entries")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch ledger entries",
        )


@router.get("/{entry_id}", response_model=EntryResponse)
def get_transaction(
    entry_id: int,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    return EntryResponse.model_validate(get_entry(db, tenant_id, entry_id))


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    data: EntryCreate,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """Record one entry. Salary and collection flows post here with their own source."""
    try:
        entry = record_entry(
            db,
            tenant_id=tenant_id,
            ledger_id=data.ledger_id,
            entry_date=data.date,
            description=data.description,
            amount=data.amount,
            direction=data.direction,
            source=data.source,
            category_id=data.category_id,
            reference_id=data.reference_id,
            institute_id=data.institute_id,
            payment_method=data.payment_method,
            reference_no=data.reference_no,
        )
        return EntryResponse.model_validate(entry)
    except LedgerbookError:
        raise
    except Exception:
        logger.exception("Error recording ledger entry")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record ledger entry",
        )


@router.put("/{entry_id}", response_model=EntryResponse)
def update_transaction(
    entry_id: int,
    data: EntryUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """Edit a manual entry. Entries posted by other flows are rejected."""
    try:
        entry = update_manual_entry(
            db,
            tenant_id=tenant_id,
            entry_id=entry_id,
            entry_date=data.date,
            description=data.description,
            amount=data.amount,
            direction=data.direction,
            category_id=data.category_id,
            payment_method=data.payment_method,
            reference_no=data.reference_no,
        )
        return EntryResponse.model_validate(entry)
    except LedgerbookError:
        raise
    except Exception:
        logger.exception("Error updating ledger entry")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update ledger entry",
        )


@router.delete("/{entry_id}", response_model=EntryDeleteResponse)
def delete_transaction(
    entry_id: int,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    try:
        delete_manual_entry(db, tenant_id, entry_id)
        return EntryDeleteResponse(message="Ledger entry deleted successfully")
    except LedgerbookError:
        raise
    except Exception:
        logger.exception("Error deleting ledger entry")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete ledger entry",
        )


@router.post("/{entry_id}/reverse", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
def reverse_transaction(
    entry_id: int,
    data: Optional[EntryReverse] = None,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """Post the offsetting entry for an existing one."""
    data = data or EntryReverse()
    try:
        entry = reverse_entry(db, tenant_id, entry_id, entry_date=data.date, description=data.description)
        return EntryResponse.model_validate(entry)
    except LedgerbookError:
        raise
    except Exception:
        logger.exception("Error reversing ledger entry")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reverse ledger entry",
        )
