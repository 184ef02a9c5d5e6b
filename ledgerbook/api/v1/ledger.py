from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from ledgerbook.common.exceptions import LedgerbookError
from ledgerbook.core.config import settings
from ledgerbook.core.dependencies import get_db, get_tenant_id
from ledgerbook.models.ledger import LedgerType
from ledgerbook.schemas.ledger import (
    CategoryCreate,
    CategoryListResponse,
    CategoryResponse,
    LedgerCreate,
    LedgerListResponse,
    LedgerResponse,
    LedgerUpdate,
)
from ledgerbook.services.ledger_service import (
    create_category,
    create_ledger,
    get_ledger,
    list_categories,
    list_ledgers,
    update_ledger,
)
from ledgerbook.logger_config import logger

router = APIRouter()


@router.get("", response_model=LedgerListResponse)
def get_ledgers(
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    search: Optional[str] = Query(None),
    institute_id: Optional[str] = Query(None),
    type: Optional[LedgerType] = Query(None),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """ Get all the Ledgers """
    try:
        ledgers, total = list_ledgers(
            db, tenant_id, institute_id=institute_id, type=type, search=search, skip=skip, limit=limit
        )
        return LedgerListResponse(
            total=total,
            ledgers=[LedgerResponse.model_validate(ledger) for ledger in ledgers],
        )
    except LedgerbookError:
        raise
    except Exception as e:
        logger.error(f"Error fetching ledgers: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch ledgers"
        )


@router.get("/{ledger_id}", response_model=LedgerResponse)
def get_ledger_route(
    ledger_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    return LedgerResponse.model_validate(get_ledger(db, tenant_id, ledger_id))


@router.post("", response_model=LedgerResponse, status_code=status.HTTP_201_CREATED)
def create_ledger_route(
    data: LedgerCreate,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """
    Create Ledger
    """
    try:
        ledger = create_ledger(
            db,
            tenant_id=tenant_id,
            name=data.name,
            type=data.type,
            institute_id=data.institute_id,
            description=data.description,
        )
        return LedgerResponse.model_validate(ledger)
    except LedgerbookError:
        raise
    except Exception as e:
        logger.error(f"Error creating ledger: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create ledger"
        )


@router.put("/{ledger_id}", response_model=LedgerResponse)
def update_ledger_route(
    ledger_id: str,
    data: LedgerUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """Rename a ledger. Changing its type is rejected."""
    try:
        ledger = update_ledger(
            db,
            tenant_id=tenant_id,
            ledger_id=ledger_id,
            name=data.name,
            description=data.description,
            type=data.type,
        )
        logger.info(f"Ledger {ledger_id} updated for tenant {tenant_id}")
        return LedgerResponse.model_validate(ledger)
    except LedgerbookError:
        raise
    except Exception as e:
        logger.error(f"Error updating ledger: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update ledger"
        )

# ==================== CATEGORIES ====================

@router.get("/{ledger_id}/categories", response_model=CategoryListResponse)
def get_categories(
    ledger_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    categories = list_categories(db, tenant_id, ledger_id)
    return CategoryListResponse(
        total=len(categories),
        categories=[CategoryResponse.model_validate(c) for c in categories],
    )


@router.post("/{ledger_id}/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category_route(
    ledger_id: str,
    data: CategoryCreate,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    try:
        category = create_category(db, tenant_id, ledger_id, data.name, description=data.description)
        return CategoryResponse.model_validate(category)
    except LedgerbookError:
        raise
    except Exception as e:
        logger.error(f"Error creating category: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create category",
        )
