from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from ledgerbook.common.exceptions import LedgerbookError
from ledgerbook.core.dependencies import get_db, get_tenant_id
from ledgerbook.schemas.institute import InstituteCreate, InstituteListResponse, InstituteResponse
from ledgerbook.services.institute_service import create_institute, get_all_institutes
from ledgerbook.logger_config import logger

router = APIRouter()


@router.get("", response_model=InstituteListResponse)
def list_institutes(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    search: Optional[str] = Query(None),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """Institutes of the tenant (used to scope reports and petty cash funds)."""
    try:
        institutes, total = get_all_institutes(db, tenant_id, skip=skip, limit=limit, search=search)
        return InstituteListResponse(
            total=total,
            institutes=[InstituteResponse.model_validate(i) for i in institutes],
        )
    except Exception as e:
        logger.error(f"Error fetching institutes: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch institutes",
        )


@router.post("", response_model=InstituteResponse, status_code=status.HTTP_201_CREATED)
def create_institute_route(
    data: InstituteCreate,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    try:
        return InstituteResponse.model_validate(create_institute(db, tenant_id, data.name))
    except LedgerbookError:
        raise
    except Exception as e:
        logger.error(f"Error creating institute: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create institute",
        )
