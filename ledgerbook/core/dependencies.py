from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ledgerbook.core.database import SessionLocal
from ledgerbook.services.petty_cash_service import PettyCashManager
from ledgerbook.services.report_service import ReportEngine


def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_tenant_id(x_tenant_id: str = Header(..., alias="X-Tenant-ID")) -> str:
    """
    Tenant of the current request.
    The tenant-resolution middleware in front of this service sets the header
    after authenticating the caller; every query below is scoped to it.
    """
    tenant_id = x_tenant_id.strip()
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header is required",
        )
    return tenant_id


def get_report_engine(
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ReportEngine:
    return ReportEngine(db, tenant_id)


def get_petty_cash_manager(
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> PettyCashManager:
    return PettyCashManager(db, tenant_id)
