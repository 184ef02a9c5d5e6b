from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
from typing import Optional, List

from ledgerbook.common.exceptions import NotFoundError, ValidationError
from ledgerbook.models.institute import Institute
from ledgerbook.logger_config import logger


def get_institute_by_id(db: Session, tenant_id: str, institute_id: str) -> Optional[Institute]:
    """Get institute by ID within the tenant."""
    return (
        db.query(Institute)
        .filter(Institute.tenant_id == tenant_id, Institute.id == institute_id)
        .first()
    )


def institute_exists(db: Session, tenant_id: str, institute_id: str) -> bool:
    return get_institute_by_id(db, tenant_id, institute_id) is not None


def require_institute(db: Session, tenant_id: str, institute_id: str) -> Institute:
    institute = get_institute_by_id(db, tenant_id, institute_id)
    if not institute:
        raise NotFoundError(f"Institute {institute_id} not found")
    return institute


def get_all_institutes(
    db: Session,
    tenant_id: str,
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
) -> tuple[List[Institute], int]:
    """Get all institutes of the tenant with optional search."""
    query = db.query(Institute).filter(Institute.tenant_id == tenant_id)
    if search:
        term = f"%{search}%"
        query = query.filter(or_(Institute.name.ilike(term), Institute.id.ilike(term)))
    total = query.count()
    institutes = query.order_by(Institute.name).offset(skip).limit(limit).all()
    return institutes, total


def create_institute(db: Session, tenant_id: str, name: str) -> Institute:
    if not name or not name.strip():
        raise ValidationError("Institute name is required")
    institute = Institute(tenant_id=tenant_id, name=name.strip())
    db.add(institute)
    try:
        db.commit()
        db.refresh(institute)
        logger.info(f"Institute {institute.id} ({institute.name}) created for tenant {tenant_id}")
        return institute
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating institute: {e}")
        raise ValidationError("Failed to create institute.")
