from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
from typing import Optional, List, Union

from ledgerbook.common.exceptions import InvalidOperationError, NotFoundError, ValidationError
from ledgerbook.models.ledger import Category, Ledger, LedgerType
from ledgerbook.services.institute_service import require_institute
from ledgerbook.logger_config import logger

# ==================== HELPERS ====================

def coerce_ledger_type(value: Union[LedgerType, str, None]) -> LedgerType:
    """Accept a LedgerType or its string value ("income", "EXPENSE"...)."""
    if isinstance(value, LedgerType):
        return value
    if value is None or not str(value).strip():
        raise ValidationError("Ledger type is required")
    try:
        return LedgerType(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(t.value for t in LedgerType)
        raise ValidationError(f"Invalid ledger type '{value}'. Allowed: {allowed}")


def _clean_name(name: Optional[str], label: str) -> str:
    if name is None or not name.strip():
        raise ValidationError(f"{label} name is required")
    return name.strip()

# ==================== LEDGER QUERIES ====================

def get_ledger_by_id(db: Session, tenant_id: str, ledger_id: str) -> Optional[Ledger]:
    return (
        db.query(Ledger)
        .filter(Ledger.tenant_id == tenant_id, Ledger.id == ledger_id)
        .first()
    )


def get_ledger(db: Session, tenant_id: str, ledger_id: str) -> Ledger:
    """Get ledger by ID, raising NotFoundError when it is unknown to the tenant."""
    ledger = get_ledger_by_id(db, tenant_id, ledger_id)
    if not ledger:
        raise NotFoundError(f"Ledger {ledger_id} not found")
    return ledger


def get_ledger_by_name(
    db: Session,
    tenant_id: str,
    name: str,
    institute_id: Optional[str] = None,
) -> Optional[Ledger]:
    """Get ledger by name inside one scope: an institute, or tenant-wide when institute_id is None."""
    query = db.query(Ledger).filter(Ledger.tenant_id == tenant_id, Ledger.name == name)
    if institute_id is None:
        query = query.filter(Ledger.institute_id.is_(None))
    else:
        query = query.filter(Ledger.institute_id == institute_id)
    return query.first()


def list_ledgers(
    db: Session,
    tenant_id: str,
    institute_id: Optional[str] = None,
    type: Optional[Union[LedgerType, str]] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: Optional[int] = None,
) -> tuple[List[Ledger], int]:
    """ Get all Ledgers with optional filteration """
    query = db.query(Ledger).filter(Ledger.tenant_id == tenant_id)

    if institute_id:
        require_institute(db, tenant_id, institute_id)
        query = query.filter(Ledger.institute_id == institute_id)

    if type:
        query = query.filter(Ledger.type == coerce_ledger_type(type))

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Ledger.name.ilike(search_term),
                Ledger.id.ilike(search_term)
            )
        )

    count = query.count()
    query = query.order_by(Ledger.name).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all(), count

# ==================== LEDGER COMMANDS ====================

def create_ledger(
    db: Session,
    tenant_id: str,
    name: str,
    type: Union[LedgerType, str],
    institute_id: Optional[str] = None,
    description: Optional[str] = None,
    commit: bool = True,
) -> Ledger:
    """Create a new ledger, tenant-wide or scoped to one institute."""
    name = _clean_name(name, "Ledger")
    ledger_type = coerce_ledger_type(type)

    if institute_id:
        require_institute(db, tenant_id, institute_id)

    if get_ledger_by_name(db, tenant_id, name, institute_id):
        raise ValidationError(f"Ledger '{name}' already exists in this scope")

    ledger = Ledger(
        tenant_id=tenant_id,
        institute_id=institute_id,
        name=name,
        type=ledger_type,
        description=description,
    )
    db.add(ledger)

    try:
        if not commit:
            db.flush()
            return ledger
        db.commit()
        db.refresh(ledger)
        logger.info(f"Ledger {ledger.id} '{name}' ({ledger_type.value}) created for tenant {tenant_id}")
        return ledger
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating ledger: {str(e)}")
        raise ValidationError("Failed to create ledger")


def update_ledger(
    db: Session,
    tenant_id: str,
    ledger_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    type: Optional[Union[LedgerType, str]] = None,
) -> Ledger:
    """Rename or re-describe a ledger. The type is fixed once created."""
    ledger = get_ledger(db, tenant_id, ledger_id)

    if type is not None and coerce_ledger_type(type) != ledger.type:
        raise InvalidOperationError("Ledger type cannot be changed after creation")

    if name is not None:
        name = _clean_name(name, "Ledger")
        existing = get_ledger_by_name(db, tenant_id, name, ledger.institute_id)
        if existing and existing.id != ledger.id:
            raise ValidationError(f"Ledger '{name}' already exists in this scope")
        ledger.name = name

    if description is not None:
        ledger.description = description

    try:
        db.commit()
        db.refresh(ledger)
        return ledger
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating ledger: {str(e)}")
        raise ValidationError("Failed to update ledger")

# ==================== CATEGORIES ====================

def get_category(db: Session, tenant_id: str, category_id: str) -> Category:
    category = (
        db.query(Category)
        .join(Category.ledger)
        .filter(Ledger.tenant_id == tenant_id, Category.id == category_id)
        .first()
    )
    if not category:
        raise NotFoundError(f"Category {category_id} not found")
    return category


def list_categories(db: Session, tenant_id: str, ledger_id: str) -> List[Category]:
    ledger = get_ledger(db, tenant_id, ledger_id)
    return (
        db.query(Category)
        .filter(Category.ledger_id == ledger.id)
        .order_by(Category.name)
        .all()
    )


def create_category(
    db: Session,
    tenant_id: str,
    ledger_id: str,
    name: str,
    description: Optional[str] = None,
) -> Category:
    """Create a category under a ledger; names are unique per ledger."""
    ledger = get_ledger(db, tenant_id, ledger_id)
    name = _clean_name(name, "Category")

    existing = (
        db.query(Category)
        .filter(Category.ledger_id == ledger.id, Category.name == name)
        .first()
    )
    if existing:
        raise ValidationError(f"Category '{name}' already exists on ledger {ledger.name}")

    category = Category(ledger_id=ledger.id, name=name, description=description)
    db.add(category)
    try:
        db.commit()
        db.refresh(category)
        logger.info(f"Category {category.id} '{name}' created on ledger {ledger.id}")
        return category
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating category: {e}")
        raise ValidationError("Failed to create category.")
