from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ledgerbook.common.exceptions import InvalidOperationError, NotFoundError, ValidationError
from ledgerbook.logger_config import logger
from ledgerbook.models.ledger import Ledger, LedgerType
from ledgerbook.models.ledger_entry import EntryDirection, EntrySource, LedgerEntry
from ledgerbook.services.institute_service import require_institute
from ledgerbook.services.ledger_service import coerce_ledger_type, get_category, get_ledger
from ledgerbook.utils.accounting import ZERO, require_positive, to_decimal, validate_date_range

REVERSAL_PREFIX = "REV-"


@dataclass
class EntryFilter:
    """Filters for list_entries. Dates are inclusive; before_date is exclusive."""
    ledger_id: Optional[str] = None
    institute_id: Optional[str] = None
    category_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    before_date: Optional[date] = None
    source: Optional[EntrySource] = None
    ledger_type: Optional[LedgerType] = None
    search: Optional[str] = None


def coerce_direction(value: Union[EntryDirection, str, None]) -> EntryDirection:
    if isinstance(value, EntryDirection):
        return value
    try:
        return EntryDirection(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid direction '{value}'. Allowed: debit, credit")


def coerce_source(value: Union[EntrySource, str, None]) -> EntrySource:
    if value is None:
        return EntrySource.MANUAL
    if isinstance(value, EntrySource):
        return value
    try:
        return EntrySource(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in EntrySource)
        raise ValidationError(f"Invalid source '{value}'. Allowed: {allowed}")


def entry_direction(entry: LedgerEntry) -> EntryDirection:
    return EntryDirection.DEBIT if to_decimal(entry.debit) > ZERO else EntryDirection.CREDIT


def entry_amount(entry: LedgerEntry) -> Decimal:
    return to_decimal(entry.debit) + to_decimal(entry.credit)


def _split_amount(amount: Decimal, direction: EntryDirection) -> Tuple[Decimal, Decimal]:
    if direction == EntryDirection.DEBIT:
        return amount, ZERO
    return ZERO, amount


def _resolve_institute(db: Session, tenant_id: str, ledger: Ledger, institute_id: Optional[str]) -> Optional[str]:
    """Entries inherit the ledger's institute; a tenant-wide ledger accepts any institute of the tenant."""
    if ledger.institute_id:
        if institute_id and institute_id != ledger.institute_id:
            raise ValidationError(
                f"Ledger {ledger.name} belongs to institute {ledger.institute_id}, not {institute_id}"
            )
        return ledger.institute_id
    if institute_id:
        require_institute(db, tenant_id, institute_id)
    return institute_id


def _check_category(db: Session, tenant_id: str, ledger: Ledger, category_id: Optional[str]) -> Optional[str]:
    if not category_id:
        return None
    category = get_category(db, tenant_id, category_id)
    if category.ledger_id != ledger.id:
        raise ValidationError(f"Category {category.name} does not belong to ledger {ledger.name}")
    return category.id


def _save(db: Session, entry: LedgerEntry, commit: bool, action: str) -> LedgerEntry:
    try:
        if commit:
            db.commit()
            db.refresh(entry)
        else:
            db.flush()
        return entry
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Error while trying to {action} ledger entry")
        raise

# ================= RECORD ===================

def record_entry(
    db: Session,
    tenant_id: str,
    ledger_id: str,
    entry_date: date,
    description: str,
    amount,
    direction: Union[EntryDirection, str],
    source: Union[EntrySource, str] = EntrySource.MANUAL,
    category_id: Optional[str] = None,
    reference_id: Optional[str] = None,
    institute_id: Optional[str] = None,
    payment_method: Optional[str] = None,
    reference_no: Optional[str] = None,
    commit: bool = True,
) -> LedgerEntry:
    """
    Append one entry to the store. Exactly one of debit/credit carries the amount.
    With commit=False the entry is only flushed so the caller controls the unit of work.
    """
    amount = require_positive(amount)
    direction = coerce_direction(direction)
    source = coerce_source(source)
    if entry_date is None:
        raise ValidationError("Entry date is required")
    if not description or not description.strip():
        raise ValidationError("Description is required")

    ledger = get_ledger(db, tenant_id, ledger_id)
    debit, credit = _split_amount(amount, direction)

    entry = LedgerEntry(
        tenant_id=tenant_id,
        institute_id=_resolve_institute(db, tenant_id, ledger, institute_id),
        ledger_id=ledger.id,
        category_id=_check_category(db, tenant_id, ledger, category_id),
        date=entry_date,
        description=description.strip(),
        debit=debit,
        credit=credit,
        source=source,
        reference_id=reference_id,
        payment_method=payment_method,
        reference_no=reference_no,
    )
    db.add(entry)
    entry = _save(db, entry, commit, "record")
    logger.info(
        f"Recorded {source.value} {direction.value} of {amount} on ledger {ledger.id} "
        f"(entry {entry.id}, tenant {tenant_id})"
    )
    return entry

# ================= QUERY ===================

def apply_entry_filters(query: Query, tenant_id: str, filters: Optional[EntryFilter] = None) -> Query:
    """Apply tenant scope and EntryFilter to a query that selects from LedgerEntry."""
    filters = filters or EntryFilter()
    validate_date_range(filters.start_date, filters.end_date)

    query = query.filter(LedgerEntry.tenant_id == tenant_id)

    if filters.ledger_id:
        query = query.filter(LedgerEntry.ledger_id == filters.ledger_id)
    if filters.institute_id:
        query = query.filter(LedgerEntry.institute_id == filters.institute_id)
    if filters.category_id:
        query = query.filter(LedgerEntry.category_id == filters.category_id)
    if filters.source:
        query = query.filter(LedgerEntry.source == coerce_source(filters.source))
    if filters.ledger_type:
        query = query.filter(
            LedgerEntry.ledger.has(Ledger.type == coerce_ledger_type(filters.ledger_type))
        )

    if filters.start_date:
        query = query.filter(LedgerEntry.date >= filters.start_date)
        logger.debug(f"Filtering by start_date: {filters.start_date}")
    if filters.end_date:
        query = query.filter(LedgerEntry.date <= filters.end_date)
        logger.debug(f"Filtering by end_date: {filters.end_date}")
    if filters.before_date:
        query = query.filter(LedgerEntry.date < filters.before_date)

    if filters.search:
        term = f"%{filters.search}%"
        query = query.filter(
            or_(
                LedgerEntry.description.ilike(term),
                LedgerEntry.reference_no.ilike(term),
                LedgerEntry.reference_id.ilike(term),
            )
        )
    return query


def list_entries(db: Session, tenant_id: str, filters: Optional[EntryFilter] = None) -> Query:
    """
    Entries in date order, ties broken by insertion order.

    The returned query is lazy and can be iterated any number of times;
    each iteration re-reads the store.
    """
    query = db.query(LedgerEntry).options(
        joinedload(LedgerEntry.ledger),
        joinedload(LedgerEntry.category),
        joinedload(LedgerEntry.institute),
    )
    return apply_entry_filters(query, tenant_id, filters).order_by(
        LedgerEntry.date.asc(), LedgerEntry.id.asc()
    )


def get_entries_page(
    db: Session,
    tenant_id: str,
    filters: Optional[EntryFilter] = None,
    skip: int = 0,
    limit: int = 25,
) -> Tuple[List[LedgerEntry], int, dict]:
    """Paginated listing with debit/credit totals over the whole filtered set."""
    if filters and filters.institute_id:
        require_institute(db, tenant_id, filters.institute_id)
    query = list_entries(db, tenant_id, filters)
    total_count = apply_entry_filters(db.query(LedgerEntry), tenant_id, filters).count()

    totals_row = apply_entry_filters(
        db.query(
            func.coalesce(func.sum(LedgerEntry.debit), 0),
            func.coalesce(func.sum(LedgerEntry.credit), 0),
        ),
        tenant_id,
        filters,
    ).first()

    totals = {
        "total_debit": to_decimal(totals_row[0]),
        "total_credit": to_decimal(totals_row[1]),
    }
    rows = query.offset(skip).limit(limit).all()
    return rows, total_count, totals


def get_entry(db: Session, tenant_id: str, entry_id: int) -> LedgerEntry:
    entry = (
        db.query(LedgerEntry)
        .filter(LedgerEntry.tenant_id == tenant_id, LedgerEntry.id == entry_id)
        .first()
    )
    if not entry:
        raise NotFoundError(f"Ledger entry {entry_id} not found")
    return entry

# ================= MANUAL EDITS ===================

def _is_reversed(db: Session, tenant_id: str, entry: LedgerEntry) -> bool:
    return (
        db.query(LedgerEntry.id)
        .filter(
            LedgerEntry.tenant_id == tenant_id,
            LedgerEntry.reference_id == f"{REVERSAL_PREFIX}{entry.id}",
        )
        .first()
    ) is not None


def _require_manual(db: Session, tenant_id: str, entry: LedgerEntry) -> None:
    if entry.source != EntrySource.MANUAL:
        raise InvalidOperationError(
            f"Entry {entry.id} was posted by {entry.source.value} and cannot be edited; post a reversal instead"
        )
    # A reversed entry is frozen while its reversal exists
    if _is_reversed(db, tenant_id, entry):
        raise InvalidOperationError(
            f"Entry {entry.id} has been reversed; delete its reversal first"
        )


def update_manual_entry(
    db: Session,
    tenant_id: str,
    entry_id: int,
    entry_date: Optional[date] = None,
    description: Optional[str] = None,
    amount=None,
    direction: Optional[Union[EntryDirection, str]] = None,
    category_id: Optional[str] = None,
    payment_method: Optional[str] = None,
    reference_no: Optional[str] = None,
) -> LedgerEntry:
    entry = get_entry(db, tenant_id, entry_id)
    _require_manual(db, tenant_id, entry)

    # Validate everything before touching the entry so a rejected edit leaves nothing pending
    new_split = None
    if amount is not None or direction is not None:
        new_amount = require_positive(amount) if amount is not None else entry_amount(entry)
        new_direction = coerce_direction(direction) if direction is not None else entry_direction(entry)
        new_split = _split_amount(new_amount, new_direction)
    if description is not None and not description.strip():
        raise ValidationError("Description is required")
    if category_id is not None:
        category_id = _check_category(db, tenant_id, entry.ledger, category_id)

    if new_split is not None:
        entry.debit, entry.credit = new_split
    if entry_date is not None:
        entry.date = entry_date
    if description is not None:
        entry.description = description.strip()
    if category_id is not None:
        entry.category_id = category_id
    if payment_method is not None:
        entry.payment_method = payment_method
    if reference_no is not None:
        entry.reference_no = reference_no

    entry = _save(db, entry, True, "update")
    logger.info(f"Manual entry {entry.id} updated (tenant {tenant_id})")
    return entry


def delete_manual_entry(db: Session, tenant_id: str, entry_id: int) -> None:
    entry = get_entry(db, tenant_id, entry_id)
    _require_manual(db, tenant_id, entry)
    db.delete(entry)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error deleting manual entry")
        raise
    logger.info(f"Manual entry {entry_id} deleted (tenant {tenant_id})")

# ================= REVERSAL ===================

def reverse_entry(
    db: Session,
    tenant_id: str,
    entry_id: int,
    entry_date: Optional[date] = None,
    description: Optional[str] = None,
    commit: bool = True,
) -> LedgerEntry:
    """Post the offsetting entry for an existing one: same ledger and amount, opposite side."""
    entry = get_entry(db, tenant_id, entry_id)
    reversal_ref = f"{REVERSAL_PREFIX}{entry.id}"

    if _is_reversed(db, tenant_id, entry):
        raise InvalidOperationError(f"Entry {entry.id} has already been reversed")

    opposite = EntryDirection.CREDIT if entry_direction(entry) == EntryDirection.DEBIT else EntryDirection.DEBIT
    return record_entry(
        db,
        tenant_id=tenant_id,
        ledger_id=entry.ledger_id,
        entry_date=entry_date or date.today(),
        description=description or f"Reversal of entry {entry.id}: {entry.description}",
        amount=entry_amount(entry),
        direction=opposite,
        source=entry.source,
        category_id=entry.category_id,
        reference_id=reversal_ref,
        institute_id=entry.institute_id,
        payment_method=entry.payment_method,
        reference_no=entry.reference_no,
        commit=commit,
    )
