"""
Automatic ledger postings for the salary, collection and petty-cash flows.

Collaborators post against a ledger identified by name and type inside an
institute (or tenant-wide); the ledger is created on first use so auto
posting does not depend on the catalog being pre-configured.
"""
from datetime import date
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ledgerbook.common.exceptions import InvalidOperationError
from ledgerbook.logger_config import logger
from ledgerbook.models.ledger import Ledger, LedgerType
from ledgerbook.models.ledger_entry import EntryDirection, EntrySource, LedgerEntry
from ledgerbook.services.ledger_service import coerce_ledger_type, create_ledger, get_ledger_by_name
from ledgerbook.services.transaction_service import REVERSAL_PREFIX, record_entry, reverse_entry


def increasing_direction(ledger_type: LedgerType) -> EntryDirection:
    """The side that grows a ledger of this type."""
    return EntryDirection.DEBIT if ledger_type == LedgerType.EXPENSE else EntryDirection.CREDIT


def get_or_create_ledger(
    db: Session,
    tenant_id: str,
    name: str,
    ledger_type: Union[LedgerType, str],
    institute_id: Optional[str] = None,
) -> Ledger:
    ledger_type = coerce_ledger_type(ledger_type)
    ledger = get_ledger_by_name(db, tenant_id, name, institute_id)
    if ledger:
        if ledger.type != ledger_type:
            raise InvalidOperationError(
                f"Ledger '{name}' exists as {ledger.type.value}, cannot post to it as {ledger_type.value}"
            )
        return ledger

    logger.info(f"Auto-creating {ledger_type.value} ledger '{name}' for tenant {tenant_id}")
    return create_ledger(
        db,
        tenant_id=tenant_id,
        name=name,
        type=ledger_type,
        institute_id=institute_id,
        description=f"Auto-created ledger for {ledger_type.value} - {name}",
        commit=False,
    )


def post_ledger_entry(
    db: Session,
    tenant_id: str,
    ledger_name: str,
    ledger_type: Union[LedgerType, str],
    amount,
    description: str,
    entry_date: date,
    source: EntrySource,
    reference_id: str,
    institute_id: Optional[str] = None,
    payment_method: Optional[str] = None,
    reference_no: Optional[str] = None,
    commit: bool = True,
) -> LedgerEntry:
    """Post an entry on the side that increases the named ledger."""
    ledger = get_or_create_ledger(db, tenant_id, ledger_name, ledger_type, institute_id)
    return record_entry(
        db,
        tenant_id=tenant_id,
        ledger_id=ledger.id,
        entry_date=entry_date,
        description=description,
        amount=amount,
        direction=increasing_direction(ledger.type),
        source=source,
        reference_id=reference_id,
        institute_id=institute_id,
        payment_method=payment_method,
        reference_no=reference_no,
        commit=commit,
    )


def reverse_posted_entries(
    db: Session,
    tenant_id: str,
    source: EntrySource,
    reference_id: str,
    entry_date: Optional[date] = None,
) -> List[LedgerEntry]:
    """
    Offset everything a collaborator posted for one source record (e.g. a deleted
    salary payment). Entries that were already reversed are skipped.
    """
    posted = (
        db.query(LedgerEntry)
        .filter(
            LedgerEntry.tenant_id == tenant_id,
            LedgerEntry.source == source,
            LedgerEntry.reference_id == reference_id,
        )
        .order_by(LedgerEntry.id)
        .all()
    )
    reversed_refs = {
        ref for (ref,) in db.query(LedgerEntry.reference_id).filter(
            LedgerEntry.tenant_id == tenant_id,
            LedgerEntry.reference_id.in_([f"{REVERSAL_PREFIX}{e.id}" for e in posted]),
        )
    } if posted else set()

    reversals = []
    try:
        for entry in posted:
            if f"{REVERSAL_PREFIX}{entry.id}" in reversed_refs:
                continue
            reversals.append(reverse_entry(db, tenant_id, entry.id, entry_date=entry_date, commit=False))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Error reversing {source.value} postings for {reference_id}")
        raise

    logger.info(f"Reversed {len(reversals)} {source.value} postings for {reference_id}")
    return reversals
