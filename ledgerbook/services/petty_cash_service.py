from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from ledgerbook.common.exceptions import (
    ConflictError,
    InsufficientFundsError,
    InvalidOperationError,
    NotFoundError,
    NothingToReplenishError,
    ValidationError,
)
from ledgerbook.core.config import settings
from ledgerbook.logger_config import logger
from ledgerbook.models.ledger import LedgerType
from ledgerbook.models.ledger_entry import EntrySource
from ledgerbook.models.petty_cash import (
    FundStatus,
    PettyCashFund,
    PettyCashTransaction,
    PettyCashTransactionType,
)
from ledgerbook.services.institute_service import require_institute
from ledgerbook.services.posting_service import post_ledger_entry
from ledgerbook.utils.accounting import ZERO, require_positive, to_decimal


def _today() -> date:
    return date.today()


def coerce_fund_status(value: Union[FundStatus, str]) -> FundStatus:
    if isinstance(value, FundStatus):
        return value
    try:
        return FundStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid fund status '{value}'. Allowed: active, closed")


class PettyCashManager:
    """
    Petty-cash float funds of one tenant.

    Expenses stay local to the fund; only a replenishment reaches the general
    ledger, as one expense entry for everything spent since the last cycle.
    Every mutation re-reads the fund row under a row lock and the fund's
    version column rejects writes based on a stale read.
    """

    def __init__(self, db: Session, tenant_id: str):
        self.db = db
        self.tenant_id = tenant_id

    # ================= HELPERS ===================

    def _fund_query(self):
        return self.db.query(PettyCashFund).filter(PettyCashFund.tenant_id == self.tenant_id)

    def _lock_fund(self, fund_id: str) -> PettyCashFund:
        fund = (
            self._fund_query()
            .filter(PettyCashFund.id == fund_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not fund:
            raise NotFoundError(f"Petty cash fund {fund_id} not found")
        return fund

    def _require_active(self, fund: PettyCashFund) -> None:
        if fund.status != FundStatus.ACTIVE:
            message = f"Petty cash fund {fund.id} is {fund.status.value}"
            self.db.rollback()
            raise InvalidOperationError(message)

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.warning(f"Concurrent update lost while trying to {action}")
            raise ConflictError(f"Petty cash fund was modified concurrently; {action} aborted")
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Error while trying to {action}")
            raise

    # ================= QUERIES ===================

    def get_fund(self, fund_id: str) -> PettyCashFund:
        fund = (
            self._fund_query()
            .options(joinedload(PettyCashFund.institute))
            .filter(PettyCashFund.id == fund_id)
            .first()
        )
        if not fund:
            raise NotFoundError(f"Petty cash fund {fund_id} not found")
        return fund

    def list_funds(
        self,
        institute_id: Optional[str] = None,
        status: Optional[Union[FundStatus, str]] = None,
    ) -> List[PettyCashFund]:
        query = self._fund_query().options(joinedload(PettyCashFund.institute))
        if institute_id:
            require_institute(self.db, self.tenant_id, institute_id)
            query = query.filter(PettyCashFund.institute_id == institute_id)
        if status:
            query = query.filter(PettyCashFund.status == coerce_fund_status(status))
        return query.order_by(PettyCashFund.created_at.desc(), PettyCashFund.id).all()

    def list_transactions(self, fund_id: str) -> List[PettyCashTransaction]:
        """Fund events oldest first."""
        fund = self.get_fund(fund_id)
        return (
            self.db.query(PettyCashTransaction)
            .filter(PettyCashTransaction.fund_id == fund.id)
            .order_by(PettyCashTransaction.id.asc())
            .all()
        )

    # ================= LIFECYCLE ===================

    def create_fund(
        self,
        institute_id: str,
        custodian_name: str,
        float_amount,
        fund_date: Optional[date] = None,
    ) -> PettyCashFund:
        """Issue a new float. The balance starts full and a float row records the issue."""
        float_amount = require_positive(float_amount, "float amount")
        if not custodian_name or not custodian_name.strip():
            raise ValidationError("Custodian name is required")
        require_institute(self.db, self.tenant_id, institute_id)

        fund = PettyCashFund(
            tenant_id=self.tenant_id,
            institute_id=institute_id,
            custodian_name=custodian_name.strip(),
            float_amount=float_amount,
            current_balance=float_amount,
            status=FundStatus.ACTIVE,
        )
        fund.transactions.append(PettyCashTransaction(
            type=PettyCashTransactionType.FLOAT,
            amount=float_amount,
            description=f"Initial petty cash float - {fund.custodian_name}",
            date=fund_date or _today(),
        ))
        self.db.add(fund)
        self._commit("create petty cash fund")
        self.db.refresh(fund)

        logger.info(f"Petty cash fund {fund.id} created for institute {institute_id} with float {float_amount}")
        return fund

    def update_fund(self, fund_id: str, custodian_name: Optional[str] = None) -> PettyCashFund:
        """Change the custodian. Amounts are never edited directly."""
        if custodian_name is not None and not custodian_name.strip():
            raise ValidationError("Custodian name is required")
        fund = self._lock_fund(fund_id)
        if custodian_name is not None:
            fund.custodian_name = custodian_name.strip()
        self._commit("update petty cash fund")
        self.db.refresh(fund)
        return fund

    def close_fund(self, fund_id: str) -> PettyCashFund:
        fund = self._lock_fund(fund_id)
        self._require_active(fund)
        fund.status = FundStatus.CLOSED
        self._commit("close petty cash fund")
        self.db.refresh(fund)
        logger.info(f"Petty cash fund {fund.id} closed with balance {fund.current_balance}")
        return fund

    # ================= EXPENSES ===================

    def record_expense(
        self,
        fund_id: str,
        amount,
        description: str,
        receipt_no: Optional[str] = None,
        expense_date: Optional[date] = None,
    ) -> PettyCashTransaction:
        amount = require_positive(amount)
        if not description or not description.strip():
            raise ValidationError("Description is required")

        fund = self._lock_fund(fund_id)
        self._require_active(fund)

        balance = to_decimal(fund.current_balance)
        if amount > balance:
            self.db.rollback()
            raise InsufficientFundsError(
                f"Insufficient petty cash balance: {balance} available, {amount} requested"
            )

        fund.current_balance = balance - amount
        txn = PettyCashTransaction(
            fund_id=fund.id,
            type=PettyCashTransactionType.EXPENSE,
            amount=amount,
            description=description.strip(),
            receipt_no=receipt_no,
            date=expense_date or _today(),
        )
        self.db.add(txn)
        self._commit("record petty cash expense")
        self.db.refresh(txn)

        logger.info(f"Petty cash expense {amount} on fund {fund.id}; balance now {fund.current_balance}")
        return txn

    # ================= REPLENISHMENT ===================

    def replenish(self, fund_id: str, replenish_date: Optional[date] = None) -> PettyCashTransaction:
        """
        Top the fund back up to its float.

        The ledger posting, the balance reset and the replenishment row are
        committed together or not at all.
        """
        fund = self._lock_fund(fund_id)
        self._require_active(fund)

        spent: Decimal = to_decimal(fund.float_amount) - to_decimal(fund.current_balance)
        if spent <= ZERO:
            message = f"Petty cash fund {fund.id} has no expenses to replenish"
            self.db.rollback()
            raise NothingToReplenishError(message)

        on_date = replenish_date or _today()
        try:
            entry = post_ledger_entry(
                self.db,
                tenant_id=self.tenant_id,
                ledger_name=settings.PETTY_CASH_LEDGER_NAME,
                ledger_type=LedgerType.EXPENSE,
                amount=spent,
                description=f"Petty cash replenishment - {fund.custodian_name}",
                entry_date=on_date,
                source=EntrySource.PETTYCASH,
                reference_id=fund.id,
                institute_id=fund.institute_id,
                payment_method="cash",
                commit=False,
            )

            fund.current_balance = fund.float_amount
            txn = PettyCashTransaction(
                fund_id=fund.id,
                type=PettyCashTransactionType.REPLENISHMENT,
                amount=spent,
                description=f"Petty cash replenishment - {fund.custodian_name} ({spent})",
                date=on_date,
                ledger_entry_id=entry.id,
            )
            self.db.add(txn)
        except Exception:
            self.db.rollback()
            raise

        self._commit("replenish petty cash fund")
        self.db.refresh(txn)

        logger.info(f"Replenished petty cash fund {fund.id} with {spent} (ledger entry {entry.id})")
        return txn
