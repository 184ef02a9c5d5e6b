import enum
from sqlalchemy import CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ledgerbook.core.database import Base
from ledgerbook.models.ledger import generate_custom_id


class FundStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class PettyCashTransactionType(str, enum.Enum):
    FLOAT = "float"
    EXPENSE = "expense"
    REPLENISHMENT = "replenishment"


class PettyCashFund(Base):
    __tablename__ = "petty_cash_funds"
    __table_args__ = (
        CheckConstraint("float_amount > 0", name="ck_fund_float_positive"),
        CheckConstraint(
            "current_balance >= 0 AND current_balance <= float_amount",
            name="ck_fund_balance_within_float",
        ),
    )

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("PCF"))
    tenant_id = Column(String(36), nullable=False, index=True)
    institute_id = Column(String(20), ForeignKey("institutes.id"), nullable=False, index=True)
    custodian_name = Column(String(200), nullable=False)

    float_amount = Column(Numeric(15, 2), nullable=False)
    current_balance = Column(Numeric(15, 2), nullable=False)
    status = Column(Enum(FundStatus), nullable=False, default=FundStatus.ACTIVE)

    # Optimistic lock: concurrent writers holding a stale row fail with StaleDataError
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    institute = relationship("Institute", back_populates="petty_cash_funds")
    transactions = relationship(
        "PettyCashTransaction",
        back_populates="fund",
        order_by="PettyCashTransaction.id",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def spent_amount(self):
        return self.float_amount - self.current_balance


class PettyCashTransaction(Base):
    """One row per fund event. Never updated or deleted."""
    __tablename__ = "petty_cash_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    fund_id = Column(String(20), ForeignKey("petty_cash_funds.id"), nullable=False, index=True)
    type = Column(Enum(PettyCashTransactionType), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=False)
    receipt_no = Column(String(50), nullable=True)
    date = Column(Date, nullable=False)

    # Set on replenishment rows: the general-ledger entry it posted
    ledger_entry_id = Column(Integer, ForeignKey("ledger_entries.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    fund = relationship("PettyCashFund", back_populates="transactions")
    ledger_entry = relationship("LedgerEntry")
