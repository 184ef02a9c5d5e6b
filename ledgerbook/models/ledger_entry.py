import enum
from sqlalchemy import CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ledgerbook.core.database import Base


class EntrySource(str, enum.Enum):
    MANUAL = "manual"
    COLLECTION = "collection"
    SALARY = "salary"
    PETTYCASH = "pettycash"


class EntryDirection(str, enum.Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"
    __table_args__ = (
        CheckConstraint("debit >= 0", name="ck_entry_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_entry_credit_non_negative"),
    )

    # Autoincrement id is also the insertion order used to break date ties
    id = Column(Integer, primary_key=True, autoincrement=True)

    tenant_id = Column(String(36), nullable=False, index=True)
    institute_id = Column(String(20), ForeignKey("institutes.id"), nullable=True, index=True)
    ledger_id = Column(String(20), ForeignKey("ledgers.id"), nullable=False, index=True)
    category_id = Column(String(20), ForeignKey("ledger_categories.id"), nullable=True)

    date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=False)

    debit = Column(Numeric(15, 2), nullable=False, default=0)
    credit = Column(Numeric(15, 2), nullable=False, default=0)

    source = Column(Enum(EntrySource), nullable=False, default=EntrySource.MANUAL)
    reference_id = Column(String(30), nullable=True, index=True)  # fund id, salary payment id, reversed entry id
    payment_method = Column(String(30), nullable=True)
    reference_no = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    ledger = relationship("Ledger", back_populates="entries")
    category = relationship("Category", back_populates="entries")
    institute = relationship("Institute")

    @property
    def ledger_type(self):
        return self.ledger.type

    def __repr__(self):
        return f"<LedgerEntry(id={self.id}, ledger_id='{self.ledger_id}', debit={self.debit}, credit={self.credit})>"
