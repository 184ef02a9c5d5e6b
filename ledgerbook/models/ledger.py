import enum
import secrets
import string
from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ledgerbook.core.database import Base


class LedgerType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"
    BANK = "bank"


def generate_custom_id(prefix: str, length: int = 8) -> str:
    random_part = ''.join(secrets.choice(string.ascii_uppercase)
                          for _ in range(length))
    return f"{prefix}-{random_part}"


class Ledger(Base):
    __tablename__ = "ledgers"
    __table_args__ = (
        UniqueConstraint("tenant_id", "institute_id", "name", name="uq_ledger_scope_name"),
    )

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("LED"))
    tenant_id = Column(String(36), nullable=False, index=True)
    # NULL institute means the ledger is tenant-wide
    institute_id = Column(String(20), ForeignKey("institutes.id"), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    type = Column(Enum(LedgerType), nullable=False)  # income / expense / bank, never changes
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    institute = relationship("Institute", back_populates="ledgers")
    categories = relationship("Category", back_populates="ledger", order_by="Category.name")
    entries = relationship("LedgerEntry", back_populates="ledger")

    def __repr__(self):
        return f"<Ledger(id='{self.id}', name='{self.name}', type='{self.type.value}')>"


class Category(Base):
    """Subdivision of a ledger used by the income & expenditure and balance sheet breakdowns."""
    __tablename__ = "ledger_categories"
    __table_args__ = (
        UniqueConstraint("ledger_id", "name", name="uq_category_ledger_name"),
    )

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("CAT"))
    ledger_id = Column(String(20), ForeignKey("ledgers.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    ledger = relationship("Ledger", back_populates="categories")
    entries = relationship("LedgerEntry", back_populates="category")
