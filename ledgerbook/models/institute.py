from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ledgerbook.core.database import Base
from ledgerbook.models.ledger import generate_custom_id


class Institute(Base):
    """Franchise unit of a tenant (mahallu, madrasa, orphanage...). Owned by the institute directory."""
    __tablename__ = "institutes"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("INS"))
    tenant_id = Column(String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    ledgers = relationship("Ledger", back_populates="institute")
    petty_cash_funds = relationship("PettyCashFund", back_populates="institute")

    def __repr__(self):
        return f"<Institute(id='{self.id}', name='{self.name}')>"
