import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..platform.database import Base


class LedgerKind(str, enum.Enum):
    TOPUP = "TOPUP"
    ADJUSTMENT = "ADJUSTMENT"
    BOX_PURCHASE = "BOX_PURCHASE"


class CreditLedgerEntry(Base):
    """Immutable record of one balance mutation."""

    __tablename__ = "credit_ledger"
    __table_args__ = (
        Index("ix_credit_ledger_member_created", "member_id", "created_at", "id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    member_id = Column(Integer, ForeignKey("profiles.id"), index=True, nullable=False)
    delta = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    kind = Column(Enum(LedgerKind), nullable=False)
    description = Column(String, nullable=True)
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    member = relationship("Profile", foreign_keys=[member_id])
    creator = relationship("Profile", foreign_keys=[created_by])
