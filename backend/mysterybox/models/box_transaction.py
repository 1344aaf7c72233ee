import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..platform.database import Base


class BoxStatus(str, enum.Enum):
    PURCHASED = "PURCHASED"
    OPENED = "OPENED"
    EXPIRED = "EXPIRED"


class BoxTransaction(Base):
    __tablename__ = "box_transactions"
    __table_args__ = (
        Index("ix_box_transactions_status_expires_at", "status", "expires_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    member_id = Column(Integer, ForeignKey("profiles.id"), index=True, nullable=False)
    credit_tier = Column(Integer, nullable=False)
    credit_spent = Column(Integer, nullable=False)
    rarity_id = Column(Integer, ForeignKey("rarities.id"), nullable=False)
    reward_id = Column(Integer, ForeignKey("rewards.id"), nullable=True)
    status = Column(Enum(BoxStatus), nullable=False, default=BoxStatus.PURCHASED)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    opened_at = Column(DateTime(timezone=True), nullable=True)
    # Fulfilment tracking by staff; not part of the status machine.
    processed = Column(Boolean, nullable=False, default=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    processed_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    member = relationship("Profile", foreign_keys=[member_id])
    processor = relationship("Profile", foreign_keys=[processed_by])
    rarity = relationship("Rarity")
    reward = relationship("Reward")
