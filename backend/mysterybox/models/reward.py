import enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..platform.database import Base


class RewardType(str, enum.Enum):
    CASH = "CASH"
    ITEM = "ITEM"


class Reward(Base):
    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_rewards_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    rarity_id = Column(Integer, ForeignKey("rarities.id"), index=True, nullable=False)
    label = Column(String, nullable=False)
    reward_type = Column(Enum(RewardType), nullable=False, default=RewardType.CASH)
    amount = Column(Numeric(14, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    real_probability = Column(Numeric(6, 3), nullable=False, default=0)
    gimmick_probability = Column(Numeric(6, 3), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    tenant = relationship("Tenant", back_populates="rewards")
    rarity = relationship("Rarity")
