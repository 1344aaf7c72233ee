from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..platform.database import Base


class TierRarityWeight(Base):
    __tablename__ = "tier_rarity_weights"
    __table_args__ = (
        UniqueConstraint("tenant_id", "credit_tier", "rarity_id", name="uq_tier_rarity_weights_tenant_tier_rarity"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    credit_tier = Column(Integer, nullable=False)
    rarity_id = Column(Integer, ForeignKey("rarities.id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    real_probability = Column(Numeric(6, 3), nullable=False, default=0)
    gimmick_probability = Column(Numeric(6, 3), nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    rarity = relationship("Rarity")
