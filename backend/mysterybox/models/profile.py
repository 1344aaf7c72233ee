import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..platform.database import Base


class ProfileRole(str, enum.Enum):
    ADMIN = "ADMIN"
    CS = "CS"
    MEMBER = "MEMBER"


STAFF_ROLES = frozenset({ProfileRole.ADMIN, ProfileRole.CS})


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (
        UniqueConstraint("tenant_id", "username", name="uq_profiles_tenant_username"),
        CheckConstraint("credit_balance >= 0", name="ck_profiles_credit_balance_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    role = Column(Enum(ProfileRole), nullable=False, default=ProfileRole.MEMBER)
    username = Column(String, nullable=False)
    # Materialized from credit_ledger; only ledger.service.apply_delta writes it.
    credit_balance = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    tenant = relationship("Tenant", back_populates="profiles")

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
