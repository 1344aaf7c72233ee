import enum

from sqlalchemy import Column, Enum, Integer, String
from ..platform.database import Base


class RarityCode(str, enum.Enum):
    COMMON = "COMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    SUPREME = "SUPREME"
    LEGENDARY = "LEGENDARY"
    SPECIAL_LEGENDARY = "SPECIAL_LEGENDARY"


class Rarity(Base):
    """Global rarity catalog; sort_order gates which credit tiers may draw it."""

    __tablename__ = "rarities"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(Enum(RarityCode), unique=True, nullable=False)
    name = Column(String, nullable=False)
    color_key = Column(String, nullable=True)
    sort_order = Column(Integer, unique=True, nullable=False)
