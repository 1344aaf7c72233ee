from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field


class TierWeightIn(BaseModel):
    rarity_id: int
    is_active: bool = True
    real_probability: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    gimmick_probability: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class TierWeightsSave(BaseModel):
    rows: List[TierWeightIn]


class TierWeightOut(BaseModel):
    rarity_id: int
    rarity_code: str
    rarity_name: str
    is_active: bool
    real_probability: Decimal
    gimmick_probability: Decimal


class TierWeightsResponse(BaseModel):
    credit_tier: int
    rows: List[TierWeightOut]
    real_total: Decimal
    gimmick_total: Decimal


class RewardWeightIn(BaseModel):
    reward_id: int
    is_active: bool = True
    real_probability: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    gimmick_probability: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class RewardWeightsSave(BaseModel):
    rows: List[RewardWeightIn]


class RewardWeightOut(BaseModel):
    reward_id: int
    label: str
    reward_type: str
    amount: Decimal
    is_active: bool
    real_probability: Decimal
    gimmick_probability: Decimal


class RewardWeightsResponse(BaseModel):
    rarity_id: int
    rarity_code: str
    rarity_name: str
    rows: List[RewardWeightOut]
    real_total: Decimal
    gimmick_total: Decimal
