"""Probability configuration: tier->rarity and rarity->reward weights on both tracks."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...components.probability import service as probability_service
from ...components.probability.schemas import (
    RewardWeightsResponse,
    RewardWeightsSave,
    TierWeightsResponse,
    TierWeightsSave,
)
from ...components.probability.service import WeightUpdate
from ...deps import require_admin, require_staff
from ...models.profile import Profile
from ...platform.database import get_db

router = APIRouter(prefix="/probabilities", tags=["Probabilities"])


@router.get("/tiers/{credit_tier}", response_model=TierWeightsResponse)
def get_tier_weights(
    credit_tier: int,
    db: Session = Depends(get_db),
    current_staff: Profile = Depends(require_staff),
):
    return probability_service.describe_tier(db, current_staff.tenant_id, credit_tier)


@router.put("/tiers/{credit_tier}", response_model=TierWeightsResponse)
def put_tier_weights(
    credit_tier: int,
    data: TierWeightsSave,
    db: Session = Depends(get_db),
    current_admin: Profile = Depends(require_admin),
):
    probability_service.save_tier_weights(
        db,
        tenant_id=current_admin.tenant_id,
        credit_tier=credit_tier,
        rows=[
            WeightUpdate(
                target_id=row.rarity_id,
                is_active=row.is_active,
                real_probability=row.real_probability,
                gimmick_probability=row.gimmick_probability,
            )
            for row in data.rows
        ],
    )
    return probability_service.describe_tier(db, current_admin.tenant_id, credit_tier)


@router.get("/rarities/{rarity_id}/rewards", response_model=RewardWeightsResponse)
def get_reward_weights(
    rarity_id: int,
    db: Session = Depends(get_db),
    current_staff: Profile = Depends(require_staff),
):
    return probability_service.describe_rewards(db, current_staff.tenant_id, rarity_id)


@router.put("/rarities/{rarity_id}/rewards", response_model=RewardWeightsResponse)
def put_reward_weights(
    rarity_id: int,
    data: RewardWeightsSave,
    db: Session = Depends(get_db),
    current_admin: Profile = Depends(require_admin),
):
    probability_service.save_reward_weights(
        db,
        tenant_id=current_admin.tenant_id,
        rarity_id=rarity_id,
        rows=[
            WeightUpdate(
                target_id=row.reward_id,
                is_active=row.is_active,
                real_probability=row.real_probability,
                gimmick_probability=row.gimmick_probability,
            )
            for row in data.rows
        ],
    )
    return probability_service.describe_rewards(db, current_admin.tenant_id, rarity_id)
