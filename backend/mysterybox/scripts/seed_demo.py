"""Seed a demo tenant: rarity catalog, staff, one member, tier and reward weights.

Usage (from backend/):
    python -m mysterybox.scripts.seed_demo

Prints bearer tokens for the seeded profiles so the API can be exercised locally.
"""
from decimal import Decimal

from mysterybox.components.ledger.adjustments import topup
from mysterybox.components.probability.service import (
    WeightUpdate,
    ensure_rarity_catalog,
    eligible_rarities,
    save_reward_weights,
    save_tier_weights,
)
from mysterybox.models import Profile, ProfileRole, RarityCode, Reward, RewardType, Tenant
from mysterybox.platform.database import Base, SessionLocal, engine
from mysterybox.platform.security import create_access_token

# (real, gimmick) per rarity, listed per tier from its lowest eligible rarity up.
DEMO_TIER_WEIGHTS = {
    1: [("60", "40"), ("25", "30"), ("10", "15"), ("3", "8"), ("1.5", "5"), ("0.5", "2")],
    2: [("60", "45"), ("25", "30"), ("10", "15"), ("4", "7"), ("1", "3")],
    3: [("70", "50"), ("20", "30"), ("8", "15"), ("2", "5")],
}

DEMO_REWARD_AMOUNTS = {
    RarityCode.COMMON: ("5000", "10000"),
    RarityCode.RARE: ("20000", "35000"),
    RarityCode.EPIC: ("50000", "75000"),
    RarityCode.SUPREME: ("100000", "150000"),
    RarityCode.LEGENDARY: ("250000", "500000"),
    RarityCode.SPECIAL_LEGENDARY: ("1000000", "2500000"),
}


def seed():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if db.query(Tenant).filter(Tenant.code == "demo").first():
            print("Demo tenant already seeded. Skipping.")
            return

        catalog = ensure_rarity_catalog(db)

        tenant = Tenant(code="demo", name="Demo Tenant")
        db.add(tenant)
        db.flush()
        admin = Profile(tenant_id=tenant.id, role=ProfileRole.ADMIN, username="admin")
        cs = Profile(tenant_id=tenant.id, role=ProfileRole.CS, username="cs")
        member = Profile(tenant_id=tenant.id, role=ProfileRole.MEMBER, username="member1")
        db.add_all([admin, cs, member])
        db.flush()

        for rarity in catalog:
            low, high = DEMO_REWARD_AMOUNTS[rarity.code]
            db.add_all([
                Reward(tenant_id=tenant.id, rarity_id=rarity.id, label=f"{rarity.name} cash {low}",
                       reward_type=RewardType.CASH, amount=Decimal(low)),
                Reward(tenant_id=tenant.id, rarity_id=rarity.id, label=f"{rarity.name} cash {high}",
                       reward_type=RewardType.CASH, amount=Decimal(high)),
            ])
        db.commit()

        for credit_tier, weights in DEMO_TIER_WEIGHTS.items():
            rarities = eligible_rarities(db, credit_tier)
            save_tier_weights(
                db,
                tenant_id=tenant.id,
                credit_tier=credit_tier,
                rows=[
                    WeightUpdate(target_id=r.id, is_active=True, real_probability=real, gimmick_probability=gimmick)
                    for r, (real, gimmick) in zip(rarities, weights)
                ],
            )

        for rarity in catalog:
            rewards = (
                db.query(Reward)
                .filter(Reward.tenant_id == tenant.id, Reward.rarity_id == rarity.id)
                .order_by(Reward.id.asc())
                .all()
            )
            save_reward_weights(
                db,
                tenant_id=tenant.id,
                rarity_id=rarity.id,
                rows=[
                    WeightUpdate(target_id=rewards[0].id, is_active=True, real_probability="70", gimmick_probability="50"),
                    WeightUpdate(target_id=rewards[1].id, is_active=True, real_probability="30", gimmick_probability="50"),
                ],
            )

        topup(db, tenant_id=tenant.id, member_id=member.id, amount=10,
              description="Demo credit", actor_id=admin.id)

        print("Seeded demo tenant.")
        for profile in (admin, cs, member):
            token = create_access_token({"sub": str(profile.id)})
            print(f"  {profile.role.value:<6} {profile.username:<8} token={token}")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
