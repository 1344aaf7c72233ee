import os
# Override DATABASE_URL before any app imports to avoid PostgreSQL driver requirement
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["DEPLOYMENT_ENV"] = "test"
os.environ["DRAW_TRACK"] = "real"

import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event, select
from sqlalchemy.orm import sessionmaker

from mysterybox.components.ledger.adjustments import topup
from mysterybox.components.probability.service import (
    WeightUpdate,
    clear_cache,
    ensure_rarity_catalog,
    save_reward_weights,
    save_tier_weights,
)
from mysterybox.main import app
from mysterybox.models import Profile, ProfileRole, RarityCode, Reward, RewardType, Tenant
from mysterybox.platform.database import Base, get_db
from mysterybox.platform.security import create_access_token

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
# timeout: concurrent writers in the threaded tests wait on the SQLite write lock
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Enable foreign key support for SQLite
@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    clear_cache()
    db = TestingSessionLocal()
    yield db
    db.close()
    clear_cache()
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factory helpers - create test entities quickly and consistently
# ---------------------------------------------------------------------------

_counter = 0

def _unique_id() -> str:
    global _counter
    _counter += 1
    return f"{_counter}-{uuid.uuid4().hex[:8]}"


# (real, gimmick) weights per rarity for each credit tier; both tracks total 100.
DEFAULT_TIER_WEIGHTS = {
    1: {
        RarityCode.COMMON: ("60", "40"),
        RarityCode.RARE: ("25", "30"),
        RarityCode.EPIC: ("10", "15"),
        RarityCode.SUPREME: ("3", "8"),
        RarityCode.LEGENDARY: ("1.5", "5"),
        RarityCode.SPECIAL_LEGENDARY: ("0.5", "2"),
    },
    2: {
        RarityCode.RARE: ("60", "45"),
        RarityCode.EPIC: ("25", "30"),
        RarityCode.SUPREME: ("10", "15"),
        RarityCode.LEGENDARY: ("4", "7"),
        RarityCode.SPECIAL_LEGENDARY: ("1", "3"),
    },
    3: {
        RarityCode.EPIC: ("70", "50"),
        RarityCode.SUPREME: ("20", "30"),
        RarityCode.LEGENDARY: ("8", "15"),
        RarityCode.SPECIAL_LEGENDARY: ("2", "5"),
    },
}


def seed_catalog(db):
    """Return the rarity catalog keyed by code."""
    return {rarity.code: rarity for rarity in ensure_rarity_catalog(db)}


def create_tenant(db, code=None, name="Test Tenant"):
    tenant = Tenant(code=code or f"tenant-{_unique_id()}", name=name)
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


def create_profile(db, tenant, role=ProfileRole.MEMBER, username=None):
    profile = Profile(
        tenant_id=tenant.id,
        role=role,
        username=username or f"{role.value.lower()}-{_unique_id()}",
        credit_balance=0,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def create_member(db, tenant, balance=0, username=None, actor=None):
    """Create a MEMBER profile; a starting balance goes through the ledger as a TOPUP."""
    member = create_profile(db, tenant, ProfileRole.MEMBER, username=username)
    if balance:
        topup(
            db,
            tenant_id=tenant.id,
            member_id=member.id,
            amount=balance,
            description="Test credit",
            actor_id=actor.id if actor else None,
        )
        db.refresh(member)
    return member


def create_reward(db, tenant, rarity, label=None, amount="1000", reward_type=RewardType.CASH,
                  is_active=True, real="0", gimmick="0"):
    reward = Reward(
        tenant_id=tenant.id,
        rarity_id=rarity.id,
        label=label or f"{rarity.name} reward {_unique_id()}",
        reward_type=reward_type,
        amount=Decimal(amount),
        is_active=is_active,
        real_probability=Decimal(real),
        gimmick_probability=Decimal(gimmick),
    )
    db.add(reward)
    db.commit()
    db.refresh(reward)
    return reward


def configure_tier(db, tenant, catalog, credit_tier, weights=None):
    """Save tier weights given as {RarityCode: (real, gimmick)} or {RarityCode: (real, gimmick, is_active)}."""
    weights = weights if weights is not None else DEFAULT_TIER_WEIGHTS[credit_tier]
    rows = []
    for code, values in weights.items():
        real, gimmick = values[0], values[1]
        is_active = values[2] if len(values) > 2 else True
        rows.append(
            WeightUpdate(
                target_id=catalog[code].id,
                is_active=is_active,
                real_probability=real,
                gimmick_probability=gimmick,
            )
        )
    return save_tier_weights(db, tenant_id=tenant.id, credit_tier=credit_tier, rows=rows)


def configure_rewards(db, tenant, rarity, weights):
    """weights: list of (reward, real, gimmick) or (reward, real, gimmick, is_active)."""
    rows = []
    for values in weights:
        reward, real, gimmick = values[0], values[1], values[2]
        is_active = values[3] if len(values) > 3 else True
        rows.append(
            WeightUpdate(
                target_id=reward.id,
                is_active=is_active,
                real_probability=real,
                gimmick_probability=gimmick,
            )
        )
    return save_reward_weights(db, tenant_id=tenant.id, rarity_id=rarity.id, rows=rows)


def setup_box_environment(db, balance=0):
    """Tenant with staff, one member, default tier weights and two rewards per rarity.

    Returns a dict with the tenant, catalog, admin, cs, member and rewards by rarity code.
    """
    catalog = seed_catalog(db)
    tenant = create_tenant(db)
    admin = create_profile(db, tenant, ProfileRole.ADMIN)
    cs = create_profile(db, tenant, ProfileRole.CS)
    member = create_member(db, tenant, balance=balance, actor=admin)

    for credit_tier in (1, 2, 3):
        configure_tier(db, tenant, catalog, credit_tier)

    rewards = {}
    for code, rarity in catalog.items():
        small = create_reward(db, tenant, rarity, label=f"{rarity.name} small", amount="100")
        large = create_reward(db, tenant, rarity, label=f"{rarity.name} large", amount="500")
        configure_rewards(db, tenant, rarity, [(small, "70", "40"), (large, "30", "60")])
        rewards[code] = [small, large]

    return {
        "tenant": tenant,
        "catalog": catalog,
        "admin": admin,
        "cs": cs,
        "member": member,
        "rewards": rewards,
    }


def auth_headers_for(profile):
    token = create_access_token({"sub": str(profile.id)})
    return {"Authorization": f"Bearer {token}"}


def balance_of(member_id) -> int:
    """Read a balance through a fresh session so identity-map state never leaks in."""
    session = TestingSessionLocal()
    try:
        return session.execute(
            select(Profile.credit_balance).where(Profile.id == member_id)
        ).scalar_one()
    finally:
        session.close()
