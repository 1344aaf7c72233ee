"""Probability tables: rarity catalog, tier/reward weights, save-time validation, cached reads."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ...models.rarity import Rarity, RarityCode
from ...models.reward import Reward
from ...models.tenant import Tenant
from ...models.tier_rarity_weight import TierRarityWeight
from ...platform.config import settings
from ...platform.errors import (
    ConfigurationInvariantViolated,
    InvalidTier,
    NoEligibleCandidates,
    NotFound,
)
from .selector import WeightedCandidate

logger = logging.getLogger(__name__)

CREDIT_TIERS = (1, 2, 3)
REQUIRED_TOTAL = Decimal("100")
WEIGHT_QUANTUM = Decimal("0.001")

# Lowest rarity each credit tier may draw; anything sorted below it is excluded.
TIER_MIN_RARITY = {
    1: RarityCode.COMMON,
    2: RarityCode.RARE,
    3: RarityCode.EPIC,
}

DEFAULT_RARITY_CATALOG = (
    (RarityCode.COMMON, "Common", "slate", 10),
    (RarityCode.RARE, "Rare", "sky", 20),
    (RarityCode.EPIC, "Epic", "violet", 30),
    (RarityCode.SUPREME, "Supreme", "amber", 40),
    (RarityCode.LEGENDARY, "Legendary", "orange", 50),
    (RarityCode.SPECIAL_LEGENDARY, "Special Legendary", "rose", 60),
)


@dataclass(frozen=True)
class WeightUpdate:
    target_id: int
    is_active: bool
    real_probability: Any
    gimmick_probability: Any


# ---------------------------------------------------------------------------
# Candidate cache
# ---------------------------------------------------------------------------

_cache: "OrderedDict[Tuple[Any, ...], Tuple[WeightedCandidate, ...]]" = OrderedDict()
_cache_lock = threading.Lock()


def clear_cache() -> None:
    with _cache_lock:
        _cache.clear()


def _cache_get(key: Tuple[Any, ...]) -> Tuple[WeightedCandidate, ...] | None:
    if not settings.PROBABILITY_CACHE_ENABLED:
        return None
    with _cache_lock:
        value = _cache.get(key)
        if value is not None:
            _cache.move_to_end(key)
        return value


def _cache_put(key: Tuple[Any, ...], value: Tuple[WeightedCandidate, ...]) -> None:
    if not settings.PROBABILITY_CACHE_ENABLED:
        return
    with _cache_lock:
        _cache[key] = value
        _cache.move_to_end(key)
        while len(_cache) > max(1, settings.PROBABILITY_CACHE_MAX_ENTRIES):
            _cache.popitem(last=False)


# ---------------------------------------------------------------------------
# Catalog and eligibility
# ---------------------------------------------------------------------------

def ensure_rarity_catalog(db: Session) -> List[Rarity]:
    """Create any missing global rarity rows. Returns the catalog in sort order."""
    existing = {r.code: r for r in db.query(Rarity).all()}
    created = 0
    for code, name, color_key, sort_order in DEFAULT_RARITY_CATALOG:
        if code in existing:
            continue
        rarity = Rarity(code=code, name=name, color_key=color_key, sort_order=sort_order)
        db.add(rarity)
        existing[code] = rarity
        created += 1
    if created:
        db.commit()
        logger.info("Seeded %d rarity catalog rows", created)
    return sorted(existing.values(), key=lambda r: r.sort_order)


def validate_tier(credit_tier: Any) -> int:
    if isinstance(credit_tier, bool) or credit_tier not in CREDIT_TIERS:
        raise InvalidTier(credit_tier=credit_tier)
    return int(credit_tier)


def _min_sort_order(db: Session, credit_tier: int) -> int:
    code = TIER_MIN_RARITY[credit_tier]
    sort_order = db.execute(select(Rarity.sort_order).where(Rarity.code == code)).scalar_one_or_none()
    if sort_order is None:
        raise NoEligibleCandidates(
            "Rarity catalog is missing %s" % code.value,
            credit_tier=credit_tier,
        )
    return int(sort_order)


def eligible_rarities(db: Session, credit_tier: int) -> List[Rarity]:
    credit_tier = validate_tier(credit_tier)
    floor = _min_sort_order(db, credit_tier)
    return (
        db.query(Rarity)
        .filter(Rarity.sort_order >= floor)
        .order_by(Rarity.sort_order.asc())
        .all()
    )


def _weights_version(db: Session, tenant_id: int) -> int:
    version = db.execute(
        select(Tenant.weights_version).where(Tenant.id == tenant_id)
    ).scalar_one_or_none()
    if version is None:
        raise NotFound("Tenant not found", tenant_id=tenant_id)
    return int(version)


# ---------------------------------------------------------------------------
# Draw-time reads
# ---------------------------------------------------------------------------

def load_tier_candidates(db: Session, tenant_id: int, credit_tier: int) -> Tuple[WeightedCandidate, ...]:
    """Tier→rarity candidates (ids are rarity ids), restricted to tier-eligible rarities."""
    credit_tier = validate_tier(credit_tier)
    key = (tenant_id, "tier", credit_tier, _weights_version(db, tenant_id))
    cached = _cache_get(key)
    if cached is not None:
        return cached

    floor = _min_sort_order(db, credit_tier)
    rows = (
        db.query(TierRarityWeight)
        .join(Rarity, Rarity.id == TierRarityWeight.rarity_id)
        .filter(
            TierRarityWeight.tenant_id == tenant_id,
            TierRarityWeight.credit_tier == credit_tier,
            Rarity.sort_order >= floor,
        )
        .order_by(Rarity.sort_order.asc())
        .all()
    )
    candidates = tuple(
        WeightedCandidate(
            id=row.rarity_id,
            is_active=bool(row.is_active),
            real_weight=row.real_probability,
            gimmick_weight=row.gimmick_probability,
        )
        for row in rows
    )
    _cache_put(key, candidates)
    return candidates


def load_reward_candidates(db: Session, tenant_id: int, rarity_id: int) -> Tuple[WeightedCandidate, ...]:
    """Rarity→reward candidates (ids are reward ids)."""
    key = (tenant_id, "reward", rarity_id, _weights_version(db, tenant_id))
    cached = _cache_get(key)
    if cached is not None:
        return cached

    rows = (
        db.query(Reward)
        .filter(Reward.tenant_id == tenant_id, Reward.rarity_id == rarity_id)
        .order_by(Reward.id.asc())
        .all()
    )
    candidates = tuple(
        WeightedCandidate(
            id=row.id,
            is_active=bool(row.is_active),
            real_weight=row.real_probability,
            gimmick_weight=row.gimmick_probability,
        )
        for row in rows
    )
    _cache_put(key, candidates)
    return candidates


# ---------------------------------------------------------------------------
# Save-time validation
# ---------------------------------------------------------------------------

def as_weight(value: Any, *, field: str) -> Decimal:
    try:
        weight = Decimal(str(value if value is not None else 0))
    except (InvalidOperation, ValueError):
        raise ConfigurationInvariantViolated("%s must be a number" % field, value=str(value)) from None
    if not weight.is_finite() or weight < 0 or weight > REQUIRED_TOTAL:
        raise ConfigurationInvariantViolated("%s must be between 0 and 100" % field, value=str(value))
    return weight.quantize(WEIGHT_QUANTUM)


def _fmt(value: Decimal) -> str:
    return format(value.normalize(), "f")


def _check_totals(rows: Sequence[Any], **context: Any) -> Dict[str, str]:
    real = sum((Decimal(r.real_probability) for r in rows if r.is_active), Decimal("0"))
    gimmick = sum((Decimal(r.gimmick_probability) for r in rows if r.is_active), Decimal("0"))
    if real != REQUIRED_TOTAL or gimmick != REQUIRED_TOTAL:
        raise ConfigurationInvariantViolated(
            "Active probabilities must total 100 on both tracks (real=%s, gimmick=%s)"
            % (_fmt(real), _fmt(gimmick)),
            real_total=_fmt(real),
            gimmick_total=_fmt(gimmick),
            **context,
        )
    return {"real": _fmt(real), "gimmick": _fmt(gimmick)}


def _lock_tenant_weights(db: Session, tenant_id: int) -> None:
    """Bump the tenant weights version before reading the rows being validated.

    The UPDATE takes the tenant row lock (the write lock on SQLite), so saves for
    one tenant run their sum check one at a time against committed rows.
    """
    result = db.execute(
        update(Tenant)
        .where(Tenant.id == tenant_id)
        .values(weights_version=Tenant.weights_version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFound("Tenant not found", tenant_id=tenant_id)


def save_tier_weights(
    db: Session,
    *,
    tenant_id: int,
    credit_tier: int,
    rows: Sequence[WeightUpdate],
) -> List[TierRarityWeight]:
    """Upsert a tier's rarity weights after checking the 100% invariant on both tracks."""
    credit_tier = validate_tier(credit_tier)
    eligible = {r.id: r for r in eligible_rarities(db, credit_tier)}

    try:
        _lock_tenant_weights(db, tenant_id)
        existing = {
            row.rarity_id: row
            for row in db.query(TierRarityWeight)
            .filter(
                TierRarityWeight.tenant_id == tenant_id,
                TierRarityWeight.credit_tier == credit_tier,
            )
            .populate_existing()
        }
        for item in rows:
            if item.target_id not in eligible:
                raise ConfigurationInvariantViolated(
                    "Rarity %s is not offered on the %d-credit box" % (item.target_id, credit_tier),
                    rarity_id=item.target_id,
                    credit_tier=credit_tier,
                )
            row = existing.get(item.target_id)
            if row is None:
                row = TierRarityWeight(tenant_id=tenant_id, credit_tier=credit_tier, rarity_id=item.target_id)
                db.add(row)
                existing[item.target_id] = row
            row.is_active = bool(item.is_active)
            row.real_probability = as_weight(item.real_probability, field="real_probability")
            row.gimmick_probability = as_weight(item.gimmick_probability, field="gimmick_probability")

        eligible_rows = [row for rarity_id, row in existing.items() if rarity_id in eligible]
        totals = _check_totals(eligible_rows, credit_tier=credit_tier)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Saved tier weights tenant_id=%s credit_tier=%d totals=%s",
        tenant_id,
        credit_tier,
        totals,
    )
    return sorted(eligible_rows, key=lambda r: eligible[r.rarity_id].sort_order)


def save_reward_weights(
    db: Session,
    *,
    tenant_id: int,
    rarity_id: int,
    rows: Sequence[WeightUpdate],
) -> List[Reward]:
    """Update active flags and weights of a rarity's rewards; totals must stay at 100."""
    if db.get(Rarity, rarity_id) is None:
        raise NotFound("Rarity not found", rarity_id=rarity_id)

    try:
        _lock_tenant_weights(db, tenant_id)
        rewards = {
            reward.id: reward
            for reward in db.query(Reward)
            .filter(Reward.tenant_id == tenant_id, Reward.rarity_id == rarity_id)
            .populate_existing()
        }
        for item in rows:
            reward = rewards.get(item.target_id)
            if reward is None:
                raise NotFound("Reward not found for this rarity", reward_id=item.target_id)
            reward.is_active = bool(item.is_active)
            reward.real_probability = as_weight(item.real_probability, field="real_probability")
            reward.gimmick_probability = as_weight(item.gimmick_probability, field="gimmick_probability")

        totals = _check_totals(list(rewards.values()), rarity_id=rarity_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Saved reward weights tenant_id=%s rarity_id=%s totals=%s",
        tenant_id,
        rarity_id,
        totals,
    )
    return sorted(rewards.values(), key=lambda r: r.id)


# ---------------------------------------------------------------------------
# Admin views
# ---------------------------------------------------------------------------

def describe_tier(db: Session, tenant_id: int, credit_tier: int) -> Dict[str, Any]:
    credit_tier = validate_tier(credit_tier)
    _weights_version(db, tenant_id)
    rarities = eligible_rarities(db, credit_tier)
    rows = {
        row.rarity_id: row
        for row in db.query(TierRarityWeight).filter(
            TierRarityWeight.tenant_id == tenant_id,
            TierRarityWeight.credit_tier == credit_tier,
        )
    }
    items = []
    for rarity in rarities:
        row = rows.get(rarity.id)
        items.append(
            {
                "rarity_id": rarity.id,
                "rarity_code": rarity.code.value,
                "rarity_name": rarity.name,
                "is_active": bool(row.is_active) if row else False,
                "real_probability": Decimal(row.real_probability) if row else Decimal("0"),
                "gimmick_probability": Decimal(row.gimmick_probability) if row else Decimal("0"),
            }
        )
    return {"credit_tier": credit_tier, "rows": items, **_active_totals(items)}


def describe_rewards(db: Session, tenant_id: int, rarity_id: int) -> Dict[str, Any]:
    rarity = db.get(Rarity, rarity_id)
    if rarity is None:
        raise NotFound("Rarity not found", rarity_id=rarity_id)
    rewards = (
        db.query(Reward)
        .filter(Reward.tenant_id == tenant_id, Reward.rarity_id == rarity_id)
        .order_by(Reward.id.asc())
        .all()
    )
    items = [
        {
            "reward_id": reward.id,
            "label": reward.label,
            "reward_type": reward.reward_type.value,
            "amount": reward.amount,
            "is_active": bool(reward.is_active),
            "real_probability": Decimal(reward.real_probability),
            "gimmick_probability": Decimal(reward.gimmick_probability),
        }
        for reward in rewards
    ]
    return {
        "rarity_id": rarity.id,
        "rarity_code": rarity.code.value,
        "rarity_name": rarity.name,
        "rows": items,
        **_active_totals(items),
    }


def _active_totals(items: Sequence[Dict[str, Any]]) -> Dict[str, Decimal]:
    active = [item for item in items if item["is_active"]]
    return {
        "real_total": sum((item["real_probability"] for item in active), Decimal("0")),
        "gimmick_total": sum((item["gimmick_probability"] for item in active), Decimal("0")),
    }
