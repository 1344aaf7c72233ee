"""Box purchase/open orchestration and staff fulfilment marking."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from ...models.box_transaction import BoxStatus, BoxTransaction
from ...models.credit_ledger import LedgerKind
from ...models.rarity import Rarity
from ...models.reward import Reward
from ...platform.config import settings
from ...platform.errors import (
    AlreadyFinalized,
    Expired,
    NoEligibleCandidates,
    NotFound,
    NotProcessable,
    WrongOwner,
)
from ...shared.utils import ensure_utc, utcnow
from ..ledger.service import apply_delta
from ..probability.selector import Track, resolve_track, select
from ..probability.service import load_reward_candidates, load_tier_candidates, validate_tier
from .machine import apply_transition, is_expired

logger = logging.getLogger(__name__)


@dataclass
class PurchaseOutcome:
    transaction: BoxTransaction
    rarity: Rarity
    credits_before: int
    credits_after: int


@dataclass
class OpenOutcome:
    transaction: BoxTransaction
    rarity: Rarity
    reward: Reward


def box_expiry_for(created_at: datetime) -> datetime:
    return ensure_utc(created_at) + timedelta(days=settings.BOX_EXPIRY_DAYS)


def purchase_box(
    db: Session,
    *,
    tenant_id: int,
    member_id: int,
    credit_tier: int,
    track: Track | str,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> PurchaseOutcome:
    """Debit the member, draw a rarity for the tier, and record a PURCHASED box.

    Debit, draw and insert share one database transaction: if anything after
    the debit fails, the debit is rolled back with it.
    """
    credit_tier = validate_tier(credit_tier)
    track = resolve_track(track)
    now = ensure_utc(now) or utcnow()

    try:
        credits_after = apply_delta(
            db,
            tenant_id=tenant_id,
            member_id=member_id,
            delta=-credit_tier,
            kind=LedgerKind.BOX_PURCHASE,
            description="Box purchase (%d credit)" % credit_tier,
            actor_id=member_id,
        )
        candidates = load_tier_candidates(db, tenant_id, credit_tier)
        rarity_id = select(candidates, track, rng=rng)
        rarity = db.get(Rarity, rarity_id)

        transaction = BoxTransaction(
            tenant_id=tenant_id,
            member_id=member_id,
            credit_tier=credit_tier,
            credit_spent=credit_tier,
            rarity_id=rarity_id,
            status=BoxStatus.PURCHASED,
            expires_at=box_expiry_for(now),
            processed=False,
            created_at=now,
        )
        db.add(transaction)
        db.flush()
        db.commit()
    except NoEligibleCandidates:
        db.rollback()
        logger.warning(
            "Tier weights unusable tenant_id=%s credit_tier=%d track=%s",
            tenant_id,
            credit_tier,
            track.value,
        )
        raise
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Box purchased transaction_id=%s member_id=%s credit_tier=%d rarity=%s track=%s",
        transaction.id,
        member_id,
        credit_tier,
        rarity.code.value,
        track.value,
        extra={"tenant_id": tenant_id, "member_id": member_id, "transaction_id": transaction.id},
    )
    return PurchaseOutcome(
        transaction=transaction,
        rarity=rarity,
        credits_before=credits_after + credit_tier,
        credits_after=credits_after,
    )


def _load_owned_transaction(db: Session, *, tenant_id: int, member_id: int, transaction_id: int) -> BoxTransaction:
    transaction = (
        db.query(BoxTransaction)
        .filter(BoxTransaction.id == transaction_id, BoxTransaction.tenant_id == tenant_id)
        .first()
    )
    if transaction is None:
        raise NotFound("Box transaction not found", transaction_id=transaction_id)
    if transaction.member_id != member_id:
        raise WrongOwner(transaction_id=transaction_id)
    return transaction


def open_box(
    db: Session,
    *,
    tenant_id: int,
    member_id: int,
    transaction_id: int,
    track: Track | str,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> OpenOutcome:
    """Resolve a PURCHASED box to a reward. At most one caller wins per box.

    Opening a box at or after ``expires_at`` expires it as a side effect and
    raises Expired; the caller never receives a reward for a stale box.
    """
    track = resolve_track(track)
    now = ensure_utc(now) or utcnow()

    transaction = _load_owned_transaction(
        db, tenant_id=tenant_id, member_id=member_id, transaction_id=transaction_id
    )
    if transaction.status != BoxStatus.PURCHASED:
        raise AlreadyFinalized(transaction_id=transaction_id, status=transaction.status.value)

    if is_expired(transaction.expires_at, now):
        try:
            expired_now = apply_transition(db, transaction_id, BoxStatus.EXPIRED)
            db.commit()
        except Exception:
            db.rollback()
            raise
        if not expired_now:
            raise AlreadyFinalized(transaction_id=transaction_id)
        logger.info("Box expired on open transaction_id=%s member_id=%s", transaction_id, member_id)
        raise Expired(transaction_id=transaction_id)

    rarity_id = transaction.rarity_id
    try:
        candidates = load_reward_candidates(db, tenant_id, rarity_id)
        reward_id = select(candidates, track, rng=rng)
        won = apply_transition(
            db,
            transaction_id,
            BoxStatus.OPENED,
            live_at=now,
            reward_id=reward_id,
            opened_at=now,
        )
        if not won:
            db.rollback()
            raise AlreadyFinalized(transaction_id=transaction_id)
        db.commit()
    except NoEligibleCandidates:
        db.rollback()
        logger.warning(
            "Reward weights unusable tenant_id=%s rarity_id=%s track=%s",
            tenant_id,
            rarity_id,
            track.value,
        )
        raise
    except AlreadyFinalized:
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(transaction)
    reward = db.get(Reward, reward_id)
    rarity = db.get(Rarity, rarity_id)
    logger.info(
        "Box opened transaction_id=%s member_id=%s rarity=%s reward_id=%s track=%s",
        transaction_id,
        member_id,
        rarity.code.value,
        reward_id,
        track.value,
        extra={"tenant_id": tenant_id, "member_id": member_id, "transaction_id": transaction_id},
    )
    return OpenOutcome(transaction=transaction, rarity=rarity, reward=reward)


def set_processed(
    db: Session,
    *,
    tenant_id: int,
    transaction_id: int,
    processed: bool,
    actor_id: int,
    now: datetime | None = None,
) -> BoxTransaction:
    """Toggle the staff fulfilment flag on an opened box."""
    transaction = (
        db.query(BoxTransaction)
        .filter(BoxTransaction.id == transaction_id, BoxTransaction.tenant_id == tenant_id)
        .first()
    )
    if transaction is None:
        raise NotFound("Box transaction not found", transaction_id=transaction_id)
    if transaction.status != BoxStatus.OPENED or transaction.reward_id is None:
        raise NotProcessable(transaction_id=transaction_id, status=transaction.status.value)

    now = ensure_utc(now) or utcnow()
    try:
        db.execute(
            update(BoxTransaction)
            .where(BoxTransaction.id == transaction_id)
            .values(
                processed=bool(processed),
                processed_at=now if processed else None,
                processed_by=actor_id if processed else None,
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(transaction)
    logger.info(
        "Box fulfilment flag transaction_id=%s processed=%s actor_id=%s",
        transaction_id,
        bool(processed),
        actor_id,
    )
    return transaction
